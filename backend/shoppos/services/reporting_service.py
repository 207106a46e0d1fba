# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

import io
from datetime import date, datetime, tzinfo
from typing import Any, Iterable, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from shoppos.extensions import db
from shoppos.models import Invoice, Product
from shoppos.time_utils import utcnow, to_utc_z, format_local, local_today, local_day_bounds


EXPORT_SHEET_TITLE = "المبيعات"
EXPORT_HEADERS = ("رقم الفاتورة", "التاريخ", "عدد القطع", "الإجمالي", "المنتجات")
EXPORT_ITEM_SEPARATOR = "، "
EXPORT_MIN_COLUMN_WIDTH = 10


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _field(record: Any, name: str, default: Any = 0) -> Any:
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _parse_day(value: str | None, label: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ReportError(f"{label} must be a YYYY-MM-DD date")


def parse_days(start: str | None, end: str | None, today: date | None = None) -> tuple[date, date]:
    """Shop-local report days; missing bounds default to today."""
    today = today or local_today()
    start_day = _parse_day(start, "start") or today
    end_day = _parse_day(end, "end") or today
    if start_day > end_day:
        raise ReportError("start must be on or before end")
    return start_day, end_day


def parse_window(
    start: str | None,
    end: str | None,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> tuple[datetime, datetime]:
    """
    Inclusive, day-granular window: [start 00:00:00, end 23:59:59.999999]
    on the shop clock, returned as UTC-naive bounds for querying.
    """
    start_day, end_day = parse_days(start, end, today)
    return local_day_bounds(start_day, end_day, tz)


def fetch_invoices(start_dt: datetime, end_dt: datetime) -> list[Invoice]:
    return (
        db.session.query(Invoice)
        .filter(Invoice.created_at >= start_dt, Invoice.created_at <= end_dt)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )


def summarize_invoices(invoices: Iterable[Any]) -> dict:
    invoices = list(invoices)
    return {
        "total_sales_cents": sum(int(_field(inv, "total_cents") or 0) for inv in invoices),
        "invoice_count": len(invoices),
        "items_sold": sum(int(_field(inv, "item_count") or 0) for inv in invoices),
    }


def top_sellers(products: Iterable[Any], limit: int = 5) -> list[Any]:
    """
    All-time ranking by the cumulative sold counter.

    NOTE: not restricted to the report window; the counter has no history.
    """
    ranked = sorted(products, key=lambda p: int(_field(p, "sold") or 0), reverse=True)
    return ranked[:limit]


def sales_report(*, start: str | None, end: str | None, top_limit: int = 5) -> dict:
    start_day, end_day = parse_days(start, end)
    invoices = fetch_invoices(*local_day_bounds(start_day, end_day))
    products = db.session.query(Product).all()

    return {
        "start": start_day.isoformat(),
        "end": end_day.isoformat(),
        "summary": summarize_invoices(invoices),
        "invoices": [inv.to_dict() for inv in invoices],
        "top_sellers": [p.to_dict() for p in top_sellers(products, limit=top_limit)],
    }


def dashboard_summary(*, now: datetime | None = None, low_stock_threshold: int = 5) -> dict:
    now = now or utcnow()
    start_dt, end_dt = parse_window(None, None, today=local_today(now))
    today_invoices = fetch_invoices(start_dt, end_dt)

    products = db.session.query(Product).order_by(Product.quantity.asc(), Product.name.asc()).all()
    low_stock = [p for p in products if 0 < (p.quantity or 0) <= low_stock_threshold]
    out_of_stock = [p for p in products if (p.quantity or 0) <= 0]

    recent = (
        db.session.query(Invoice)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(5)
        .all()
    )

    today = summarize_invoices(today_invoices)
    return {
        "generated_at": to_utc_z(now),
        "today_sales_cents": today["total_sales_cents"],
        "today_invoices": today["invoice_count"],
        "low_stock": len(low_stock),
        "out_of_stock": len(out_of_stock),
        "total_products": len(products),
        "low_stock_products": [p.to_dict() for p in low_stock[:5]],
        "recent_invoices": [inv.to_dict() for inv in recent],
    }


def _describe_items(items: Sequence[dict] | None) -> str:
    return EXPORT_ITEM_SEPARATOR.join(
        f"{item.get('name', '')} ({item.get('quantity', 0)})" for item in (items or [])
    )


def _money(cents: int | None) -> float:
    return round((cents or 0) / 100, 2)


def export_rows(invoices: Iterable[Any]) -> list[tuple]:
    return [
        (
            _field(inv, "invoice_number", ""),
            format_local(_field(inv, "created_at", None)),
            int(_field(inv, "item_count") or 0),
            _money(_field(inv, "total_cents")),
            _describe_items(_field(inv, "items", [])),
        )
        for inv in invoices
    ]


def export_filename(start: str, end: str) -> str:
    return f"تقرير_مبيعات_{start}_إلى_{end}.xlsx"


def export_invoices_xlsx(invoices: Sequence[Any], start: str, end: str) -> tuple[str, bytes]:
    """
    One-sheet workbook, one row per invoice, widths sized to content.

    Raises ReportError when there is nothing to export; no file is produced.
    """
    if not invoices:
        raise ReportError("No data to export")

    rows = export_rows(invoices)

    wb = Workbook()
    ws = wb.active
    ws.title = EXPORT_SHEET_TITLE
    ws.sheet_view.rightToLeft = True
    ws.append(EXPORT_HEADERS)
    for row in rows:
        ws.append(row)

    for idx, header in enumerate(EXPORT_HEADERS):
        widest = max([len(str(header))] + [len(str(row[idx])) for row in rows])
        ws.column_dimensions[get_column_letter(idx + 1)].width = max(widest + 2, EXPORT_MIN_COLUMN_WIDTH)

    buf = io.BytesIO()
    wb.save(buf)
    return export_filename(start, end), buf.getvalue()
