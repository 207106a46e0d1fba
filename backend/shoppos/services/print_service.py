"""
Print Service - receipt and label sheet rendering

Both artifacts are plain HTML rendered from Jinja templates; printing goes
through the browser's print dialog (@page rules in the templates set 80 mm
roll paper for receipts and A4 for labels).
"""
from __future__ import annotations

import io
from typing import Any, Iterable

import barcode
from barcode.errors import BarcodeError
from barcode.writer import SVGWriter
from flask import current_app, render_template

from shoppos.time_utils import format_local

LABEL_COLUMNS = 4

_SVG_OPTIONS = {
    "module_width": 0.25,
    "module_height": 10.0,
    "font_size": 7,
    "text_distance": 3.0,
    "quiet_zone": 1.0,
}


def format_money(cents: int | None) -> str:
    return f"{(cents or 0) / 100:,.2f}"


def barcode_svg(value: str | None) -> str | None:
    """
    Inline Code128 SVG for a barcode value, or None when the value cannot be
    encoded (empty, or characters outside Code128's set).
    """
    if not value:
        return None
    try:
        if not value.isascii():
            raise BarcodeError(value)
        code = barcode.get("code128", value, writer=SVGWriter())
        buf = io.BytesIO()
        code.write(buf, options=_SVG_OPTIONS)
    except BarcodeError:
        current_app.logger.warning("Cannot encode barcode %r as Code128", value)
        return None
    svg = buf.getvalue().decode("utf-8")
    # Drop the XML prolog so the markup can be inlined
    return svg[svg.find("<svg"):]


def _shop_context() -> dict:
    cfg = current_app.config
    return {
        "shop_name": cfg.get("SHOP_NAME"),
        "shop_tagline": cfg.get("SHOP_TAGLINE"),
        "shop_phone": cfg.get("SHOP_PHONE"),
        "currency": cfg.get("CURRENCY_LABEL"),
    }


def render_receipt(invoice: Any) -> str:
    return render_template(
        "receipt.html",
        invoice=invoice,
        items=list(invoice.items or []),
        printed_at=format_local(invoice.created_at, "%Y-%m-%d %H:%M"),
        **_shop_context(),
    )


def build_label_tiles(products: Iterable[Any]) -> list[dict]:
    return [
        {
            "name": p.name,
            "barcode": p.barcode,
            "price_cents": p.price_cents,
            "svg": barcode_svg(p.barcode),
        }
        for p in products
    ]


def render_label_sheet(products: Iterable[Any]) -> str:
    tiles = build_label_tiles(products)
    return render_template(
        "labels.html",
        tiles=tiles,
        columns=LABEL_COLUMNS,
        **_shop_context(),
    )
