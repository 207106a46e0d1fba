# Overview: Flask API routes for reports; parses input and returns JSON responses.

# backend/shoppos/routes/reports.py
"""
Reporting routes

Date windows are whole days on the shop clock (SHOP_TIMEZONE):
start=YYYY-MM-DD&end=YYYY-MM-DD, both inclusive, defaulting to today.
"""
from io import BytesIO

from flask import Blueprint, request, current_app, send_file

from ..decorators import require_auth
from ..services import reporting_service
from ..services.reporting_service import ReportError
from shoppos.time_utils import local_day_bounds

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reports_bp.get("/sales")
@require_auth
def sales_report_route():
    """Window summary, invoices (newest first), and all-time top sellers."""
    try:
        return reporting_service.sales_report(
            start=request.args.get("start"),
            end=request.args.get("end"),
            top_limit=current_app.config["TOP_SELLERS_LIMIT"],
        )
    except ReportError as e:
        return {"error": str(e)}, 400


@reports_bp.get("/sales/export")
@require_auth
def export_sales_route():
    try:
        start_day, end_day = reporting_service.parse_days(
            request.args.get("start"), request.args.get("end")
        )
        invoices = reporting_service.fetch_invoices(*local_day_bounds(start_day, end_day))
        filename, content = reporting_service.export_invoices_xlsx(
            invoices,
            start_day.isoformat(),
            end_day.isoformat(),
        )
    except ReportError as e:
        return {"error": str(e)}, 400

    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
    )


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    return reporting_service.dashboard_summary(
        low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
    )
