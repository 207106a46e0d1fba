# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from flask import Blueprint

from ..decorators import require_auth
from ..extensions import db
from ..models import Invoice
from ..services import print_service

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _get_invoice(invoice_id: int) -> Invoice | None:
    return db.session.query(Invoice).filter_by(id=invoice_id).first()


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    invoice = _get_invoice(invoice_id)
    if not invoice:
        return {"error": "Invoice not found"}, 404
    return invoice.to_dict()


@invoices_bp.get("/<int:invoice_id>/receipt")
@require_auth
def receipt_route(invoice_id: int):
    """Printable 80 mm receipt (HTML)."""
    invoice = _get_invoice(invoice_id)
    if not invoice:
        return {"error": "Invoice not found"}, 404
    return print_service.render_receipt(invoice)
