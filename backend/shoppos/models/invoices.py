from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z


class Invoice(db.Model):
    """
    Sales invoice (append-only).

    Items are a denormalized snapshot of each cart line at checkout time so
    historical invoices stay correct after the product is edited or deleted:
    [{product_id, name, price_cents, cost_price_cents, quantity, line_total_cents}]
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_invoice_number", "invoice_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number derived from creation time (e.g., "INV-482913")
    invoice_number = db.Column(db.String(32), nullable=False)

    items = db.Column(db.JSON, nullable=False, default=list)
    total_cents = db.Column(db.Integer, nullable=False)
    item_count = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "items": list(self.items or []),
            "total_cents": self.total_cents,
            "item_count": self.item_count,
            "created_at": to_utc_z(self.created_at),
        }
