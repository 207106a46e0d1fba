"""
Checkout Service - commit a cart as an invoice

ORDER OF WRITES:
1. One invoice row, committed.
2. One stock write per cart line, in cart order, each committed before the
   next is issued:  quantity = quantity - n, sold = sold + n

The stock writes are single-statement field increments, so a concurrent
checkout cannot lose this one's decrement; but stock is never re-checked at
commit time and two tills working from stale snapshots can both succeed.

PARTIAL FAILURE: if a stock write fails after the invoice is committed the
invoice stays, already-applied stock writes stay, and CheckoutError reports
which products were applied. Nothing is rolled back or retried.
"""
from __future__ import annotations

import time

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Invoice, Product
from .cart_service import Cart


class CheckoutError(Exception):
    """Raised for checkout errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    @property
    def partial(self) -> bool:
        return bool(self.details.get("invoice_number"))


def next_invoice_number(now: float | None = None) -> str:
    """``INV-`` + last six digits of the epoch-millisecond clock."""
    ms = int((time.time() if now is None else now) * 1000)
    return f"INV-{str(ms)[-6:]}"


def build_invoice_items(cart: Cart) -> list[dict]:
    return [
        {
            "product_id": line.product_id,
            "name": line.name,
            "price_cents": line.price_cents,
            "cost_price_cents": line.cost_price_cents,
            "quantity": line.quantity,
            "line_total_cents": line.line_total_cents,
        }
        for line in cart.lines
    ]


def _apply_stock_write(product_id: int, quantity: int) -> None:
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(
            quantity=Product.quantity - quantity,
            sold=Product.sold + quantity,
        )
    )
    result = db.session.execute(stmt)
    if result.rowcount == 0:
        db.session.rollback()
        raise CheckoutError("Product no longer exists", {"product_id": product_id})
    db.session.commit()


def checkout(cart: Cart) -> Invoice:
    """
    Commit the cart. On success the cart is cleared and the invoice returned.

    Raises:
        CheckoutError: empty cart, invoice write failure, or partial stock
            failure (details carry invoice_number, applied_product_ids,
            failed_product_id).
    """
    if cart.is_empty:
        raise CheckoutError("Cart is empty")

    items = build_invoice_items(cart)
    invoice = Invoice(
        invoice_number=next_invoice_number(),
        items=items,
        total_cents=sum(i["line_total_cents"] for i in items),
        item_count=sum(i["quantity"] for i in items),
    )

    try:
        db.session.add(invoice)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise CheckoutError("Failed to record invoice") from exc

    invoice_id = invoice.id
    invoice_number = invoice.invoice_number
    applied: list[int] = []
    for item in items:
        product_id = item["product_id"]
        try:
            _apply_stock_write(product_id, item["quantity"])
        except (CheckoutError, SQLAlchemyError) as exc:
            db.session.rollback()
            raise CheckoutError(
                "Invoice recorded but stock update failed",
                {
                    "invoice_id": invoice_id,
                    "invoice_number": invoice_number,
                    "applied_product_ids": applied,
                    "failed_product_id": product_id,
                },
            ) from exc
        applied.append(product_id)

    cart.clear()
    return invoice
