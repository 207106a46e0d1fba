"""
Catalog Service

Product CRUD plus the point-in-time catalog snapshot the till works from.

SNAPSHOT: a snapshot is fetched once (terminal start, after checkout, or on
explicit refresh) and never observes later remote changes. There is no TTL
and no invalidation; callers refetch.
"""
from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator

from ..extensions import db
from ..models import Product
from shoppos.time_utils import utcnow, to_utc_z

PRODUCT_MUTABLE_FIELDS = {"name", "price_cents", "cost_price_cents", "quantity", "barcode"}

BARCODE_PREFIX = "ACC-"
_BARCODE_ALPHABET = string.digits + string.ascii_uppercase


class CatalogError(ValueError):
    """Raised for catalog operation errors."""


def generate_barcode() -> str:
    """Opaque shop barcode, e.g. ``ACC-7K2M9QX1B``."""
    return BARCODE_PREFIX + "".join(secrets.choice(_BARCODE_ALPHABET) for _ in range(9))


@dataclass(frozen=True)
class CatalogItem:
    """Read-only copy of a product row as of the snapshot."""
    id: int
    name: str
    barcode: str
    price_cents: int
    cost_price_cents: int
    quantity: int
    sold: int = 0

    @classmethod
    def from_model(cls, p: Product) -> "CatalogItem":
        return cls(
            id=p.id,
            name=p.name,
            barcode=p.barcode or "",
            price_cents=p.price_cents or 0,
            cost_price_cents=p.cost_price_cents or 0,
            quantity=p.quantity or 0,
            sold=p.sold or 0,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "quantity": self.quantity,
            "sold": self.sold,
        }


def _matches(item, term: str) -> bool:
    return term in (item.name or "").lower() or term in (item.barcode or "").lower()


@dataclass(frozen=True)
class CatalogSnapshot:
    items: tuple[CatalogItem, ...] = ()
    fetched_at: datetime | None = None
    _by_id: dict = field(default=None, init=False, repr=False, compare=False)  # type: ignore

    def __post_init__(self):
        object.__setattr__(self, "_by_id", {item.id: item for item in self.items})

    def __iter__(self) -> Iterator[CatalogItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def get(self, product_id: int) -> CatalogItem | None:
        return self._by_id.get(product_id)

    def search(self, term: str | None = None, in_stock_only: bool = False) -> list[CatalogItem]:
        term = (term or "").strip().lower()
        items = [i for i in self.items if not term or _matches(i, term)]
        if in_stock_only:
            items = [i for i in items if i.quantity > 0]
        return items

    def to_dict(self) -> dict:
        return {
            "fetched_at": to_utc_z(self.fetched_at),
            "count": len(self.items),
            "items": [i.to_dict() for i in self.items],
        }


def _ordered_query(order: str):
    q = db.session.query(Product)
    if order == "name":
        return q.order_by(Product.name.asc(), Product.id.asc())
    if order == "created":
        return q.order_by(Product.created_at.desc(), Product.id.desc())
    raise CatalogError("order must be created or name")


def load_snapshot(order: str = "created") -> CatalogSnapshot:
    products = _ordered_query(order).all()
    return CatalogSnapshot(
        items=tuple(CatalogItem.from_model(p) for p in products),
        fetched_at=utcnow(),
    )


def list_products(
    search: str | None = None,
    in_stock_only: bool = False,
    order: str = "created",
) -> dict:
    """
    Catalog listing.

    Args:
        search: case-insensitive substring of name or barcode
        in_stock_only: hide products with quantity <= 0 (till grid)
        order: "created" (newest first) or "name" (A-Z)
    """
    products: Iterable[Product] = _ordered_query(order).all()

    term = (search or "").strip().lower()
    if term:
        products = [p for p in products if _matches(p, term)]
    if in_stock_only:
        products = [p for p in products if (p.quantity or 0) > 0]

    items = [p.to_dict() for p in products]
    return {"items": items, "count": len(items)}


def get_product(product_id: int) -> Product | None:
    return db.session.query(Product).filter_by(id=product_id).first()


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def create_product(*, patch: dict, commit: bool = True) -> Product:
    """
    Create product from a validated patch dict.

    A blank or missing barcode is replaced by a generated one; sold starts at 0.
    """
    if not (patch.get("name") or "").strip():
        raise CatalogError("name is required")

    p = Product(sold=0, price_cents=0, cost_price_cents=0, quantity=0)
    apply_product_patch(p, patch)
    if not (p.barcode or "").strip():
        p.barcode = generate_barcode()

    db.session.add(p)
    if commit:
        db.session.commit()
    return p


def update_product(*, product_id: int, patch: dict) -> Product | None:
    """
    Update a product. The cumulative sold counter is never client-writable.

    Returns the updated product, or None if not found.
    """
    p = get_product(product_id)
    if not p:
        return None

    apply_product_patch(p, patch)
    if not (p.barcode or "").strip():
        p.barcode = generate_barcode()

    db.session.commit()
    return p


def delete_product(*, product_id: int) -> bool:
    """
    Hard-delete a product. Invoices keep their own item snapshots.

    Returns True if deleted, False if not found.
    """
    p = get_product(product_id)
    if not p:
        return False

    db.session.delete(p)
    db.session.commit()
    return True
