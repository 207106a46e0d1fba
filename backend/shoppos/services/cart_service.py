"""
Cart Service - in-memory till state

The cart is keyed by product id, so a product can only ever occupy one line;
adding it again increments that line.

STOCK CEILING: each line remembers the stock seen in the catalog snapshot it
was last added from. Nothing here re-reads live stock; commit does not
either (see checkout_service).
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable

from .barcode_service import ScanBuffer, ScanResult, resolve_barcode, FOUND
from .catalog_service import CatalogItem, CatalogSnapshot, load_snapshot


class CartError(ValueError):
    """Raised when a cart operation is rejected. Line quantities are left unchanged."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CartLine:
    product_id: int
    name: str
    barcode: str
    price_cents: int
    cost_price_cents: int
    stock: int
    quantity: int = 1

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "stock": self.stock,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
        }


class Cart:
    def __init__(self):
        self._lines: "OrderedDict[int, CartLine]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._lines

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_cents(self) -> int:
        return sum(line.line_total_cents for line in self._lines.values())

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def line(self, product_id: int) -> CartLine:
        line = self._lines.get(product_id)
        if line is None:
            raise CartError("Product is not in the cart", {"product_id": product_id})
        return line

    def add(self, product: CatalogItem) -> CartLine:
        if (product.quantity or 0) <= 0:
            raise CartError(
                f'"{product.name}" is out of stock',
                {"product_id": product.id, "stock": product.quantity},
            )

        existing = self._lines.get(product.id)
        if existing is not None:
            # Ceiling follows the snapshot the product was just taken from
            existing.stock = product.quantity
            if existing.quantity >= existing.stock:
                raise CartError(
                    "Maximum available quantity reached",
                    {"product_id": product.id, "stock": existing.stock},
                )
            existing.quantity += 1
            return existing

        line = CartLine(
            product_id=product.id,
            name=product.name,
            barcode=product.barcode,
            price_cents=product.price_cents,
            cost_price_cents=product.cost_price_cents or 0,
            stock=product.quantity,
        )
        self._lines[product.id] = line
        return line

    def remove(self, product_id: int) -> None:
        if self._lines.pop(product_id, None) is None:
            raise CartError("Product is not in the cart", {"product_id": product_id})

    def adjust(self, product_id: int, delta: int) -> CartLine:
        """Step quantity by delta; floor 1 (no-op below), ceiling stock (rejected)."""
        line = self.line(product_id)
        new_qty = line.quantity + delta
        if new_qty > line.stock:
            raise CartError(
                "Requested quantity is not available",
                {"product_id": product_id, "stock": line.stock},
            )
        if new_qty < 1:
            return line
        line.quantity = new_qty
        return line

    def override_price(self, product_id: int, price_cents: int) -> CartLine:
        line = self.line(product_id)
        if price_cents < 0:
            raise CartError("price_cents must be >= 0", {"product_id": product_id})
        line.price_cents = price_cents
        return line

    def clear(self) -> None:
        self._lines.clear()

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines.values()],
            "line_count": len(self._lines),
            "item_count": self.item_count,
            "total_cents": self.total_cents,
        }


@dataclass
class PosTerminal:
    """Working state for one logged-in till: snapshot, cart, scan framing."""
    catalog: CatalogSnapshot = field(default_factory=CatalogSnapshot)
    cart: Cart = field(default_factory=Cart)
    scanner: ScanBuffer = field(default_factory=ScanBuffer)

    def refresh_catalog(self) -> CatalogSnapshot:
        self.catalog = load_snapshot()
        return self.catalog

    def add_product(self, product_id: int) -> CartLine:
        product = self.catalog.get(product_id)
        if product is None:
            raise CartError("Product not found in catalog", {"product_id": product_id})
        return self.cart.add(product)

    def scan(self, raw: str) -> ScanResult:
        """Resolve a scan against the snapshot and add it when it is sellable."""
        result = resolve_barcode(raw, self.catalog)
        if result.status == FOUND:
            self.cart.add(result.product)
        return result


class TerminalRegistry:
    """Per-session till state held in process memory (never persisted)."""

    def __init__(self, scan_gap_ms: int = 100):
        self.scan_gap_ms = scan_gap_ms
        self._terminals: dict[int, PosTerminal] = {}
        self._lock = threading.Lock()

    def get(self, session_id: int) -> PosTerminal | None:
        with self._lock:
            return self._terminals.get(session_id)

    def get_or_create(self, session_id: int) -> PosTerminal:
        with self._lock:
            terminal = self._terminals.get(session_id)
        if terminal is not None:
            return terminal

        # Snapshot is loaded before the terminal becomes visible to other requests
        fresh = PosTerminal(scanner=ScanBuffer(gap_ms=self.scan_gap_ms))
        fresh.refresh_catalog()
        with self._lock:
            return self._terminals.setdefault(session_id, fresh)

    def session_ids(self) -> list[int]:
        with self._lock:
            return list(self._terminals)

    def retain(self, live_session_ids: Iterable[int]) -> int:
        """Drop every terminal whose session is not in live_session_ids; returns how many."""
        keep = set(live_session_ids)
        with self._lock:
            stale = [sid for sid in self._terminals if sid not in keep]
            for sid in stale:
                del self._terminals[sid]
        return len(stale)

    def discard(self, session_id: int) -> None:
        with self._lock:
            self._terminals.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._terminals)
