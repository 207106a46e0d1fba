# Overview: Barcode resolution and keyboard-wedge scan framing for the till.

"""
Barcode Service

Resolves a raw scan against the terminal's catalog snapshot.

MATCHING RULES:
1. Strip characters outside printable ASCII (scanner control bytes) and trim.
2. Exact match against each product's stored barcode.
3. Otherwise compare alphanumeric-only forms of both sides. This absorbs
   GS1 / keyboard-layout artifacts such as "(093)0-{{}".

First match in catalog order wins. Two products that normalize to the same
value are not disambiguated.

"Not found" and "out of stock" are normal outcomes, not errors.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

FOUND = "FOUND"
NOT_FOUND = "NOT_FOUND"
OUT_OF_STOCK = "OUT_OF_STOCK"

ENTER_KEYS = {"Enter", "\r", "\n"}


def clean_scan(raw: str | None) -> str:
    return _NON_PRINTABLE.sub("", raw or "").strip()


def normalize_barcode(value: str | None) -> str:
    return _NON_ALNUM.sub("", value or "")


@dataclass(frozen=True)
class ScanResult:
    status: str
    code: str
    product: Any = None

    @property
    def found(self) -> bool:
        return self.status == FOUND

    def to_dict(self) -> dict:
        product = self.product.to_dict() if self.product is not None else None
        return {"status": self.status, "code": self.code, "product": product}


def find_by_barcode(raw: str | None, products: Iterable[Any]) -> tuple[str, Any]:
    """Return (cleaned_code, product-or-None). Pure lookup."""
    products = list(products)
    code = clean_scan(raw)

    for p in products:
        if p.barcode == code:
            return code, p

    wanted = normalize_barcode(code)
    if wanted:
        for p in products:
            if normalize_barcode(p.barcode) == wanted:
                return code, p

    return code, None


def resolve_barcode(raw: str | None, products: Iterable[Any]) -> ScanResult:
    code, product = find_by_barcode(raw, products)
    if product is None:
        return ScanResult(status=NOT_FOUND, code=code)
    if (product.quantity or 0) <= 0:
        return ScanResult(status=OUT_OF_STOCK, code=code, product=product)
    return ScanResult(status=FOUND, code=code, product=product)


class ScanBuffer:
    """
    Frames keyboard-wedge scanner input.

    Hardware scanners emit characters within a few milliseconds of each
    other; a gap longer than ``gap_ms`` means a human is typing and the
    buffer starts over. Enter flushes the buffer.
    """

    def __init__(self, gap_ms: int = 100):
        self.gap_ms = gap_ms
        self._buffer: list[str] = []
        self._last_key_ms: float | None = None

    @property
    def pending(self) -> str:
        return "".join(self._buffer)

    def reset(self) -> None:
        self._buffer = []

    def feed(self, key: str, at_ms: float) -> str | None:
        """
        Feed one key event. Returns the framed code when Enter completes a
        scan of more than one character, otherwise None.
        """
        if self._last_key_ms is not None and at_ms - self._last_key_ms > self.gap_ms:
            self.reset()
        self._last_key_ms = at_ms

        if key in ENTER_KEYS:
            code = self.pending
            if len(code) > 1:
                self.reset()
                return code.strip()
            return None

        # Modifier and navigation keys arrive as names ("Shift", "Tab")
        if len(key) == 1:
            self._buffer.append(key)
        return None

    def feed_many(self, events: Iterable[tuple[str, float]]) -> list[str]:
        codes = []
        for key, at_ms in events:
            code = self.feed(key, at_ms)
            if code:
                codes.append(code)
        return codes
