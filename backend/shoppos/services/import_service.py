# Overview: Service-layer operations for bulk product import from scanned documents.

"""
Bulk Import Service

Turns recognized text from a supplier invoice photo into draft products for
human review. Nothing is written until the reviewer saves the batch.

PARSING (per line longer than MIN_LINE_LENGTH):
1. Split on runs of 2+ spaces, tabs, or pipes. With at least three fields,
   field 0 is the name and the first two remaining fields that still hold
   digits (after dropping everything except digits and '.') are quantity
   and cost price.
2. Fewer than three fields: match "name  number  number" anywhere in the line.

Lines matching neither are dropped without comment. Sale price is left at 0
for the reviewer to fill in.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, asdict
from typing import Any, Callable, IO

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product
from .catalog_service import CatalogError, create_product, generate_barcode


MIN_LINE_LENGTH = 5

_FIELD_SPLIT = re.compile(r"\s{2,}|\t|\|")
_NON_NUMERIC = re.compile(r"[^\d.]")
_FALLBACK_LINE = re.compile(r"(.+?)\s+(\d+(\.\d+)?)\s+(\d+(\.\d+)?)")


class ImportTextError(ValueError):
    """Raised when bulk import fails."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class DraftProduct:
    name: str
    quantity: int
    cost_price_cents: int
    price_cents: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _to_number(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        # e.g. "1.2.3" left over after stripping
        return None


def _draft(name: str, qty_text: str, cost_text: str) -> DraftProduct:
    qty = _to_number(qty_text)
    cost = _to_number(cost_text)
    # Fractional or missing counts (e.g. "0.5") become a single unit
    quantity = int(qty) if qty is not None else 0
    return DraftProduct(
        name=name.strip(),
        quantity=quantity if quantity > 0 else 1,
        cost_price_cents=int(round(cost * 100)) if cost else 0,
    )


def parse_line(line: str) -> DraftProduct | None:
    stripped = line.strip()
    if len(stripped) <= MIN_LINE_LENGTH:
        return None

    parts = _FIELD_SPLIT.split(stripped)
    if len(parts) >= 3:
        numbers = [_NON_NUMERIC.sub("", p) for p in parts[1:]]
        numbers = [n for n in numbers if n]
        if len(numbers) >= 2:
            return _draft(parts[0], numbers[0], numbers[1])
        return None

    match = _FALLBACK_LINE.search(line)
    if match:
        return _draft(match.group(1), match.group(2), match.group(4))
    return None


def parse_product_text(text: str | None) -> list[DraftProduct]:
    drafts = []
    for line in (text or "").splitlines():
        draft = parse_line(line)
        if draft is not None and draft.name:
            drafts.append(draft)
    return drafts


def tesseract_recognizer(stream: IO[bytes], languages: str = "ara+eng") -> str:
    """Default image-to-text collaborator (Tesseract via pytesseract)."""
    import pytesseract
    from PIL import Image

    with Image.open(stream) as image:
        return pytesseract.image_to_string(image, lang=languages)


def get_recognizer() -> Callable[..., str]:
    return current_app.extensions.get("text_recognizer", tesseract_recognizer)


def recognize_image(stream: IO[bytes]) -> str:
    recognizer = get_recognizer()
    return recognizer(stream, languages=current_app.config.get("OCR_LANGUAGES", "ara+eng"))


def extract_drafts(text: str | None) -> list[DraftProduct]:
    drafts = parse_product_text(text)
    if not drafts:
        raise ImportTextError("No products could be extracted; try a clearer image")
    return drafts


def extract_drafts_from_image(stream: IO[bytes]) -> list[DraftProduct]:
    return extract_drafts(recognize_image(stream))


def _draft_int(raw: dict[str, Any], key: str, idx: int, default: int = 0) -> int:
    value = raw.get(key, default)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ImportTextError(f"Row {idx}: {key} must be a number")
    try:
        number = int(value) if isinstance(value, int) else int(float(str(value).strip()))
    except ValueError:
        raise ImportTextError(f"Row {idx}: {key} must be a number")
    if number < 0:
        raise ImportTextError(f"Row {idx}: {key} must be >= 0")
    return number


def coerce_drafts(rows: list[Any]) -> list[DraftProduct]:
    """Validate reviewer-edited rows coming back from the client."""
    if not isinstance(rows, list) or not rows:
        raise ImportTextError("products must be a non-empty list")

    drafts = []
    for idx, raw in enumerate(rows, start=1):
        if not isinstance(raw, dict):
            raise ImportTextError(f"Row {idx}: must be an object")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ImportTextError(f"Row {idx}: name is required")
        drafts.append(DraftProduct(
            name=name[:255],
            quantity=_draft_int(raw, "quantity", idx),
            cost_price_cents=_draft_int(raw, "cost_price_cents", idx),
            price_cents=_draft_int(raw, "price_cents", idx),
        ))
    return drafts


def save_drafts(drafts: list[DraftProduct]) -> list[Product]:
    """
    Insert each reviewed draft as an independent new product.

    Writes are sequential; a failure stops the batch and the error details
    say how many were already saved.
    """
    saved: list[Product] = []
    for draft in drafts:
        try:
            product = create_product(patch={
                "name": draft.name,
                "price_cents": draft.price_cents,
                "cost_price_cents": draft.cost_price_cents,
                "quantity": draft.quantity,
                "barcode": generate_barcode(),
            })
        except (SQLAlchemyError, CatalogError) as exc:
            db.session.rollback()
            raise ImportTextError(
                "Failed to save imported products",
                {"saved": len(saved), "failed_name": draft.name},
            ) from exc
        saved.append(product)
    return saved
