# Overview: Pytest coverage for barcode resolution and keyboard-wedge scan framing.

"""
Barcode Resolver Tests

Verifies:
- Scan cleanup (non-printable characters stripped, whitespace trimmed)
- Exact match wins over normalized match; first match in catalog order wins
- Status is FOUND / OUT_OF_STOCK / NOT_FOUND
- ScanBuffer frames fast keystrokes, resets on slow gaps, ignores named keys
"""

import pytest

from shoppos.services.barcode_service import (
    FOUND,
    NOT_FOUND,
    OUT_OF_STOCK,
    ScanBuffer,
    clean_scan,
    normalize_barcode,
    resolve_barcode,
)
from shoppos.services.catalog_service import CatalogItem


def item(id, barcode, quantity=5, name=None):
    return CatalogItem(
        id=id,
        name=name or f"Item {id}",
        barcode=barcode,
        price_cents=1000,
        cost_price_cents=400,
        quantity=quantity,
    )


# =============================================================================
# CLEANUP / NORMALIZATION
# =============================================================================


class TestCleanup:

    def test_clean_scan_strips_control_characters(self):
        assert clean_scan("\x02ACC-123\x03\r\n") == "ACC-123"

    def test_clean_scan_strips_non_ascii(self):
        assert clean_scan("  ACC-123\u200f ") == "ACC-123"

    def test_clean_scan_none(self):
        assert clean_scan(None) == ""

    def test_normalize_keeps_only_alphanumerics(self):
        assert normalize_barcode("ACC-12 3/x") == "ACC123x"


# =============================================================================
# RESOLUTION
# =============================================================================


class TestResolveBarcode:

    def test_exact_match_found(self):
        catalog = [item(1, "ACC-123")]
        result = resolve_barcode("ACC-123", catalog)
        assert result.status == FOUND
        assert result.product.id == 1
        assert result.found

    def test_normalized_match(self):
        catalog = [item(1, "ACC-123")]
        result = resolve_barcode("ACC123", catalog)
        assert result.status == FOUND
        assert result.product.id == 1

    def test_exact_match_beats_earlier_normalized_match(self):
        catalog = [item(1, "ACC-123"), item(2, "ACC123")]
        result = resolve_barcode("ACC123", catalog)
        assert result.product.id == 2

    def test_first_normalized_match_in_catalog_order_wins(self):
        catalog = [item(1, "ACC 123"), item(2, "ACC-123")]
        result = resolve_barcode("ACC/123", catalog)
        assert result.product.id == 1

    def test_out_of_stock(self):
        catalog = [item(1, "ACC-123", quantity=0)]
        result = resolve_barcode("ACC-123", catalog)
        assert result.status == OUT_OF_STOCK
        assert result.product.id == 1
        assert not result.found

    def test_not_found(self):
        result = resolve_barcode("ACC-999", [item(1, "ACC-123")])
        assert result.status == NOT_FOUND
        assert result.product is None
        assert result.code == "ACC-999"

    def test_punctuation_only_scan_does_not_match_punctuation_barcode(self):
        # Normalized input is empty, so no normalized comparison happens
        catalog = [item(1, "--")]
        assert resolve_barcode("//", catalog).status == NOT_FOUND

    def test_to_dict(self):
        result = resolve_barcode("ACC-123", [item(1, "ACC-123")])
        data = result.to_dict()
        assert data["status"] == FOUND
        assert data["product"]["barcode"] == "ACC-123"


# =============================================================================
# SCAN FRAMING
# =============================================================================


def type_fast(buffer, text, start_ms=0, step_ms=10):
    t = start_ms
    for ch in text:
        buffer.feed(ch, t)
        t += step_ms
    return t


class TestScanBuffer:

    def test_fast_keys_then_enter_flush(self):
        buf = ScanBuffer(gap_ms=100)
        t = type_fast(buf, "ACC-123")
        assert buf.feed("Enter", t) == "ACC-123"
        assert buf.pending == ""

    def test_slow_gap_resets_buffer(self):
        buf = ScanBuffer(gap_ms=100)
        t = type_fast(buf, "xyz")
        t = type_fast(buf, "ACC-1", start_ms=t + 500)
        assert buf.feed("Enter", t) == "ACC-1"

    def test_gap_equal_to_threshold_does_not_reset(self):
        buf = ScanBuffer(gap_ms=100)
        buf.feed("A", 0)
        buf.feed("B", 100)
        assert buf.pending == "AB"

    def test_single_character_is_not_a_scan(self):
        buf = ScanBuffer(gap_ms=100)
        buf.feed("A", 0)
        assert buf.feed("Enter", 10) is None

    def test_enter_after_slow_gap_flushes_nothing(self):
        buf = ScanBuffer(gap_ms=100)
        t = type_fast(buf, "ACC-123")
        assert buf.feed("Enter", t + 1000) is None

    def test_named_keys_are_ignored(self):
        buf = ScanBuffer(gap_ms=100)
        buf.feed("Shift", 0)
        buf.feed("A", 5)
        buf.feed("Shift", 10)
        buf.feed("B", 15)
        assert buf.feed("Enter", 20) == "AB"

    @pytest.mark.parametrize("enter", ["Enter", "\r", "\n"])
    def test_enter_variants(self, enter):
        buf = ScanBuffer(gap_ms=100)
        t = type_fast(buf, "XY")
        assert buf.feed(enter, t) == "XY"

    def test_feed_many_returns_each_framed_code(self):
        buf = ScanBuffer(gap_ms=100)
        events = [("A", 0), ("B", 5), ("Enter", 10), ("C", 15), ("D", 20), ("Enter", 25), ("E", 30)]
        assert buf.feed_many(events) == ["AB", "CD"]
        assert buf.pending == "E"
