# Overview: Flask API routes for the till; parses input and returns JSON responses.

# backend/shoppos/routes/pos.py
"""
Point-of-sale routes.

Each login session owns one till (catalog snapshot, cart, scan buffer)
held in process memory. The snapshot is taken when the till is first used,
after each successful checkout, and on explicit refresh.

Every mutating route answers with the full cart so the client can redraw.
"""
from flask import Blueprint, request, jsonify, current_app, g, url_for

from ..decorators import require_auth
from ..services import checkout_service, session_service
from ..services.barcode_service import FOUND, NOT_FOUND
from ..services.cart_service import CartError
from ..services.checkout_service import CheckoutError
from shoppos.time_utils import to_utc_z

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _terminal():
    registry = current_app.extensions["pos_terminals"]
    session_id = g.session_context.session.id
    if registry.get(session_id) is None:
        # Opening a till sweeps tills whose sessions expired or were revoked
        live = session_service.live_session_ids(registry.session_ids())
        dropped = registry.retain(live | {session_id})
        if dropped:
            current_app.logger.info("Dropped %d stale till(s)", dropped)
    return registry.get_or_create(session_id)


def _int_field(data: dict, key: str) -> int | None:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _cart_response(terminal, status: int = 200, **extra):
    body = {"cart": terminal.cart.to_dict()}
    body.update(extra)
    return jsonify(body), status


def _cart_error(e: CartError, terminal):
    return jsonify({
        "error": str(e),
        "details": e.details,
        "cart": terminal.cart.to_dict(),
    }), 400


@pos_bp.get("/cart")
@require_auth
def get_cart_route():
    terminal = _terminal()
    return _cart_response(
        terminal,
        catalog_fetched_at=to_utc_z(terminal.catalog.fetched_at),
        catalog_count=len(terminal.catalog),
    )


@pos_bp.get("/catalog")
@require_auth
def get_catalog_route():
    """Till grid: the current snapshot, optionally filtered."""
    terminal = _terminal()
    in_stock = request.args.get("in_stock", "").lower() in {"1", "true", "yes"}
    items = terminal.catalog.search(request.args.get("search"), in_stock_only=in_stock)
    return jsonify({
        "fetched_at": to_utc_z(terminal.catalog.fetched_at),
        "items": [i.to_dict() for i in items],
        "count": len(items),
    })


@pos_bp.post("/catalog/refresh")
@require_auth
def refresh_catalog_route():
    terminal = _terminal()
    snapshot = terminal.refresh_catalog()
    return jsonify({"fetched_at": to_utc_z(snapshot.fetched_at), "count": len(snapshot)})


def _scan_response(terminal, code: str):
    try:
        result = terminal.scan(code)
    except CartError as e:
        return _cart_error(e, terminal)

    status = 200 if result.status == FOUND else (404 if result.status == NOT_FOUND else 409)
    return _cart_response(terminal, status, scan=result.to_dict())


@pos_bp.post("/scan")
@require_auth
def scan_route():
    """
    Resolve one complete scan (camera or already-framed wedge input).

    200 FOUND (added to cart), 404 NOT_FOUND, 409 OUT_OF_STOCK.
    """
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    if not isinstance(code, str) or not code.strip():
        return jsonify({"error": "code is required"}), 400

    return _scan_response(_terminal(), code)


@pos_bp.post("/keys")
@require_auth
def keys_route():
    """
    Feed raw keyboard-wedge events through the till's scan buffer.

    Body: {"events": [{"key": "A", "at_ms": 1000}, ...]}
    Each framed code is resolved in order; the response lists every result
    and the still-buffered text.
    """
    data = request.get_json(silent=True) or {}
    events = data.get("events")
    if not isinstance(events, list):
        return jsonify({"error": "events must be a list"}), 400

    parsed = []
    for idx, ev in enumerate(events, start=1):
        if not isinstance(ev, dict) or not isinstance(ev.get("key"), str):
            return jsonify({"error": f"Event {idx}: key is required"}), 400
        at_ms = ev.get("at_ms")
        if isinstance(at_ms, bool) or not isinstance(at_ms, (int, float)):
            return jsonify({"error": f"Event {idx}: at_ms must be a number"}), 400
        parsed.append((ev["key"], at_ms))

    terminal = _terminal()
    scans = []
    for code in terminal.scanner.feed_many(parsed):
        try:
            result = terminal.scan(code)
        except CartError as e:
            scans.append({"status": "REJECTED", "code": code, "error": str(e), "details": e.details})
            continue
        scans.append(result.to_dict())

    return _cart_response(terminal, scans=scans, pending=terminal.scanner.pending)


@pos_bp.post("/cart/lines")
@require_auth
def add_line_route():
    data = request.get_json(silent=True) or {}
    product_id = _int_field(data, "product_id")
    if product_id is None:
        return jsonify({"error": "product_id must be an integer"}), 400

    terminal = _terminal()
    try:
        terminal.add_product(product_id)
    except CartError as e:
        return _cart_error(e, terminal)

    return _cart_response(terminal)


@pos_bp.post("/cart/lines/<int:product_id>/adjust")
@require_auth
def adjust_line_route(product_id: int):
    data = request.get_json(silent=True) or {}
    delta = _int_field(data, "delta")
    if delta not in (1, -1):
        return jsonify({"error": "delta must be 1 or -1"}), 400

    terminal = _terminal()
    try:
        terminal.cart.adjust(product_id, delta)
    except CartError as e:
        return _cart_error(e, terminal)

    return _cart_response(terminal)


@pos_bp.put("/cart/lines/<int:product_id>/price")
@require_auth
def override_price_route(product_id: int):
    data = request.get_json(silent=True) or {}
    price_cents = _int_field(data, "price_cents")
    if price_cents is None:
        return jsonify({"error": "price_cents must be an integer"}), 400

    terminal = _terminal()
    try:
        terminal.cart.override_price(product_id, price_cents)
    except CartError as e:
        return _cart_error(e, terminal)

    return _cart_response(terminal)


@pos_bp.delete("/cart/lines/<int:product_id>")
@require_auth
def remove_line_route(product_id: int):
    terminal = _terminal()
    try:
        terminal.cart.remove(product_id)
    except CartError as e:
        return _cart_error(e, terminal)

    return _cart_response(terminal)


@pos_bp.post("/cart/clear")
@require_auth
def clear_cart_route():
    terminal = _terminal()
    terminal.cart.clear()
    return _cart_response(terminal)


@pos_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Commit the cart: invoice first, then one stock write per line.

    200: invoice recorded and all stock writes applied; cart cleared and the
         catalog snapshot refetched.
    400: empty cart.
    502: invoice recorded but a stock write failed; cart left as-is.
    500: invoice could not be recorded.
    """
    terminal = _terminal()

    try:
        invoice = checkout_service.checkout(terminal.cart)
    except CheckoutError as e:
        if e.partial:
            current_app.logger.warning(
                "Partial checkout for %s: applied=%s failed=%s",
                e.details.get("invoice_number"),
                e.details.get("applied_product_ids"),
                e.details.get("failed_product_id"),
            )
            return jsonify({"error": str(e), "details": e.details}), 502
        if terminal.cart.is_empty:
            return jsonify({"error": str(e)}), 400
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": str(e)}), 500

    current_app.logger.info(
        "Checkout %s: %d items, %d cents",
        invoice.invoice_number, invoice.item_count, invoice.total_cents,
    )
    terminal.refresh_catalog()

    return jsonify({
        "invoice": invoice.to_dict(),
        "receipt_url": url_for("invoices.receipt_route", invoice_id=invoice.id),
        "cart": terminal.cart.to_dict(),
    }), 201
