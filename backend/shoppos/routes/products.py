# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shoppos/routes/products.py
"""
Product management routes.

Prices travel as integer cents. A blank barcode on create or edit is
replaced with a generated ACC- code. All routes require authentication.
"""
from flask import Blueprint, request, current_app

from ..services import catalog_service, print_service
from ..services.catalog_service import CatalogError
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "cost_price_cents", "quantity", "barcode"},
    required_on_create={"name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _listing_args() -> dict:
    return {
        "search": request.args.get("search"),
        "in_stock_only": request.args.get("in_stock", "").lower() in {"1", "true", "yes"},
        "order": request.args.get("order", "created"),
    }


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products.

    Query params:
    - search: str (optional) - substring of name or barcode
    - in_stock: bool (optional) - only products with quantity > 0
    - order: "created" (newest first, default) or "name"
    """
    try:
        return catalog_service.list_products(**_listing_args())
    except CatalogError as e:
        return {"error": str(e)}, 400


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = catalog_service.create_product(patch=patch)
    except CatalogError as e:
        return {"error": str(e)}, 400

    current_app.logger.info("Created product %s (%s)", created.id, created.barcode)
    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    p = catalog_service.get_product(product_id)
    if not p:
        return {"error": "Product not found"}, 404
    return p.to_dict()


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = catalog_service.update_product(product_id=product_id, patch=patch)
    if not updated:
        return {"error": "Product not found"}, 404

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Hard delete. Past invoices keep their own copy of the line."""
    deleted = catalog_service.delete_product(product_id=product_id)
    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.get("/<int:product_id>/label")
@require_auth
def product_label_route(product_id: int):
    p = catalog_service.get_product(product_id)
    if not p:
        return {"error": "Product not found"}, 404
    return print_service.render_label_sheet([p])


@products_bp.get("/labels")
@require_auth
def label_sheet_route():
    """Label sheet for the filtered catalog (same query params as the listing)."""
    args = _listing_args()
    try:
        snapshot = catalog_service.load_snapshot(order=args["order"])
    except CatalogError as e:
        return {"error": str(e)}, 400

    items = snapshot.search(args["search"], in_stock_only=args["in_stock_only"])
    if not items:
        return {"error": "No products to print"}, 404
    return print_service.render_label_sheet(items)
