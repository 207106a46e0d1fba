# Overview: Flask API routes for bulk product import; parses input and returns JSON responses.

"""
Import Routes

Two-step flow: scan/parse returns editable drafts without touching the
catalog, then save inserts the reviewed rows as new products.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services import import_service
from ..services.import_service import ImportTextError


imports_bp = Blueprint("imports", __name__, url_prefix="/api/imports")

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "bmp", "tif", "tiff"}


def _drafts_response(drafts):
    return jsonify({
        "drafts": [d.to_dict() for d in drafts],
        "count": len(drafts),
    })


@imports_bp.post("/scan")
@require_auth
def scan_image_route():
    if "file" not in request.files:
        return jsonify({"error": "file is required"}), 400

    file = request.files["file"]
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in IMAGE_EXTENSIONS:
        return jsonify({"error": "Unsupported file format"}), 400

    try:
        drafts = import_service.extract_drafts_from_image(file.stream)
    except ImportTextError as e:
        return jsonify({"error": str(e), "details": e.details}), 422
    except Exception:
        current_app.logger.exception("Failed to read text from image %s", filename)
        return jsonify({"error": "Failed to read image"}), 500

    return _drafts_response(drafts), 200


@imports_bp.post("/parse")
@require_auth
def parse_text_route():
    data = request.get_json(silent=True) or {}
    text = data.get("text")
    if not isinstance(text, str):
        return jsonify({"error": "text is required"}), 400

    try:
        drafts = import_service.extract_drafts(text)
    except ImportTextError as e:
        return jsonify({"error": str(e), "details": e.details}), 422

    return _drafts_response(drafts), 200


@imports_bp.post("/save")
@require_auth
def save_drafts_route():
    data = request.get_json(silent=True) or {}

    try:
        drafts = import_service.coerce_drafts(data.get("products"))
    except ImportTextError as e:
        return jsonify({"error": str(e)}), 400

    try:
        saved = import_service.save_drafts(drafts)
    except ImportTextError as e:
        current_app.logger.warning("Bulk import stopped: %s %s", e, e.details)
        return jsonify({"error": str(e), "details": e.details}), 500

    current_app.logger.info("Imported %d products", len(saved))
    return jsonify({
        "saved": len(saved),
        "products": [p.to_dict() for p in saved],
    }), 201
