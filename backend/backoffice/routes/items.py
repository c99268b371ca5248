# Overview: Flask API routes for item (inventory) operations; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..models import Item
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "description", "price", "stock"},
    required_on_create={"name", "price"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("")
def list_items():
    try:
        items = inventory_service.list_items()
    except Exception:
        current_app.logger.exception("Failed to list items")
        return {"error": "Internal server error"}, 500
    return {"items": [item.to_dict() for item in items], "count": len(items)}, 200


@items_bp.post("")
def create_item():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        item = inventory_service.create_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create item")
        return {"error": "Internal server error"}, 500

    return {"item": item.to_dict()}, 201


@items_bp.get("/<int:item_id>")
def get_item(item_id: int):
    try:
        item = inventory_service.get_item(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to get item")
        return {"error": "Internal server error"}, 500
    return {"item": item.to_dict()}, 200


@items_bp.get("/code/<string:code>")
def get_item_by_code(code: str):
    """Barcode scan lookup."""
    try:
        item = inventory_service.get_item_by_code(code)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to look up item code")
        return {"error": "Internal server error"}, 500
    return {"item": item.to_dict()}, 200


@items_bp.put("/<int:item_id>")
def update_item(item_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
        item = inventory_service.update_item(item_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update item")
        return {"error": "Internal server error"}, 500

    return {"item": item.to_dict()}, 200


@items_bp.delete("/<int:item_id>")
def delete_item(item_id: int):
    try:
        inventory_service.delete_item(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return {"error": "Internal server error"}, 500
    return {"ok": True}, 200
