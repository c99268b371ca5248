# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app

from ..models import Store
from ..services import store_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, NotFoundError

STORE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code"},
    required_on_create={"name"},
)

stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
def list_stores():
    try:
        stores = store_service.list_stores()
    except Exception:
        current_app.logger.exception("Failed to list stores")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"stores": [store.to_dict() for store in stores]}), 200


@stores_bp.post("")
def create_store():
    try:
        data = validate_payload(
            model=Store, payload=request.get_json(silent=True), policy=STORE_POLICY, partial=False
        )
        store = store_service.create_store(name=data.get("name"), code=data.get("code"))
        return jsonify({"store": store.to_dict()}), 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<int:store_id>")
def get_store(store_id: int):
    try:
        store = store_service.get_store(store_id)
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to get store")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"store": store.to_dict()}), 200


@stores_bp.put("/<int:store_id>")
def update_store(store_id: int):
    try:
        data = validate_payload(
            model=Store, payload=request.get_json(silent=True), policy=STORE_POLICY, partial=True
        )
        store = store_service.update_store(
            store_id,
            name=data.get("name"),
            code=data.get("code"),
        )
        return jsonify({"store": store.to_dict()}), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.delete("/<int:store_id>")
def delete_store(store_id: int):
    try:
        store_service.delete_store(store_id)
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete store")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True}), 200
