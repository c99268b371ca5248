# Overview: Flask API routes for staff operations; parses input and returns JSON responses.

"""
Staff routes.

SECURITY: password is accepted on create/update only, hashed by the
service, and never echoed back.
"""

from flask import Blueprint, jsonify, request, current_app

from ..models import Staff
from ..services import staff_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, NotFoundError

STAFF_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "storeId", "code"},
    required_on_create={"name", "storeId"},
    aliases={"storeId": "store_id"},
)

STAFF_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "storeId"},
    aliases={"storeId": "store_id"},
)

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


def _split_password(payload):
    """Pull the password out of the body; it has no column to validate against."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    password = payload.pop("password", None)
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")
    return payload, password


@staff_bp.get("")
def list_staff():
    try:
        staff = staff_service.list_staff()
    except Exception:
        current_app.logger.exception("Failed to list staff")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"staff": [member.to_dict() for member in staff]}), 200


@staff_bp.post("")
def create_staff():
    try:
        payload, password = _split_password(request.get_json(silent=True))
        data = validate_payload(model=Staff, payload=payload, policy=STAFF_CREATE_POLICY, partial=False)
        staff = staff_service.create_staff(
            name=data.get("name"),
            store_id=data.get("store_id"),
            password=password,
            code=data.get("code"),
        )
        return jsonify({"staff": staff.to_dict()}), 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create staff")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.get("/<int:staff_id>")
def get_staff(staff_id: int):
    try:
        staff = staff_service.get_staff(staff_id)
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to get staff")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"staff": staff.to_dict()}), 200


@staff_bp.get("/code/<string:code>")
def get_staff_by_code(code: str):
    """Badge scan lookup."""
    try:
        staff = staff_service.get_staff_by_code(code)
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to look up staff code")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"staff": staff.to_dict()}), 200


@staff_bp.put("/<int:staff_id>")
def update_staff(staff_id: int):
    try:
        payload, password = _split_password(request.get_json(silent=True))
        data = validate_payload(model=Staff, payload=payload, policy=STAFF_UPDATE_POLICY, partial=True)
        staff = staff_service.update_staff(
            staff_id,
            name=data.get("name"),
            store_id=data.get("store_id"),
            password=password,
        )
        return jsonify({"staff": staff.to_dict()}), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to update staff")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.delete("/<int:staff_id>")
def delete_staff(staff_id: int):
    try:
        staff_service.delete_staff(staff_id)
    except NotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete staff")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True}), 200
