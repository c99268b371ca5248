# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes: record a sale, read one, list all. Sales are immutable."""

from flask import Blueprint, request, jsonify, current_app

from ..services import checkout_service, sales_service
from ..validation import (
    parse_sale_payload,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
)


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Record a sale and decrement stock for every line.

    400: malformed body, empty/invalid lines, insufficient stock
    404: unknown store, staff or item
    """
    try:
        sale_request = parse_sale_payload(request.get_json(silent=True))
        sale = checkout_service.create_sale(sale_request)

    except InsufficientStockError as e:
        current_app.logger.warning("Sale rejected for insufficient stock: %s", e.details)
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale %s recorded: store=%s staff=%s lines=%s total=%s",
        sale.id, sale.store_id, sale.staff_id, len(sale.lines), sale.total_price,
    )
    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Get sale with its embedded line items."""
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.get("")
def list_sales_route():
    try:
        sales = sales_service.list_sales()
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"sales": [sale.to_dict() for sale in sales]}), 200
