from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum unit price: 999,999,999 currency units
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = 999_999_999

# SQLite INTEGER is a signed 64-bit value
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate item code)."""


class NotFoundError(LookupError):
    """404-level reference to an item, staff member, store or sale that does not exist."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def __str__(self) -> str:
        # LookupError.__str__ would repr() the message
        return self.args[0] if self.args else ""


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the item's current stock (400, validation class)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary), as wire names
    - required_on_create: wire fields required for POST
    - aliases: wire name -> column key (camelCase JSON vs snake_case columns)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)

    def column_key(self, wire_name: str) -> str:
        return self.aliases.get(wire_name, wire_name)


@dataclass(frozen=True)
class SaleLineRequest:
    item_id: int
    quantity: int
    # None = charge the item's current price
    price: int | None = None


@dataclass(frozen=True)
class SaleRequest:
    store_id: int
    staff_id: int
    lines: list[SaleLineRequest]
    total_price: int | None = None
    deposit: int | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(name: str, value: Any) -> int:
    """Strict integer parsing: rejects floats, booleans, scientific notation and out-of-range values."""
    parsed = _parse_int(name, value)
    if not INT64_MIN <= parsed <= INT64_MAX:
        raise ValidationError(f"{name} is out of range")
    return parsed


def is_storable_id(value: int) -> bool:
    """Ids the database could ever have assigned; anything else cannot exist."""
    return 0 < value <= INT64_MAX


def _parse_int(name: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _coerce_value(col, wire_name: str, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(wire_name, value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{wire_name} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if policy.column_key(k) not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        key = policy.column_key(k)
        col = cols[key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[key] = None
            continue

        val = _coerce_value(col, k, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[key] = val

    return patch


def enforce_rules_item(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price" in patch:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    if "stock" in patch:
        if patch["stock"] < 0:
            raise ValidationError("stock must be >= 0")
        if patch["stock"] > INT64_MAX:
            raise ValidationError("stock is out of range")


def _require_object(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError(f"{what} must be a JSON object")
    return payload


def parse_sale_payload(payload: Any) -> SaleRequest:
    """
    Shape-check a POST /api/sales body and convert it to a SaleRequest.

    Only types and presence are checked here; business rules (non-empty
    lines, positive quantities, stock) belong to the checkout service.
    """
    payload = _require_object(payload, "Sale payload")

    for required in ("storeId", "staffId", "items"):
        if payload.get(required) is None:
            raise ValidationError(f"{required} is required")

    raw_lines = payload["items"]
    if not isinstance(raw_lines, list):
        raise ValidationError("items must be a list")

    lines = []
    for index, raw in enumerate(raw_lines):
        raw = _require_object(raw, f"items[{index}]")
        if raw.get("itemId") is None:
            raise ValidationError(f"items[{index}].itemId is required")
        if raw.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")
        price = raw.get("price")
        lines.append(SaleLineRequest(
            item_id=coerce_int(f"items[{index}].itemId", raw["itemId"]),
            quantity=coerce_int(f"items[{index}].quantity", raw["quantity"]),
            price=None if price is None else coerce_int(f"items[{index}].price", price),
        ))

    total_price = payload.get("totalPrice")
    deposit = payload.get("deposit")

    return SaleRequest(
        store_id=coerce_int("storeId", payload["storeId"]),
        staff_id=coerce_int("staffId", payload["staffId"]),
        lines=lines,
        total_price=None if total_price is None else coerce_int("totalPrice", total_price),
        deposit=None if deposit is None else coerce_int("deposit", deposit),
    )


def enforce_sale_totals(policy: str, total_price: int, line_prices: list[tuple[int, int]]) -> None:
    """
    The single hook for reconciling client totals against line extensions.

    line_prices is [(unit_price, quantity), ...]. Under the default "record"
    policy totals are trusted as sent; "strict" rejects a mismatch.
    """
    if policy != "strict":
        return

    expected = sum(price * quantity for price, quantity in line_prices)
    if total_price != expected:
        raise ValidationError(
            "totalPrice does not match the sum of line items",
            details={"totalPrice": total_price, "expected": expected},
        )
