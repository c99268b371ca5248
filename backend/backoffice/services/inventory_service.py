# Overview: Service-layer operations for inventory; encapsulates item CRUD and stock mutation.

"""
Inventory invariants (authoritative)

- Item.stock and Item.price are never negative. Writes that would break
  this are rejected, never clamped.
- Stock only goes down through decrement_stock(), which is a single
  conditional UPDATE (... WHERE stock >= :quantity). Two concurrent
  decrements on one row serialize in the database; the second one is
  evaluated against the first one's result.
- Deleted items are soft-deleted (is_deleted=True) so sale lines keep a
  valid reference. They are invisible to every read and write here.
- Codes are unique among live items. Missing codes are generated.
"""

from __future__ import annotations

import uuid

from ..extensions import db
from ..models import Item
from ..validation import (
    ValidationError,
    ConflictError,
    NotFoundError,
    InsufficientStockError,
    enforce_rules_item,
    is_storable_id,
)
from .concurrency import lock_for_update, run_in_write_transaction

ITEM_MUTABLE_FIELDS = {"code", "name", "description", "price", "stock"}


def generate_item_code() -> str:
    return f"ITEM-{uuid.uuid4().hex[:8]}"


def _live_items():
    return db.session.query(Item).filter(Item.is_deleted.is_(False))


def _require_storable(item_id: int) -> None:
    if not is_storable_id(item_id):
        raise NotFoundError("Item not found", details={"itemId": item_id})


def _check_required(fields: dict, *, partial: bool) -> None:
    if not partial:
        for required in ("name", "price"):
            if fields.get(required) is None:
                raise ValidationError(f"{required} is required")
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValidationError("name cannot be blank")
    if partial and "code" in fields and not (fields["code"] or "").strip():
        raise ValidationError("code cannot be blank")
    for numeric in ("price", "stock"):
        if numeric in fields and fields[numeric] is None:
            raise ValidationError(f"{numeric} cannot be null")
    enforce_rules_item(fields)


def _ensure_code_available(code: str, *, exclude_id: int | None = None) -> None:
    query = _live_items().filter(Item.code == code)
    if exclude_id is not None:
        query = query.filter(Item.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Item code already exists: {code}")


def apply_item_patch(item: Item, fields: dict) -> None:
    for k, v in fields.items():
        if k not in ITEM_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def list_items() -> list[Item]:
    return _live_items().order_by(Item.id.asc()).all()


def get_item(item_id: int) -> Item:
    _require_storable(item_id)
    item = _live_items().filter(Item.id == item_id).first()
    if item is None:
        raise NotFoundError("Item not found", details={"itemId": item_id})
    return item


def get_item_by_code(code: str) -> Item:
    item = _live_items().filter(Item.code == code).first()
    if item is None:
        raise NotFoundError("Item not found", details={"code": code})
    return item


def item_exists(item_id: int) -> bool:
    if not is_storable_id(item_id):
        return False
    return db.session.query(_live_items().filter(Item.id == item_id).exists()).scalar()


def create_item(fields: dict) -> Item:
    """
    Create an item from a validated, column-keyed patch dict.

    Raises:
        ValidationError: blank name, negative price/stock, missing price
        ConflictError: code already used by a live item
    """
    _check_required(fields, partial=False)

    def _op():
        code = fields.get("code") or generate_item_code()
        _ensure_code_available(code)

        item = Item(stock=0)
        apply_item_patch(item, fields)
        item.code = code

        db.session.add(item)
        db.session.flush()
        return item

    return run_in_write_transaction(_op)


def update_item(item_id: int, fields: dict) -> Item:
    """Apply a partial update; NotFoundError if the item is absent or deleted."""
    _check_required(fields, partial=True)
    _require_storable(item_id)

    def _op():
        item = lock_for_update(_live_items().filter(Item.id == item_id)).first()
        if item is None:
            raise NotFoundError("Item not found", details={"itemId": item_id})

        if fields.get("code") and fields["code"] != item.code:
            _ensure_code_available(fields["code"], exclude_id=item.id)

        apply_item_patch(item, fields)
        return item

    return run_in_write_transaction(_op)


def delete_item(item_id: int) -> None:
    _require_storable(item_id)

    def _op():
        item = lock_for_update(_live_items().filter(Item.id == item_id)).first()
        if item is None:
            raise NotFoundError("Item not found", details={"itemId": item_id})
        item.is_deleted = True

    run_in_write_transaction(_op)


def decrement_stock(item_id: int, quantity: int, *, commit: bool = True) -> Item:
    """
    Atomically take `quantity` units out of an item's stock.

    The check and the write are one statement:
        UPDATE items SET stock = stock - :q WHERE id = :id AND stock >= :q
    so the database serializes concurrent decrements on the same row.

    commit=False runs inside the caller's transaction (checkout uses this so
    that every line of a sale commits or rolls back together).

    Raises:
        ValidationError: quantity <= 0
        NotFoundError: item absent or deleted
        InsufficientStockError: quantity > current stock
    """
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    _require_storable(item_id)

    def _op():
        updated = (
            _live_items()
            .filter(Item.id == item_id, Item.stock >= quantity)
            .update(
                {
                    Item.stock: Item.stock - quantity,
                    Item.version_id: Item.version_id + 1,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            current = _live_items().filter(Item.id == item_id).with_entities(Item.stock).first()
            if current is None:
                raise NotFoundError("Item not found", details={"itemId": item_id})
            raise InsufficientStockError(
                "Insufficient stock",
                details={"items": [{
                    "itemId": item_id,
                    "requestedQuantity": quantity,
                    "stock": current.stock,
                }]},
            )
        return db.session.get(Item, item_id, populate_existing=True)

    if not commit:
        return _op()
    return run_in_write_transaction(_op)


def lock_items(item_ids) -> dict[int, Item]:
    """
    Load live items by id for a write, locking their rows where the database
    supports it. Missing or deleted ids are simply absent from the result.
    """
    ids = sorted({item_id for item_id in item_ids if is_storable_id(item_id)})
    if not ids:
        return {}
    rows = lock_for_update(_live_items().filter(Item.id.in_(ids)).order_by(Item.id.asc())).all()
    return {item.id: item for item in rows}
