"""
Checkout Service - turns a multi-line sale request into a recorded sale.

Two phases, one database transaction:

1. Validation (read-only)
   - at least one line; every quantity > 0; every explicit price >= 0
   - store and staff resolve
   - every item resolves and has enough stock for the summed quantity of
     all lines that reference it (stock read inside the write transaction)
   - totals hook (validation.enforce_sale_totals)

2. Commit
   - per line, in input order, decrement_stock() (atomic per item)
   - append the sale and its lines to the ledger

If any decrement fails in phase 2 (stock changed under us), the
transaction is rolled back: every decrement already applied for this sale is
undone with it and the ledger never sees the sale. The error carries the
lines that were rolled back.
"""

from __future__ import annotations

from flask import current_app

from ..models import Sale
from ..validation import (
    SaleRequest,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    INT64_MAX,
    enforce_sale_totals,
)
from . import inventory_service, sales_service, staff_service, store_service
from .concurrency import run_in_write_transaction


def _check_lines(request: SaleRequest) -> None:
    if not request.lines:
        raise ValidationError("Sale must have at least one item")

    for index, line in enumerate(request.lines):
        if line.quantity <= 0:
            raise ValidationError(
                f"items[{index}].quantity must be > 0",
                details={"index": index, "itemId": line.item_id},
            )
        if line.price is not None and line.price < 0:
            raise ValidationError(
                f"items[{index}].price must be >= 0",
                details={"index": index, "itemId": line.item_id},
            )
        if line.quantity > INT64_MAX or (line.price is not None and line.price > INT64_MAX):
            raise ValidationError(
                f"items[{index}] is out of range",
                details={"index": index, "itemId": line.item_id},
            )

    if request.total_price is not None and request.total_price < 0:
        raise ValidationError("totalPrice must be >= 0")
    if request.deposit is not None and request.deposit < 0:
        raise ValidationError("deposit must be >= 0")
    for name, value in (("totalPrice", request.total_price), ("deposit", request.deposit)):
        if value is not None and value > INT64_MAX:
            raise ValidationError(f"{name} is out of range")


def _check_references(request: SaleRequest) -> None:
    if not store_service.store_exists(request.store_id):
        raise NotFoundError("Store not found", details={"storeId": request.store_id})
    if not staff_service.staff_exists(request.staff_id):
        raise NotFoundError("Staff not found", details={"staffId": request.staff_id})


def _check_stock(request: SaleRequest) -> dict:
    items = inventory_service.lock_items(line.item_id for line in request.lines)

    requested: dict[int, int] = {}
    for line in request.lines:
        if line.item_id not in items:
            raise NotFoundError("Item not found", details={"itemId": line.item_id})
        requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity

    insufficient = []
    for item_id, quantity in requested.items():
        stock = items[item_id].stock
        if quantity > stock:
            insufficient.append({
                "itemId": item_id,
                "requestedQuantity": quantity,
                "stock": stock,
            })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock",
            details={"items": insufficient},
        )
    return items


def _apply_decrements(request: SaleRequest) -> None:
    applied: list[dict] = []
    for line in request.lines:
        try:
            inventory_service.decrement_stock(line.item_id, line.quantity, commit=False)
        except InsufficientStockError as exc:
            # The enclosing transaction rollback reverses everything in `applied`
            exc.details["rolledBack"] = applied
            raise
        applied.append({"itemId": line.item_id, "quantity": line.quantity})


def create_sale(request: SaleRequest) -> Sale:
    """
    Validate, decrement stock for, and record one sale.

    Raises:
        ValidationError: empty lines, bad quantity/price/totals
        NotFoundError: unknown store, staff or item
        InsufficientStockError: not enough stock (at validation or commit time)
    """
    _check_lines(request)
    totals_policy = current_app.config.get("SALE_TOTALS_POLICY", "record")

    def _op():
        _check_references(request)
        items = _check_stock(request)

        # Unit prices are snapshotted now; an omitted price charges the current one
        priced = [
            (line.item_id, items[line.item_id].price if line.price is None else line.price, line.quantity)
            for line in request.lines
        ]

        total_price = request.total_price
        if total_price is None:
            total_price = sum(price * quantity for _, price, quantity in priced)
            if total_price > INT64_MAX:
                raise ValidationError("totalPrice is out of range", details={"totalPrice": total_price})
        enforce_sale_totals(totals_policy, total_price, [(price, quantity) for _, price, quantity in priced])
        deposit = total_price if request.deposit is None else request.deposit

        _apply_decrements(request)

        return sales_service.append_sale(
            store_id=request.store_id,
            staff_id=request.staff_id,
            total_price=total_price,
            deposit=deposit,
            lines=priced,
            commit=False,
        )

    return run_in_write_transaction(_op)
