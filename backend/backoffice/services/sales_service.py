"""
Sales Ledger

Append-only store of completed sales. A sale and all of its lines are
written in one flush inside the caller's transaction (or in their own
transaction when commit=True), so no reader ever sees a sale without its
lines. There is no update or delete path.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Sale, SaleLine
from ..validation import ValidationError, NotFoundError, is_storable_id
from ..time_utils import utcnow
from .concurrency import run_in_write_transaction


def append_sale(
    *,
    store_id: int,
    staff_id: int,
    total_price: int,
    deposit: int,
    lines: list[tuple[int, int, int]],
    sale_at: datetime | None = None,
    commit: bool = True,
) -> Sale:
    """
    Persist a sale with its lines and assign its id.

    lines is [(item_id, unit_price, quantity), ...] in input order; the
    order is kept through SaleLine.position.
    """
    if not lines:
        raise ValidationError("Sale must have at least one item")

    def _op():
        sale = Sale(
            store_id=store_id,
            staff_id=staff_id,
            total_price=total_price,
            deposit=deposit,
            sale_at=sale_at or utcnow(),
        )
        for position, (item_id, price, quantity) in enumerate(lines):
            sale.lines.append(SaleLine(
                item_id=item_id,
                position=position,
                price=price,
                quantity=quantity,
            ))

        db.session.add(sale)
        db.session.flush()
        return sale

    if not commit:
        return _op()
    return run_in_write_transaction(_op)


def get_sale(sale_id: int) -> Sale:
    if not is_storable_id(sale_id):
        raise NotFoundError("Sale not found", details={"saleId": sale_id})
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", details={"saleId": sale_id})
    return sale


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.id.asc()).all()
