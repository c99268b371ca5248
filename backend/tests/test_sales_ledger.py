# Overview: Pytest coverage for the append-only sales ledger.

import pytest
from sqlalchemy.exc import IntegrityError

from backoffice.models import Sale, SaleLine
from backoffice.services import sales_service
from backoffice.validation import ValidationError, NotFoundError


def test_append_assigns_id_and_keeps_line_order(db_session, main_store, cashier, make_item):
    a, b, c = make_item(), make_item(), make_item()

    sale = sales_service.append_sale(
        store_id=main_store.id,
        staff_id=cashier.id,
        total_price=70,
        deposit=100,
        lines=[(c.id, 30, 1), (a.id, 10, 2), (b.id, 20, 1)],
    )

    assert sale.id is not None
    assert sale.sale_at is not None
    payload = sale.to_dict()
    assert payload["storeId"] == main_store.id
    assert payload["staffId"] == cashier.id
    assert payload["totalPrice"] == 70
    assert payload["deposit"] == 100
    assert [line["itemId"] for line in payload["items"]] == [c.id, a.id, b.id]
    assert payload["items"][1] == {
        "id": sale.lines[1].id,
        "itemId": a.id,
        "price": 10,
        "quantity": 2,
    }


def test_append_without_lines_writes_nothing(db_session, main_store, cashier):
    with pytest.raises(ValidationError):
        sales_service.append_sale(
            store_id=main_store.id, staff_id=cashier.id, total_price=0, deposit=0, lines=[],
        )

    assert db_session.query(Sale).count() == 0


def test_append_is_all_or_nothing(db_session, main_store, cashier, make_item):
    item = make_item()

    # quantity 0 violates the sale_lines CHECK constraint on the second line
    with pytest.raises(IntegrityError):
        sales_service.append_sale(
            store_id=main_store.id,
            staff_id=cashier.id,
            total_price=10,
            deposit=10,
            lines=[(item.id, 10, 1), (item.id, 10, 0)],
        )

    assert db_session.query(Sale).count() == 0
    assert db_session.query(SaleLine).count() == 0


def test_get_and_list(db_session, main_store, cashier, make_item):
    item = make_item()
    ids = [
        sales_service.append_sale(
            store_id=main_store.id, staff_id=cashier.id, total_price=n, deposit=n, lines=[(item.id, n, 1)],
        ).id
        for n in (1, 2, 3)
    ]

    assert [s.id for s in sales_service.list_sales()] == ids
    assert sales_service.get_sale(ids[1]).total_price == 2

    first = [s.to_dict() for s in sales_service.list_sales()]
    second = [s.to_dict() for s in sales_service.list_sales()]
    assert first == second


def test_get_missing_sale(db_session):
    with pytest.raises(NotFoundError) as exc:
        sales_service.get_sale(999999)

    assert str(exc.value) == "Sale not found"


def test_get_sale_id_beyond_storage_range(db_session):
    with pytest.raises(NotFoundError):
        sales_service.get_sale(2 ** 63)
