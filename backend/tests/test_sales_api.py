"""
Sales API tests.

Verifies:
- A two-line sale decrements stock and returns the recorded sale (201)
- Malformed bodies and business rule failures return 400
- Unknown store, staff or item return 404
- Recorded sales can be read back and listed
"""

import pytest

from backoffice.models import Sale


def _sale_body(store, staff, lines, **extra):
    body = {
        "storeId": store.id,
        "staffId": staff.id,
        "items": [{"itemId": i, "price": p, "quantity": q} for i, p, q in lines],
    }
    body.update(extra)
    return body


# =============================================================================
# RECORDING A SALE : 201
# =============================================================================


@pytest.mark.sales
@pytest.mark.smoke
class TestCreateSale:
    def test_two_item_sale(self, client, db_session, main_store, cashier, make_item, stock_of):
        item1 = make_item(price=100, stock=100)
        item2 = make_item(price=200, stock=100)

        resp = client.post("/api/sales", json=_sale_body(
            main_store, cashier,
            [(item1.id, 100, 2), (item2.id, 200, 1)],
            totalPrice=500, deposit=600,
        ))

        assert resp.status_code == 201
        sale = resp.get_json()["sale"]
        assert sale["storeId"] == main_store.id
        assert sale["staffId"] == cashier.id
        assert sale["totalPrice"] == 500
        assert sale["deposit"] == 600
        assert len(sale["items"]) == 2
        assert [(l["itemId"], l["price"], l["quantity"]) for l in sale["items"]] == [
            (item1.id, 100, 2),
            (item2.id, 200, 1),
        ]

        assert stock_of(item1.id) == 98
        assert stock_of(item2.id) == 99

    def test_read_back_and_list(self, client, db_session, main_store, cashier, make_item):
        item = make_item(price=100, stock=10)
        created = client.post("/api/sales", json=_sale_body(
            main_store, cashier, [(item.id, 100, 1)], totalPrice=100, deposit=100,
        )).get_json()["sale"]

        first = client.get(f"/api/sales/{created['id']}")
        second = client.get(f"/api/sales/{created['id']}")

        assert first.status_code == 200
        assert first.get_json() == second.get_json()
        assert first.get_json()["sale"]["items"] == created["items"]

        listed = client.get("/api/sales").get_json()["sales"]
        assert [s["id"] for s in listed] == [created["id"]]

    def test_unknown_sale(self, client, db_session):
        assert client.get("/api/sales/999999").status_code == 404


# =============================================================================
# REJECTED SALES : 400 / 404
# =============================================================================


@pytest.mark.sales
class TestRejectedSale:
    @pytest.mark.parametrize("body", [
        None,
        [],
        {"staffId": 1, "items": []},
        {"storeId": 1, "items": []},
        {"storeId": 1, "staffId": 1},
        {"storeId": 1, "staffId": 1, "items": "nope"},
        {"storeId": 1, "staffId": 1, "items": [{"quantity": 1}]},
        {"storeId": 1, "staffId": 1, "items": [{"itemId": 1}]},
        {"storeId": 1, "staffId": 1, "items": [{"itemId": 1, "quantity": 1.5}]},
    ])
    def test_malformed_body(self, client, db_session, body):
        if body is None:
            resp = client.post("/api/sales", data="{", content_type="application/json")
        else:
            resp = client.post("/api/sales", json=body)

        assert resp.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_empty_items(self, client, db_session, main_store, cashier):
        resp = client.post("/api/sales", json=_sale_body(main_store, cashier, []))
        assert resp.status_code == 400

    def test_zero_quantity(self, client, db_session, main_store, cashier, make_item, stock_of):
        item = make_item(stock=10)

        resp = client.post("/api/sales", json=_sale_body(main_store, cashier, [(item.id, 100, 0)]))

        assert resp.status_code == 400
        assert stock_of(item.id) == 10

    def test_insufficient_stock(self, client, db_session, main_store, cashier, make_item, stock_of):
        plenty = make_item(stock=50)
        scarce = make_item(stock=1)

        resp = client.post("/api/sales", json=_sale_body(
            main_store, cashier, [(plenty.id, 100, 5), (scarce.id, 100, 2)],
        ))

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["details"]["items"] == [{"itemId": scarce.id, "requestedQuantity": 2, "stock": 1}]
        assert stock_of(plenty.id) == 50
        assert stock_of(scarce.id) == 1
        assert db_session.query(Sale).count() == 0

    def test_unknown_item(self, client, db_session, main_store, cashier, make_item, stock_of):
        item = make_item(stock=10)

        resp = client.post("/api/sales", json=_sale_body(
            main_store, cashier, [(item.id, 100, 1), (999999, 100, 1)],
        ))

        assert resp.status_code == 404
        assert resp.get_json()["details"] == {"itemId": 999999}
        assert stock_of(item.id) == 10

    def test_unknown_store_and_staff(self, client, db_session, main_store, cashier, make_item):
        item = make_item(stock=10)
        lines = [{"itemId": item.id, "price": 100, "quantity": 1}]

        resp = client.post("/api/sales", json={"storeId": 999999, "staffId": cashier.id, "items": lines})
        assert resp.status_code == 404

        resp = client.post("/api/sales", json={"storeId": main_store.id, "staffId": 999999, "items": lines})
        assert resp.status_code == 404

    def test_unexpected_failure_is_500(self, client, db_session, main_store, cashier, make_item, stock_of,
                                       monkeypatch):
        from backoffice.services import checkout_service

        item = make_item(stock=10)

        def broken_append(**kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(checkout_service.sales_service, "append_sale", broken_append)

        resp = client.post("/api/sales", json=_sale_body(main_store, cashier, [(item.id, 100, 1)]))

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}
        assert stock_of(item.id) == 10


# =============================================================================
# OUT OF RANGE VALUES : 400 / 404
# =============================================================================


@pytest.mark.sales
class TestSaleRange:
    @pytest.mark.parametrize("extra, line_price", [
        ({}, 10 ** 20),
        ({"totalPrice": 10 ** 20}, 100),
        ({"deposit": 10 ** 20}, 100),
    ])
    def test_oversized_amounts_rejected(self, client, db_session, main_store, cashier, make_item, stock_of,
                                        extra, line_price):
        item = make_item(stock=10)

        resp = client.post("/api/sales", json=_sale_body(
            main_store, cashier, [(item.id, line_price, 1)], **extra,
        ))

        assert resp.status_code == 400
        assert stock_of(item.id) == 10
        assert db_session.query(Sale).count() == 0

    def test_computed_total_beyond_range_rejected(self, client, db_session, main_store, cashier, make_item,
                                                  stock_of):
        from backoffice.validation import INT64_MAX

        item = make_item(stock=10)

        resp = client.post("/api/sales", json=_sale_body(main_store, cashier, [(item.id, INT64_MAX, 2)]))

        assert resp.status_code == 400
        assert stock_of(item.id) == 10

    def test_oversized_references_rejected(self, client, db_session, main_store, cashier, make_item):
        item = make_item(stock=10)
        lines = [{"itemId": item.id, "price": 100, "quantity": 1}]

        resp = client.post("/api/sales", json={"storeId": 10 ** 20, "staffId": cashier.id, "items": lines})
        assert resp.status_code == 400

        resp = client.post("/api/sales", json=_sale_body(main_store, cashier, [(10 ** 20, 100, 1)]))
        assert resp.status_code == 400

    def test_oversized_sale_id_is_not_found(self, client, db_session):
        assert client.get("/api/sales/99999999999999999999").status_code == 404
