"""
HTTP boundary tests.

Verifies:
- Unknown / missing staff header returns 401
- Capabilities enforced per role (403)
- Typed domain errors map to status codes with code + details
- The checkout endpoint attaches the caller's open shift
"""

import pytest

from ledgerpos.models import Customer, Product, Shift, Staff


def _headers(staff):
    return {"X-Staff-Id": str(staff.id)}


class TestStaffResolution:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/sales"),
            ("GET", "/api/sales/1"),
            ("POST", "/api/inventory/products/1/adjust"),
            ("GET", "/api/inventory/products/1/logs"),
            ("GET", "/api/inventory/low-stock"),
            ("GET", "/api/inventory/products/lookup?barcode=1"),
            ("POST", "/api/customers/1/repayments"),
            ("GET", "/api/customers/1/ledger"),
            ("GET", "/api/customers/lookup?barcode=1"),
            ("POST", "/api/shifts"),
            ("GET", "/api/shifts/current"),
            ("GET", "/api/shifts/1"),
            ("POST", "/api/shifts/1/close"),
        ],
    )
    def test_requires_staff_header(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401

    def test_unknown_staff(self, client, db_session):
        resp = client.get("/api/shifts/current", headers={"X-Staff-Id": "4040"})
        assert resp.status_code == 401

    def test_malformed_header(self, client, db_session):
        resp = client.get("/api/shifts/current", headers={"X-Staff-Id": "cashier"})
        assert resp.status_code == 401

    def test_suspended_staff(self, client, db_session, store):
        staff = Staff(store_id=store.id, name="Sam Suspended", role="manager", status="suspended")
        db_session.add(staff)
        db_session.commit()

        resp = client.get("/api/shifts/current", headers=_headers(staff))
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["database"]["status"] == "healthy"


class TestCheckout:

    def test_cash_sale_attached_to_open_shift(self, client, db_session, cashier, cashier_headers, product):
        resp = client.post("/api/shifts", json={"opening_cash_cents": 10000}, headers=cashier_headers)
        assert resp.status_code == 201
        shift_id = resp.get_json()["shift"]["id"]

        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 2}], "payment_method": "cash"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["receipt_number"] == "S-000001"
        assert body["total_cents"] == 900

        resp = client.get(f"/api/sales/{body['sale_id']}", headers=cashier_headers)
        sale = resp.get_json()["sale"]
        assert sale["shift_id"] == shift_id
        assert sale["items"][0]["unit_price_cents"] == 450
        assert sale["actor_name"] == "Cara Cashier"

        db_session.expire_all()
        assert db_session.get(Shift, shift_id).cash_sales_cents == 900
        assert db_session.get(Product, product.id).stock == 8

    def test_insufficient_stock_is_409_with_details(self, client, db_session, cashier_headers, make_product):
        product = make_product(name="Orange Juice", stock=1)

        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 3, "unit_price_cents": 400}], "payment_method": "card"},
            headers=cashier_headers,
        )

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"] == {"product_name": "Orange Juice", "available": 1, "requested": 3}
        assert body["error"] == "Insufficient stock for Orange Juice. Available: 1, Requested: 3"

    def test_credit_sale_without_customer_is_400(self, client, db_session, cashier_headers, product):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1}], "payment_method": "credit"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "CUSTOMER_REQUIRED"

    def test_malformed_items_are_400(self, client, db_session, cashier_headers):
        resp = client.post("/api/sales", json={"items": "coffee", "payment_method": "cash"}, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_SALE"

    def test_unknown_product_is_404(self, client, db_session, cashier_headers):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": 999999, "quantity": 1}], "payment_method": "cash"},
            headers=cashier_headers,
        )
        assert resp.status_code == 404

    def test_unknown_sale_is_404(self, client, db_session, cashier_headers):
        resp = client.get("/api/sales/123456", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "SALE_NOT_FOUND"


class TestInventoryRoutes:

    def test_cashier_cannot_adjust(self, client, db_session, cashier_headers, product):
        resp = client.post(
            f"/api/inventory/products/{product.id}/adjust",
            json={"quantity_delta": -1, "reason": "Breakage"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403
        assert resp.get_json()["details"]["capability"] == "inventory.adjust"

    def test_manager_adjusts_and_reads_logs(self, client, db_session, manager_headers, product):
        resp = client.post(
            f"/api/inventory/products/{product.id}/adjust",
            json={"quantity_delta": -3, "reason": "Breakage"},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["stock"] == 7

        resp = client.post(
            f"/api/inventory/products/{product.id}/adjust",
            json={"kind": "stock-in", "quantity_delta": 12},
            headers=manager_headers,
        )
        assert resp.get_json()["stock"] == 19

        resp = client.get(f"/api/inventory/products/{product.id}/logs", headers=manager_headers)
        body = resp.get_json()
        assert body["product"]["stock"] == 19
        assert [log["kind"] for log in body["logs"]] == ["stock-in", "adjustment", "stock-in"]
        assert body["logs"][1]["actor_name"] == "Marco Manager"

    def test_adjust_below_zero_is_409(self, client, db_session, manager_headers, product):
        resp = client.post(
            f"/api/inventory/products/{product.id}/adjust",
            json={"quantity_delta": -11, "reason": "Recount"},
            headers=manager_headers,
        )
        assert resp.status_code == 409

    def test_adjust_without_reason_is_400(self, client, db_session, manager_headers, product):
        resp = client.post(
            f"/api/inventory/products/{product.id}/adjust",
            json={"quantity_delta": -1},
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_ADJUSTMENT"

    def test_low_stock(self, client, db_session, cashier_headers, make_product):
        make_product(name="Almost Out", stock=1, min_stock_level=3)
        make_product(name="Plenty", stock=30, min_stock_level=3)

        resp = client.get("/api/inventory/low-stock", headers=cashier_headers)
        assert [p["name"] for p in resp.get_json()["products"]] == ["Almost Out"]

    def test_barcode_lookup(self, client, db_session, cashier_headers, make_product, other_store):
        make_product(name="Flat White", barcode="9300601")
        make_product(name="Harbour Tea", barcode="9300602", store_id=other_store.id)

        resp = client.get("/api/inventory/products/lookup?barcode=9300601", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["product"]["name"] == "Flat White"

        resp = client.get("/api/inventory/products/lookup?barcode=9300602", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.get_json()["details"] == {"barcode": "9300602"}

        resp = client.get("/api/inventory/products/lookup", headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"


class TestCustomerRoutes:

    def test_repayment_and_ledger(self, client, db_session, cashier_headers, make_customer):
        customer = make_customer(balance_cents=3000)

        resp = client.post(
            f"/api/customers/{customer.id}/repayments",
            json={"amount_cents": 4000},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["balance_cents"] == 0
        assert body["unapplied_cents"] == 1000

        resp = client.get(f"/api/customers/{customer.id}/ledger", headers=cashier_headers)
        body = resp.get_json()
        assert body["customer"]["current_balance_cents"] == 0
        assert [e["kind"] for e in body["entries"]] == ["charge", "repayment"]

    def test_repayment_amount_validated(self, client, db_session, cashier_headers, customer):
        resp = client.post(
            f"/api/customers/{customer.id}/repayments",
            json={"amount_cents": "lots"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_AMOUNT"

    def test_unknown_customer_is_404(self, client, db_session, cashier_headers):
        resp = client.get("/api/customers/8888/ledger", headers=cashier_headers)
        assert resp.status_code == 404

    def test_loyalty_card_lookup(self, client, db_session, cashier_headers, make_customer):
        make_customer(name="Dana Regular", barcode="LC-0042")

        resp = client.get("/api/customers/lookup?barcode=LC-0042", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["customer"]["name"] == "Dana Regular"

        resp = client.get("/api/customers/lookup?barcode=LC-9999", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "CUSTOMER_NOT_FOUND"

    def test_credit_sale_over_limit_is_409(self, client, db_session, cashier_headers, product, make_customer):
        customer = make_customer(credit_limit_cents=10000, balance_cents=8000)

        resp = client.post(
            "/api/sales",
            json={
                "items": [{"product_id": product.id, "quantity": 1, "unit_price_cents": 3000}],
                "payment_method": "credit",
                "customer_id": customer.id,
            },
            headers=cashier_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["details"]["new_balance"] == 11000
        assert db_session.get(Customer, customer.id).current_balance_cents == 8000


class TestShiftRoutes:

    def test_open_twice_is_409(self, client, db_session, cashier_headers):
        assert client.post("/api/shifts", json={}, headers=cashier_headers).status_code == 201
        resp = client.post("/api/shifts", json={}, headers=cashier_headers)
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "SHIFT_ALREADY_OPEN"

    def test_current_without_shift_is_409(self, client, db_session, cashier_headers):
        resp = client.get("/api/shifts/current", headers=cashier_headers)
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "NO_ACTIVE_SHIFT"

    def test_cashier_cannot_close_colleagues_shift(self, client, db_session, cashier_headers, second_cashier):
        shift_id = client.post("/api/shifts", json={}, headers=_headers(second_cashier)).get_json()["shift"]["id"]

        resp = client.post(f"/api/shifts/{shift_id}/close", json={"closing_cash_cents": 0}, headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["code"] == "SHIFT_NOT_OWNED"

    def test_manager_closes_any_shift(self, client, db_session, manager_headers, cashier_headers):
        shift_id = client.post(
            "/api/shifts", json={"opening_cash_cents": 5000}, headers=cashier_headers
        ).get_json()["shift"]["id"]

        resp = client.post(f"/api/shifts/{shift_id}/close", json={"closing_cash_cents": 4800}, headers=manager_headers)
        assert resp.status_code == 200
        shift = resp.get_json()["shift"]
        assert shift["status"] == "closed"
        assert shift["expected_cash_cents"] == 5000
        assert shift["variance_cents"] == -200

    def test_manager_from_another_store_cannot_close(self, client, db_session, cashier_headers, other_store):
        far_manager = Staff(store_id=other_store.id, name="Fern Farstore", role="manager")
        db_session.add(far_manager)
        db_session.commit()
        shift_id = client.post("/api/shifts", json={}, headers=cashier_headers).get_json()["shift"]["id"]

        resp = client.post(f"/api/shifts/{shift_id}/close", json={"closing_cash_cents": 0}, headers=_headers(far_manager))
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "NO_ACTIVE_SHIFT"

        resp = client.get(f"/api/shifts/{shift_id}", headers=_headers(far_manager))
        assert resp.status_code == 409

        db_session.expire_all()
        assert db_session.get(Shift, shift_id).status == "open"

    def test_shift_detail(self, client, db_session, cashier_headers):
        shift_id = client.post("/api/shifts", json={"opening_cash_cents": 2500}, headers=cashier_headers).get_json()["shift"]["id"]

        resp = client.get(f"/api/shifts/{shift_id}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["shift"]["opening_cash_cents"] == 2500
