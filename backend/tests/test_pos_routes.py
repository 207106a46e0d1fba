# Overview: Pytest coverage for the till endpoints (scan, cart edits, checkout).

"""
Point-of-Sale Route Tests

Verifies:
- Scans resolve against the session's snapshot and fill the cart
- Keyboard-wedge events are framed before resolution
- Cart edits respect the stock ceiling
- Checkout records the invoice, moves stock, clears the cart, and refetches
  the snapshot; partial failures surface as 502 with what was applied
"""

from shoppos.models import Invoice, Product


def scan(client, headers, code):
    return client.post("/api/pos/scan", json={"code": code}, headers=headers)


class TestScan:

    def test_found_adds_line(self, client, auth_headers, make_product):
        p = make_product(barcode="ACC-123", price_cents=1000)
        resp = scan(client, auth_headers, "ACC-123")
        assert resp.status_code == 200
        assert resp.json["scan"]["status"] == "FOUND"
        assert resp.json["cart"]["lines"][0]["product_id"] == p.id
        assert resp.json["cart"]["total_cents"] == 1000

    def test_normalized_scan(self, client, auth_headers, make_product):
        make_product(barcode="ACC-123")
        resp = scan(client, auth_headers, "\x02ACC123\r\n")
        assert resp.json["scan"]["status"] == "FOUND"

    def test_not_found(self, client, auth_headers, make_product):
        make_product(barcode="ACC-123")
        resp = scan(client, auth_headers, "ACC-999")
        assert resp.status_code == 404
        assert resp.json["scan"]["status"] == "NOT_FOUND"
        assert resp.json["cart"]["lines"] == []

    def test_out_of_stock(self, client, auth_headers, make_product):
        make_product(barcode="ACC-123", quantity=0)
        resp = scan(client, auth_headers, "ACC-123")
        assert resp.status_code == 409
        assert resp.json["scan"]["status"] == "OUT_OF_STOCK"

    def test_ceiling(self, client, auth_headers, make_product):
        make_product(barcode="ACC-123", quantity=1)
        assert scan(client, auth_headers, "ACC-123").status_code == 200
        resp = scan(client, auth_headers, "ACC-123")
        assert resp.status_code == 400
        assert resp.json["cart"]["lines"][0]["quantity"] == 1

    def test_snapshot_is_stale_until_refresh(self, client, auth_headers, make_product):
        make_product(barcode="ACC-123")
        client.get("/api/pos/cart", headers=auth_headers)

        make_product(barcode="ACC-456")
        assert scan(client, auth_headers, "ACC-456").status_code == 404

        assert client.post("/api/pos/catalog/refresh", headers=auth_headers).json["count"] == 2
        assert scan(client, auth_headers, "ACC-456").status_code == 200

    def test_missing_code(self, client, auth_headers, db_session):
        assert client.post("/api/pos/scan", json={}, headers=auth_headers).status_code == 400


class TestKeys:

    def test_fast_keystrokes_frame_a_scan(self, client, auth_headers, make_product):
        make_product(barcode="ACC-1")
        events = [{"key": k, "at_ms": i * 5} for i, k in enumerate("ACC-1")]
        events.append({"key": "Enter", "at_ms": 30})

        resp = client.post("/api/pos/keys", json={"events": events}, headers=auth_headers)

        assert resp.status_code == 200
        assert [s["status"] for s in resp.json["scans"]] == ["FOUND"]
        assert resp.json["cart"]["item_count"] == 1

    def test_buffer_persists_between_requests(self, client, auth_headers, make_product):
        make_product(barcode="AB")
        client.post("/api/pos/keys", json={"events": [{"key": "A", "at_ms": 0}]}, headers=auth_headers)
        resp = client.post(
            "/api/pos/keys",
            json={"events": [{"key": "B", "at_ms": 10}, {"key": "Enter", "at_ms": 20}]},
            headers=auth_headers,
        )
        assert resp.json["scans"][0]["code"] == "AB"

    def test_slow_typing_is_not_a_scan(self, client, auth_headers, make_product):
        make_product(barcode="AB")
        events = [{"key": "A", "at_ms": 0}, {"key": "B", "at_ms": 500}, {"key": "Enter", "at_ms": 510}]
        resp = client.post("/api/pos/keys", json={"events": events}, headers=auth_headers)
        assert resp.json["scans"] == []
        assert resp.json["pending"] == "B"

    def test_bad_events(self, client, auth_headers, db_session):
        resp = client.post("/api/pos/keys", json={"events": [{"key": "A"}]}, headers=auth_headers)
        assert resp.status_code == 400


class TestCartEdits:

    def test_add_adjust_price_remove(self, client, auth_headers, make_product):
        a = make_product(price_cents=1000, quantity=2)
        b = make_product(price_cents=500, quantity=5)

        client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        client.post("/api/pos/cart/lines", json={"product_id": b.id}, headers=auth_headers)

        resp = client.post(f"/api/pos/cart/lines/{a.id}/adjust", json={"delta": 1}, headers=auth_headers)
        assert resp.json["cart"]["total_cents"] == 2500

        resp = client.post(f"/api/pos/cart/lines/{a.id}/adjust", json={"delta": 1}, headers=auth_headers)
        assert resp.status_code == 400

        resp = client.put(f"/api/pos/cart/lines/{b.id}/price", json={"price_cents": 300}, headers=auth_headers)
        assert resp.json["cart"]["total_cents"] == 2300

        resp = client.delete(f"/api/pos/cart/lines/{a.id}", headers=auth_headers)
        assert resp.json["cart"]["item_count"] == 1
        assert resp.json["cart"]["total_cents"] == 300

    def test_decrement_floor(self, client, auth_headers, make_product):
        a = make_product()
        client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        resp = client.post(f"/api/pos/cart/lines/{a.id}/adjust", json={"delta": -1}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json["cart"]["lines"][0]["quantity"] == 1

    def test_re_add_uses_refreshed_stock(self, client, auth_headers, make_product, db_session):
        a = make_product(quantity=5)
        for _ in range(2):
            resp = client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
            assert resp.status_code == 200

        db_session.get(Product, a.id).quantity = 2
        db_session.commit()
        assert client.post("/api/pos/catalog/refresh", headers=auth_headers).status_code == 200

        resp = client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        assert resp.status_code == 400
        line = resp.json["cart"]["lines"][0]
        assert line["quantity"] == 2
        assert line["stock"] == 2

    def test_unknown_product(self, client, auth_headers, db_session):
        resp = client.post("/api/pos/cart/lines", json={"product_id": 999}, headers=auth_headers)
        assert resp.status_code == 400

    def test_carts_are_per_session(self, client, auth_headers, user, make_product):
        make_product(barcode="ACC-123")
        scan(client, auth_headers, "ACC-123")

        login = client.post("/api/auth/login", json={"email": user.email, "password": "Password123!"})
        other = {"Authorization": f"Bearer {login.json['token']}"}
        assert client.get("/api/pos/cart", headers=other).json["cart"]["lines"] == []


class TestCheckout:

    def test_checkout(self, client, auth_headers, make_product, db_session):
        a = make_product(price_cents=1000, quantity=5)
        b = make_product(price_cents=500, quantity=5)
        client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        client.post("/api/pos/cart/lines", json={"product_id": b.id}, headers=auth_headers)

        resp = client.post("/api/pos/checkout", headers=auth_headers)

        assert resp.status_code == 201
        invoice = resp.json["invoice"]
        assert invoice["total_cents"] == 2500
        assert invoice["item_count"] == 3
        assert resp.json["cart"]["lines"] == []

        assert db_session.get(Product, a.id).quantity == 3
        assert db_session.get(Product, a.id).sold == 2
        assert db_session.get(Product, b.id).quantity == 4

        # Snapshot refetched after checkout
        catalog = client.get("/api/pos/catalog", headers=auth_headers).json
        stock = {i["id"]: i["quantity"] for i in catalog["items"]}
        assert stock[a.id] == 3

        receipt = client.get(resp.json["receipt_url"], headers=auth_headers)
        assert receipt.status_code == 200
        html = receipt.get_data(as_text=True)
        assert invoice["invoice_number"] in html
        assert "25.00" in html

    def test_empty_cart(self, client, auth_headers, db_session):
        resp = client.post("/api/pos/checkout", headers=auth_headers)
        assert resp.status_code == 400
        assert db_session.query(Invoice).count() == 0

    def test_partial_failure(self, client, auth_headers, make_product, db_session):
        a = make_product(quantity=5)
        b = make_product(quantity=5)
        client.post("/api/pos/cart/lines", json={"product_id": a.id}, headers=auth_headers)
        client.post("/api/pos/cart/lines", json={"product_id": b.id}, headers=auth_headers)

        db_session.delete(db_session.get(Product, b.id))
        db_session.commit()

        resp = client.post("/api/pos/checkout", headers=auth_headers)

        assert resp.status_code == 502
        assert resp.json["details"]["applied_product_ids"] == [a.id]
        assert resp.json["details"]["failed_product_id"] == b.id
        assert db_session.query(Invoice).count() == 1
        assert db_session.get(Product, a.id).quantity == 4

        cart = client.get("/api/pos/cart", headers=auth_headers).json["cart"]
        assert cart["item_count"] == 2
