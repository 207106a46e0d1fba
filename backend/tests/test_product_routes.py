# Overview: Pytest coverage for product routes and label printing.

from shoppos.models import Product


class TestProductRoutes:

    def test_create_generates_barcode(self, client, auth_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Gold Chain", "price_cents": 4500, "cost_price_cents": 2000, "quantity": 3},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json["barcode"].startswith("ACC-")
        assert resp.json["sold"] == 0

    def test_create_validation(self, client, auth_headers):
        resp = client.post("/api/products", json={"name": "x", "price_cents": -1}, headers=auth_headers)
        assert resp.status_code == 400

        resp = client.post("/api/products", json={"price_cents": 100}, headers=auth_headers)
        assert resp.status_code == 400

        resp = client.post("/api/products", json={"name": "x", "price_cents": 10.5}, headers=auth_headers)
        assert resp.status_code == 400

    def test_sold_is_not_writable(self, client, auth_headers, make_product):
        p = make_product(sold=4)
        resp = client.put(f"/api/products/{p.id}", json={"sold": 0}, headers=auth_headers)
        assert resp.status_code == 400

    def test_update(self, client, auth_headers, make_product):
        p = make_product(sold=4)
        resp = client.put(f"/api/products/{p.id}", json={"price_cents": 999, "barcode": ""}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json["price_cents"] == 999
        assert resp.json["sold"] == 4
        assert resp.json["barcode"].startswith("ACC-")

    def test_get_and_delete(self, client, auth_headers, make_product, db_session):
        p = make_product()
        assert client.get(f"/api/products/{p.id}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/products/{p.id}", headers=auth_headers).status_code == 200
        assert db_session.get(Product, p.id) is None
        assert client.get(f"/api/products/{p.id}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/products/{p.id}", headers=auth_headers).status_code == 404

    def test_list_filters(self, client, auth_headers, make_product):
        make_product(name="Amber", quantity=0)
        make_product(name="Zircon", quantity=2)
        resp = client.get("/api/products?order=name", headers=auth_headers)
        assert [p["name"] for p in resp.json["items"]] == ["Amber", "Zircon"]

        resp = client.get("/api/products?in_stock=true", headers=auth_headers)
        assert resp.json["count"] == 1

        assert client.get("/api/products?order=price", headers=auth_headers).status_code == 400


class TestLabels:

    def test_single_label(self, client, auth_headers, make_product):
        p = make_product(name="Gold Chain", barcode="ACC-7K2M9QX1B", price_cents=4500)
        resp = client.get(f"/api/products/{p.id}/label", headers=auth_headers)
        assert resp.status_code == 200
        html = resp.get_data(as_text=True)
        assert "Gold Chain" in html
        assert "<svg" in html
        assert "45.00" in html

    def test_label_sheet_filters(self, client, auth_headers, make_product):
        make_product(name="Gold Chain")
        make_product(name="Silver Ring")
        html = client.get("/api/products/labels?search=gold", headers=auth_headers).get_data(as_text=True)
        assert "Gold Chain" in html
        assert "Silver Ring" not in html

    def test_label_sheet_empty(self, client, auth_headers, db_session):
        assert client.get("/api/products/labels", headers=auth_headers).status_code == 404
