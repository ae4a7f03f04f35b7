"""Integration tests for the public product endpoints and admin product management."""

import pytest
from shared import config


@pytest.fixture()
def admin_headers(admin, auth):
    _, token = admin
    return auth(token)


class TestPublicProductEndpoints:
    def test_list_products_envelope(self, client, make_product):
        make_product(name="Mug")

        response = client.get("/products")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Products retrieved successfully"
        assert body["data"][0]["name"] == "Mug"
        assert body["pagination"]["total"] == 1
        assert body["timestamp"].endswith("Z")

    def test_list_products_filters_and_pagination(self, client, make_product):
        for i in range(3):
            make_product(name=f"Mug {i}", price=f"{10 + i}.00")

        response = client.get(
            "/products", params={"min_price": 11, "sort_by": "price", "sort_direction": "asc", "per_page": 1}
        )

        body = response.json()
        assert [p["name"] for p in body["data"]] == ["Mug 1"]
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["has_more_pages"] is True

    def test_list_combines_name_stock_and_paging(self, client, make_product):
        make_product(name="Desk Lamp", stock=0)
        for i in range(3):
            make_product(name=f"Desk {i}", price=f"{20 + i}.00", stock=5)
        make_product(name="Chair", stock=5)

        response = client.get(
            "/products",
            params={
                "name": "desk",
                "in_stock": "true",
                "sort_by": "price",
                "sort_direction": "desc",
                "page": 2,
                "per_page": 2,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert [p["name"] for p in body["data"]] == ["Desk 0"]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["current_page"] == 2

    def test_search_combines_query_filters_and_paging(self, client, make_product):
        make_product(name="Walnut Desk", price="300.00")
        make_product(name="Walnut Shelf", price="80.00")
        make_product(name="Walnut Stool", price="40.00")
        make_product(name="Oak Desk", price="300.00")

        response = client.get(
            "/products/search",
            params={"q": "walnut", "min_price": 50, "sort_by": "price", "sort_direction": "asc", "per_page": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert [p["name"] for p in body["data"]] == ["Walnut Shelf"]
        assert body["pagination"]["total"] == 2

    def test_unknown_page_value_rejected(self, client):
        response = client.get("/products", params={"page": 0})

        assert response.status_code == 422
        assert "page" in response.json()["errors"]

    def test_invalid_sort_field_rejected(self, client):
        response = client.get("/products", params={"sort_by": "password"})

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert "sort_by" in response.json()["errors"]

    def test_per_page_capped(self, client):
        response = client.get("/products", params={"per_page": 500})
        assert response.status_code == 422

    def test_get_product(self, client, make_product):
        product = make_product(name="Mug", price="4.50")

        response = client.get(f"/products/{product.id}")

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 4.5
        assert response.json()["data"]["in_stock"] is True

    def test_get_missing_product(self, client):
        response = client.get("/products/missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Product with id missing not found"

    def test_in_and_out_of_stock(self, client, make_product):
        make_product(name="Available", stock=3)
        make_product(name="Gone", stock=0)

        assert [p["name"] for p in client.get("/products/in-stock").json()["data"]] == ["Available"]
        assert [p["name"] for p in client.get("/products/out-of-stock").json()["data"]] == ["Gone"]

    def test_search(self, client, make_product):
        make_product(name="Walnut Desk")
        make_product(name="Oak Chair")

        response = client.get("/products/search", params={"q": "walnut"})

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["data"]] == ["Walnut Desk"]

    def test_search_requires_query(self, client):
        assert client.get("/products/search").status_code == 422
        response = client.get("/products/search", params={"q": "a"})
        assert response.status_code == 422
        assert "q" in response.json()["errors"]

    def test_response_headers(self, client):
        response = client.get("/products")

        assert response.headers["X-API-Version"] == config.API_VERSION
        assert "X-Request-ID" in response.headers
        assert response.headers["X-RateLimit-Limit"] == "200"
        assert response.headers["X-RateLimit-Remaining"] == "199"


class TestRateLimiting:
    def test_guest_receives_429_after_limit(self, client, monkeypatch):
        monkeypatch.setitem(config.RATE_LIMITS, "public_browsing", "2,1")

        assert client.get("/products").status_code == 200
        assert client.get("/products").status_code == 200
        response = client.get("/products")

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Too many requests. Please try again later."
        assert int(body["errors"]["retry_after"]) > 0
        assert "Retry-After" in response.headers
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_authenticated_users_get_a_larger_budget(self, client, customer, auth, monkeypatch):
        monkeypatch.setitem(config.RATE_LIMITS, "public_browsing", "2,1")
        _, token = customer

        response = client.get("/products", headers=auth(token))

        assert response.headers["X-RateLimit-Limit"] == "22"


class TestAdminProductAccess:
    def test_guest_is_unauthenticated(self, client):
        response = client.post("/admin/products", json={"name": "Mug", "price": 5, "stock": 1})
        assert response.status_code == 401

    def test_customer_is_forbidden(self, client, customer, auth):
        _, token = customer
        response = client.post("/admin/products", json={"name": "Mug", "price": 5, "stock": 1}, headers=auth(token))

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"


class TestAdminProductManagement:
    def test_create_product(self, client, admin_headers):
        response = client.post(
            "/admin/products",
            json={"name": "Mug", "description": "Ceramic", "price": 4.5, "stock": 10},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] is not None
        assert data["price"] == 4.5

        assert client.get(f"/products/{data['id']}").status_code == 200

    def test_create_validation(self, client, admin_headers):
        response = client.post("/admin/products", json={"name": "", "price": 0, "stock": -1}, headers=admin_headers)

        assert response.status_code == 422
        errors = response.json()["errors"]
        assert {"name", "price", "stock"} <= set(errors)

    def test_update_product_busts_cached_detail(self, client, admin_headers, make_product):
        product = make_product(name="Mug")
        client.get(f"/products/{product.id}")

        response = client.put(f"/admin/products/{product.id}", json={"name": "Big Mug"}, headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"/products/{product.id}").json()["data"]["name"] == "Big Mug"

    def test_delete_and_restore(self, client, admin_headers, make_product):
        product = make_product()

        assert client.delete(f"/admin/products/{product.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/products/{product.id}").status_code == 404

        assert client.put(f"/admin/products/{product.id}/restore", headers=admin_headers).status_code == 200
        assert client.get(f"/products/{product.id}").status_code == 200

    def test_restore_active_product(self, client, admin_headers, make_product):
        product = make_product()
        response = client.put(f"/admin/products/{product.id}/restore", headers=admin_headers)
        assert response.status_code == 422

    def test_set_stock(self, client, admin_headers, make_product):
        product = make_product(stock=1)

        response = client.put(
            f"/admin/products/{product.id}/stock", json={"stock": 25, "reason": "Delivery"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["stock"] == 25

    def test_bulk_update(self, client, admin_headers, make_product):
        first = make_product(name="First")
        second = make_product(name="Second")

        response = client.put(
            "/admin/products/bulk-update",
            json={"products": [{"id": first.id, "stock": 0}, {"id": second.id, "price": 99.99}]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = {p["id"]: p for p in response.json()["data"]}
        assert data[first.id]["stock"] == 0
        assert data[second.id]["price"] == 99.99

    def test_bulk_update_with_missing_product(self, client, admin_headers, make_product):
        product = make_product(stock=5)

        response = client.put(
            "/admin/products/bulk-update",
            json={"products": [{"id": product.id, "stock": 0}, {"id": "missing", "stock": 1}]},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert client.get(f"/products/{product.id}").json()["data"]["stock"] == 5


class TestAdminProductReports:
    def test_statistics(self, client, admin_headers, make_product):
        make_product(price="10.00", stock=0)
        make_product(price="20.00", stock=4)

        data = client.get("/admin/products/statistics", headers=admin_headers).json()["data"]

        assert data["total_products"] == 2
        assert data["out_of_stock_products"] == 1

    def test_low_stock(self, client, admin_headers, make_product):
        make_product(name="Low", stock=2)
        make_product(name="Plenty", stock=100)

        response = client.get("/admin/products/low-stock", params={"threshold": 5}, headers=admin_headers)

        assert [p["name"] for p in response.json()["data"]] == ["Low"]

    def test_popular(self, client, admin_headers, customer, auth, make_product):
        _, token = customer
        mug = make_product(name="Mug", stock=10)
        make_product(name="Lamp", stock=10)
        client.post("/orders", json={"products": [{"product_id": mug.id, "quantity": 1}]}, headers=auth(token))

        data = client.get("/admin/products/popular", params={"limit": 1}, headers=admin_headers).json()["data"]

        assert data[0]["name"] == "Mug"
        assert data[0]["orders_count"] == 1

    def test_price_range_validation(self, client, admin_headers):
        response = client.get(
            "/admin/products/price-range", params={"min_price": 50, "max_price": 10}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_recently_added(self, client, admin_headers, make_product):
        make_product(name="New")
        response = client.get("/admin/products/recently-added", headers=admin_headers)
        assert [p["name"] for p in response.json()["data"]] == ["New"]

    def test_cache_statistics(self, client, admin_headers, make_product):
        make_product()
        client.get("/products")

        data = client.get("/admin/products/cache-statistics", headers=admin_headers).json()["data"]

        assert data["products_cache_keys"] >= 1
