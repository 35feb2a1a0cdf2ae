"""HTTP-level tests: routing, status codes and error bodies."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from database import get_read_session
from main import app
from tests.samples import LAPTOP, T_SHIRT, draft


def create(client, payload) -> dict:
    response = client.post("/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestRoot:

    def test_lists_endpoints(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert "PATCH /products/variants/{sku}/stock" in body["endpoints"]
        assert body["samplePayload"]["createProduct"]["name"] == "T-Shirt"
        assert set(body["errors"]) == {"400", "404", "409", "500"}


class TestProductRoutes:

    def test_t_shirt_walkthrough(self, client):
        payload = {
            "name": "T-Shirt",
            "base_price": 25,
            "category": "Clothing",
            "variants": [{"color": "Red", "size": "M", "stock": 10, "sku": "TS-RED-M"}],
        }
        product = create(client, payload)
        assert len(product["id"]) == 32

        response = client.patch("/products/variants/TS-RED-M/stock", json={"stock": 3})
        assert response.status_code == 200
        assert response.json() == {"message": "Variant stock updated successfully"}
        assert client.get(f"/products/{product['id']}").json()["variants"][0]["stock"] == 3

        response = client.delete("/products/variants/TS-RED-M")
        assert response.status_code == 200
        assert response.json() == {"message": "Variant deleted successfully"}

        response = client.get(f"/products/{product['id']}")
        assert response.status_code == 200
        assert response.json()["variants"] == []

    def test_get_matches_create_response(self, client):
        product = create(client, draft(LAPTOP))
        assert client.get(f"/products/{product['id']}").json() == product

    def test_create_response_shape(self, client):
        product = create(client, draft(LAPTOP))
        assert set(product) == {
            "id", "name", "description", "base_price", "category", "brand",
            "tags", "variants", "created_at", "updated_at",
        }
        assert "version" not in product

    def test_list_empty(self, client):
        response = client.get("/products")
        assert response.status_code == 200
        assert response.json() == []

    def test_list_and_query_filters(self, client):
        create(client, draft(T_SHIRT))
        create(client, draft(LAPTOP))
        assert [p["name"] for p in client.get("/products").json()] == ["T-Shirt", "Laptop"]
        assert [p["name"] for p in client.get("/products", params={"category": "Clothing"}).json()] == ["T-Shirt"]
        assert [p["name"] for p in client.get("/products", params={"color": "Silver"}).json()] == ["Laptop"]

    def test_by_category(self, client):
        create(client, draft(T_SHIRT))
        create(client, draft(LAPTOP))
        response = client.get("/products/category/Electronics")
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Laptop"]

    def test_category_with_space_and_ampersand(self, client):
        create(client, draft(T_SHIRT, name="Planter", category="Home & Garden", variants=[]))
        response = client.get("/products/category/Home & Garden")
        assert [p["name"] for p in response.json()] == ["Planter"]

    def test_by_variant_color(self, client):
        create(client, draft(T_SHIRT))
        create(client, draft(LAPTOP))
        response = client.get("/products/variants/color/Blue")
        assert [p["name"] for p in response.json()] == ["T-Shirt"]

    def test_variant_details_projection(self, client):
        product = create(client, draft(T_SHIRT))
        response = client.get("/products/variants/details")
        assert response.status_code == 200
        assert response.json() == [{
            "id": product["id"],
            "name": "T-Shirt",
            "category": "Clothing",
            "variants": [
                {"color": "Red", "size": "M", "stock": 10, "sku": "TS-RED-M"},
                {"color": "Blue", "size": "L", "stock": 5, "sku": "TS-BLUE-L"},
            ],
        }]

    def test_variant_details_custom_fields(self, client):
        create(client, draft(T_SHIRT))
        response = client.get("/products/variants/details", params={"fields": "name,variants.stock"})
        assert response.json()[0]["variants"] == [{"stock": 10}, {"stock": 5}]

    def test_variant_details_unknown_field(self, client):
        response = client.get("/products/variants/details", params={"fields": "price"})
        assert response.status_code == 400

    def test_product_variants(self, client):
        product = create(client, draft(T_SHIRT))
        response = client.get(f"/products/{product['id']}/variants")
        assert response.status_code == 200
        assert response.json() == product["variants"]

    def test_update_product(self, client):
        product = create(client, draft(T_SHIRT))
        response = client.put(f"/products/{product['id']}", json={"name": "Tee", "brand": "Basics"})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Tee"
        assert body["brand"] == "Basics"
        assert body["variants"] == product["variants"]

    def test_delete_product(self, client):
        product = create(client, draft(T_SHIRT))
        response = client.delete(f"/products/{product['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "Product deleted successfully"}
        assert client.get(f"/products/{product['id']}").status_code == 404
        assert client.patch("/products/variants/TS-RED-M/stock", json={"stock": 1}).status_code == 404

    def test_add_variant(self, client):
        product = create(client, draft(T_SHIRT))
        response = client.post(
            f"/products/{product['id']}/variants",
            json={"color": "Green", "size": "S", "stock": 2, "sku": "TS-GRN-S"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Variant added successfully"
        assert body["variant"]["sku"] == "TS-GRN-S"
        variants = client.get(f"/products/{product['id']}/variants").json()
        assert [v["sku"] for v in variants] == ["TS-RED-M", "TS-BLUE-L", "TS-GRN-S"]


class TestErrors:

    @pytest.mark.parametrize("method, path", [
        ("get", "/products/not-an-id"),
        ("get", "/products/not-an-id/variants"),
        ("delete", "/products/xyz"),
    ])
    def test_malformed_id_is_400(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 400
        assert "Invalid product ID" in response.json()["error"]

    def test_malformed_id_on_update_is_400(self, client):
        response = client.put("/products/xyz", json={"name": "X"})
        assert response.status_code == 400

    @pytest.mark.parametrize("method, path", [
        ("get", "/products/" + "0" * 32),
        ("get", "/products/" + "0" * 32 + "/variants"),
        ("delete", "/products/" + "0" * 32),
        ("delete", "/products/variants/NOPE"),
    ])
    def test_missing_is_404(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 404
        assert "error" in response.json()

    def test_update_missing_is_404(self, client):
        response = client.put("/products/" + "0" * 32, json={"name": "X"})
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}

    def test_stock_for_unknown_sku_is_404(self, client):
        response = client.patch("/products/variants/NOPE/stock", json={"stock": 1})
        assert response.status_code == 404
        assert response.json() == {"error": "Variant not found"}

    def test_add_variant_to_missing_product_is_404(self, client):
        response = client.post(
            "/products/" + "0" * 32 + "/variants",
            json={"color": "Green", "size": "S", "stock": 2, "sku": "X-1"},
        )
        assert response.status_code == 404

    def test_invalid_product_is_400(self, client):
        response = client.post("/products", json={"name": "No price", "category": "Books"})
        assert response.status_code == 400
        assert "base_price" in response.json()["error"]

    def test_duplicate_sku_is_400(self, client):
        create(client, draft(T_SHIRT))
        laptop = draft(LAPTOP)
        laptop["variants"][0]["sku"] = "TS-RED-M"
        response = client.post("/products", json=laptop)
        assert response.status_code == 400
        assert "TS-RED-M" in response.json()["error"]

    def test_negative_stock_is_400(self, client):
        create(client, draft(T_SHIRT))
        response = client.patch("/products/variants/TS-RED-M/stock", json={"stock": -5})
        assert response.status_code == 400

    @pytest.mark.parametrize("stock", [True, "7"])
    def test_non_integer_variant_stock_on_create_is_400(self, client, stock):
        payload = draft(T_SHIRT)
        payload["variants"][0]["stock"] = stock
        response = client.post("/products", json=payload)
        assert response.status_code == 400
        assert "stock" in response.json()["error"]
        assert client.get("/products").json() == []

    def test_missing_stock_is_400(self, client):
        create(client, draft(T_SHIRT))
        response = client.patch("/products/variants/TS-RED-M/stock", json={})
        assert response.status_code == 400

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/products",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_array_body_is_400(self, client):
        response = client.post("/products", json=[draft(T_SHIRT)])
        assert response.status_code == 400

    def test_store_unavailable_is_500(self, client):
        class UnreachableSession(Session):
            def exec(self, *args, **kwargs):
                raise OperationalError("SELECT", {}, Exception("connection refused"))

        def broken_session():
            with UnreachableSession() as session:
                yield session

        app.dependency_overrides[get_read_session] = broken_session
        response = client.get("/products")
        assert response.status_code == 500
        assert response.json() == {"error": "Catalog store unavailable"}
