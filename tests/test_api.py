"""
HTTP tests - routers + error mapping
"""
import pytest
from fastapi.testclient import TestClient

from marketplace.api.deps import get_lock_service, get_product_client
from marketplace.data.database import get_db
from marketplace.main import create_app


@pytest.fixture
def client(db, catalog, lock):
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_product_client] = lambda: catalog
    app.dependency_overrides[get_lock_service] = lambda: lock

    return TestClient(app)


CHECKOUT_BODY = {
    "delivery_address": {
        "latitude": 5.6037,
        "longitude": -0.187,
        "address": "12 Oxford Street",
        "city": "Accra",
    },
    "payment_method_id": "pm_card_visa",
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestCartEndpoints:
    def test_add_update_remove(self, client, catalog):
        catalog.put(10, price="3.50")

        resp = client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 2})
        assert resp.status_code == 201
        line_id = resp.json()["line_id"]

        resp = client.patch(f"/cart/items/{line_id}", params={"user_id": 1}, json={"quantity": 4})
        assert resp.status_code == 200
        assert resp.json()["quantity"] == 4

        cart = client.get("/cart/", params={"user_id": 1}).json()
        assert cart["total_items"] == 4
        assert float(cart["subtotal"]) == 14.0

        resp = client.delete(f"/cart/items/{line_id}", params={"user_id": 1})
        assert resp.status_code == 204
        assert client.get("/cart/", params={"user_id": 1}).json()["lines"] == []

    def test_quantity_zero_removes_line(self, client, catalog):
        catalog.put(10)
        line_id = client.post(
            "/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1}
        ).json()["line_id"]

        resp = client.patch(f"/cart/items/{line_id}", params={"user_id": 1}, json={"quantity": 0})

        assert resp.status_code == 204
        assert client.get("/cart/", params={"user_id": 1}).json()["item_count"] == 0

    def test_out_of_stock_error_body(self, client, catalog):
        catalog.put(10, stock=1)

        resp = client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 5})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "out_of_stock"
        assert body["details"]["available"] == 1

    def test_unknown_product_is_404(self, client):
        resp = client.post("/cart/items", params={"user_id": 1}, json={"product_id": 77, "quantity": 1})

        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_foreign_line_is_403(self, client, catalog):
        catalog.put(10)
        line_id = client.post(
            "/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1}
        ).json()["line_id"]

        resp = client.delete(f"/cart/items/{line_id}", params={"user_id": 2})

        assert resp.status_code == 403

    def test_validate_and_summary(self, client, catalog):
        catalog.put(10, price="5.00")
        catalog.put(11, price="1.00")
        client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1})
        client.post("/cart/items", params={"user_id": 1}, json={"product_id": 11, "quantity": 1})
        catalog.put(11, price="1.00", is_active=False)

        report = client.get("/cart/validate", params={"user_id": 1}).json()
        assert report["valid"] is False
        assert report["line_issues"][0]["issue"] == "inactive"

        summary = client.get("/cart/summary", params={"user_id": 1}).json()
        assert summary["needs_attention"] is True
        assert float(summary["subtotal"]) == 5.0

    def test_negative_quantity_uses_error_envelope(self, client, catalog):
        catalog.put(10)
        line_id = client.post(
            "/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1}
        ).json()["line_id"]

        resp = client.patch(f"/cart/items/{line_id}", params={"user_id": 1}, json={"quantity": -2})

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"

    def test_empty_cart_validation(self, client):
        report = client.get("/cart/validate", params={"user_id": 1}).json()

        assert report == {"valid": False, "line_issues": [], "error": "empty_cart", "price_changed": False}


class TestCheckoutEndpoint:
    def test_checkout_creates_order(self, client, catalog):
        catalog.put(10, price="10.00")
        client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 2})

        resp = client.post("/cart/checkout", params={"user_id": 1}, json=CHECKOUT_BODY)

        assert resp.status_code == 201
        order = resp.json()
        assert float(order["total"]) == 24.49
        assert order["items"][0]["quantity"] == 2
        assert client.get("/cart/", params={"user_id": 1}).json()["lines"] == []

        resp = client.get(f"/orders/{order['id']}", params={"user_id": 1})
        assert resp.status_code == 200
        assert client.get(f"/orders/{order['id']}", params={"user_id": 2}).status_code == 403

    def test_empty_cart_checkout(self, client):
        resp = client.post("/cart/checkout", params={"user_id": 1}, json=CHECKOUT_BODY)

        assert resp.status_code == 400
        assert resp.json()["error"] == "empty_cart"

    def test_unavailable_line_is_409_with_prices(self, client, catalog):
        catalog.put(10, price="10.00")
        client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1})
        catalog.put(10, price="10.00", is_active=False)

        resp = client.post("/cart/checkout", params={"user_id": 1}, json=CHECKOUT_BODY)

        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "conflict"
        issue = body["details"]["issues"][0]
        assert issue["issue"] == "inactive"
        assert float(issue["snapshot_price"]) == 10.0

    def test_price_change_needs_confirmation(self, client, catalog):
        catalog.put(10, price="10.00")
        client.post("/cart/items", params={"user_id": 1}, json={"product_id": 10, "quantity": 1})
        catalog.put(10, price="11.00")

        resp = client.post("/cart/checkout", params={"user_id": 1}, json=CHECKOUT_BODY)
        assert resp.status_code == 409
        assert resp.json()["details"]["issues"][0]["issue"] == "price_changed"
        assert float(resp.json()["details"]["issues"][0]["current_price"]) == 11.0

        assert client.post("/cart/confirm-prices", params={"user_id": 1}).status_code == 200
        assert client.post("/cart/checkout", params={"user_id": 1}, json=CHECKOUT_BODY).status_code == 201


class TestReviewEndpoints:
    def test_review_lifecycle(self, client):
        resp = client.post("/reviews/", params={"user_id": 1}, json={"receiver_id": 2, "rating": 5})
        assert resp.status_code == 201
        review_id = resp.json()["id"]

        client.post("/reviews/", params={"user_id": 3}, json={"receiver_id": 2, "rating": 3})

        stats = client.get("/reviews/stats", params={"user_id": 2}).json()
        assert stats["total_reviews"] == 2
        assert stats["average_rating"] == 4.0

        resp = client.post(f"/reviews/{review_id}/helpful", params={"user_id": 3})
        assert resp.json() == {"review_id": review_id, "helpful_count": 1, "counted": True}

        resp = client.patch(f"/reviews/{review_id}", params={"user_id": 3}, json={"rating": 1})
        assert resp.status_code == 403

        assert client.delete(f"/reviews/{review_id}", params={"user_id": 1}).status_code == 204
        assert client.get(f"/reviews/{review_id}").status_code == 404

    def test_listing(self, client):
        client.post("/reviews/", params={"user_id": 1}, json={"receiver_id": 2, "rating": 4})
        client.post("/reviews/", params={"user_id": 1}, json={"business_id": 1, "rating": 2})

        listing = client.get("/reviews/", params={"receiver_id": 2}).json()
        assert listing["pagination"]["total"] == 1

        mine = client.get("/reviews/mine", params={"user_id": 1}).json()
        assert mine["pagination"]["total"] == 2

        assert client.get("/reviews/", params={"limit": 0}).status_code == 400

    def test_missing_target_is_400(self, client):
        resp = client.post("/reviews/", params={"user_id": 1}, json={"rating": 4})

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"

    def test_rating_aggregates(self, client):
        client.post(
            "/reviews/",
            params={"user_id": 1},
            json={"receiver_id": 2, "rating": 5, "service_rating": 4},
        )
        client.post("/reviews/", params={"user_id": 3}, json={"receiver_id": 2, "rating": 4})
        client.post("/reviews/", params={"user_id": 1}, json={"business_id": 1, "rating": 2})

        user = client.get("/reviews/ratings", params={"user_id": 2, "type": "SERVICE_PROVIDER"}).json()
        assert user["rating"] == 4.5
        assert user["total_reviews"] == 2
        assert user["sub_ratings"]["service_rating"] == 4.0
        assert user["sub_ratings"]["timeliness_rating"] is None

        business = client.get("/reviews/ratings", params={"business_id": 1}).json()
        assert business["rating"] == 2.0
        assert business["total_reviews"] == 1

        unrated = client.get("/reviews/ratings", params={"user_id": 3, "type": "DRIVER"}).json()
        assert unrated["rating"] is None
        assert unrated["total_reviews"] == 0

        assert client.get("/reviews/ratings").status_code == 400
        assert client.get("/reviews/ratings", params={"business_id": 99}).status_code == 404
