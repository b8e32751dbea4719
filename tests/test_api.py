from decimal import Decimal

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from app.config import Settings
from app.main import create_app
from app.repositories.orders import OrderRepository
from tests.factories import (
    ADMIN, ALICE, BOB, BOTTLE, STROLLER, TEST_JWT_SECRET,
    FakeImageStore, auth_header, fill_cart, make_token,
)

CHECKOUT_BODY = {
    "userId": ALICE,
    "paymentMethod": "cod",
    "address": "123 Main St",
    "phone": "555-1234",
}


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
async def client(seeded_database, image_store):
    settings = Settings(
        _env_file=None,
        jwt_secret=TEST_JWT_SECRET,
        media_base_url="http://media.test/",
        kafka_enabled=False,
        db_create_tables=False
    )
    app = create_app(settings=settings, database=seeded_database, image_store=image_store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = await client.get("/health/ready")
    assert response.status_code == 200


async def test_checkout_returns_created_order(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 2, BOTTLE: 1})

    response = await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=auth_header(ALICE))

    assert response.status_code == 201
    body = response.json()
    assert body["orderId"] > 0
    assert Decimal(body["totalPrice"]) == Decimal("25.50")
    assert body["itemsCount"] == 2

    cart = await client.get("/cart", headers=auth_header(ALICE))
    assert cart.json()["items"] == []


async def test_checkout_empty_cart_is_bad_request(client):
    response = await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=auth_header(ALICE))

    assert response.status_code == 400
    assert response.json() == {"error": "empty_cart", "message": "Cart is empty"}


async def test_checkout_missing_field_is_bad_request(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 1})
    body = dict(CHECKOUT_BODY)
    del body["phone"]

    response = await client.post("/orders/checkout", json=body, headers=auth_header(ALICE))

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"


async def test_checkout_requires_token(client):
    response = await client.post("/orders/checkout", json=CHECKOUT_BODY)
    assert response.status_code == 401

    forged = make_token(ALICE, secret="another-secret-key-for-marketplace-tests")
    bad = {"Authorization": f"Bearer {forged}"}
    response = await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=bad)
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


async def test_checkout_for_another_user_is_forbidden(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 1})

    response = await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=auth_header(BOB))

    assert response.status_code == 403
    cart = await client.get("/cart", headers=auth_header(ALICE))
    assert len(cart.json()["items"]) == 1


async def test_checkout_with_zero_padded_own_id(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 1})
    body = dict(CHECKOUT_BODY, userId=f"00{ALICE}")

    response = await client.post("/orders/checkout", json=body, headers=auth_header(ALICE))

    assert response.status_code == 201
    assert Decimal(response.json()["totalPrice"]) == Decimal("10.00")


async def test_order_detail_access(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 2, BOTTLE: 1})
    created = await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=auth_header(ALICE))
    order_id = created.json()["orderId"]

    own = await client.get(f"/orders/{order_id}", headers=auth_header(ALICE))
    assert own.status_code == 200
    assert own.json()["user_name"] == "Alice"
    assert [item["product_name"] for item in own.json()["items"]] == ["Stroller", "Baby bottle"]

    other = await client.get(f"/orders/{order_id}", headers=auth_header(BOB))
    assert other.status_code == 403
    assert "items" not in other.json()

    admin = await client.get(f"/orders/{order_id}", headers=auth_header(ADMIN, "admin"))
    assert admin.status_code == 200


async def test_order_detail_errors(client):
    missing = await client.get("/orders/9999", headers=auth_header(ALICE))
    assert missing.status_code == 404

    malformed = await client.get("/orders/abc", headers=auth_header(ALICE))
    assert malformed.status_code == 400
    assert malformed.json()["error"] == "invalid_input"

    too_large = await client.get("/orders/99999999999999999999", headers=auth_header(ALICE))
    assert too_large.status_code == 400
    assert too_large.json()["error"] == "invalid_input"


async def test_store_outage_is_service_unavailable(client, monkeypatch):
    async def connection_refused(self, order_id):
        raise OperationalError("SELECT orders", {}, ConnectionRefusedError("connection refused"))

    monkeypatch.setattr(OrderRepository, "get_with_user_name", connection_refused)

    response = await client.get("/orders/1", headers=auth_header(ALICE))

    assert response.status_code == 503
    assert response.json() == {
        "error": "store_unavailable",
        "message": "Data store temporarily unavailable"
    }


async def test_user_orders(client, seeded_database):
    await fill_cart(seeded_database, ALICE, {STROLLER: 1})
    await client.post("/orders/checkout", json=CHECKOUT_BODY, headers=auth_header(ALICE))

    response = await client.get(f"/orders/user/{ALICE}", headers=auth_header(ALICE))
    assert response.status_code == 200
    assert len(response.json()) == 1

    forbidden = await client.get(f"/orders/user/{ALICE}", headers=auth_header(BOB))
    assert forbidden.status_code == 403

    admin = await client.get(f"/orders/user/{ALICE}", headers=auth_header(ADMIN, "admin"))
    assert len(admin.json()) == 1


async def test_cart_endpoints(client):
    added = await client.post(
        "/cart/items",
        json={"product_id": STROLLER, "quantity": 2},
        headers=auth_header(ALICE)
    )
    assert added.status_code == 201
    item_id = added.json()["items"][0]["id"]
    assert Decimal(added.json()["total_amount"]) == Decimal("20.00")

    updated = await client.put(f"/cart/items/{item_id}", json={"quantity": 3}, headers=auth_header(ALICE))
    assert updated.json()["items"][0]["quantity"] == 3

    removed = await client.delete(f"/cart/items/{item_id}", headers=auth_header(ALICE))
    assert removed.status_code == 200

    missing = await client.delete(f"/cart/items/{item_id}", headers=auth_header(ALICE))
    assert missing.status_code == 404


async def test_product_image_upload(client, image_store):
    response = await client.post(
        f"/products/{STROLLER}/images",
        files={"file": ("front.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
        headers=auth_header(BOB)
    )

    assert response.status_code == 201
    assert response.json()["is_primary"] is True
    assert image_store.uploaded == ["marketplace/img1"]

    listed = await client.get(f"/products/{STROLLER}/images")
    assert [image["id"] for image in listed.json()] == [response.json()["id"]]

    forbidden = await client.post(
        f"/products/{STROLLER}/images",
        files={"file": ("front.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
        headers=auth_header(ALICE)
    )
    assert forbidden.status_code == 403
