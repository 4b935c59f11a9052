"""End-to-end tests through the HTTP bridge."""

import pytest
from fastapi.testclient import TestClient

from visionpos.api.dispatcher import Command
from visionpos.context import build_context
from visionpos.main import create_app


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def _login(client, username="admin", password="admin123"):
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.json()
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


@pytest.fixture
def admin(client):
    return _login(client)


@pytest.fixture
def product(client, admin):
    resp = client.post(
        "/api/products",
        json={"name": "Soda", "sku": "SODA-1", "price": "9.99", "tax_rate": "7.5", "stock": 10},
        headers=admin,
    )
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture
def cashier(client, admin):
    resp = client.post(
        "/api/users",
        json={
            "username": "casey",
            "password": "till-pass-1",
            "email": "casey@visionpos.app",
            "role": "cashier",
        },
        headers=admin,
    )
    assert resp.status_code == 201
    return _login(client, "casey", "till-pass-1")


# ── Bridge basics ──────────────────────────────────

def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_unknown_endpoint(client, admin):
    resp = client.get("/api/nowhere", headers=admin)

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "status": 404, "message": "Endpoint not found"}


def test_protected_endpoint_needs_token(client):
    resp = client.get("/api/products")

    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_current_user_and_logout(client, admin):
    assert client.get("/api/auth/current-user", headers=admin).json()["data"]["username"] == "admin"

    client.post("/api/auth/logout", headers=admin)

    assert client.get("/api/auth/current-user", headers=admin).status_code == 401
    assert client.get("/api/products", headers=admin).status_code == 401


def test_bad_login(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid username or password"


# ── Products ───────────────────────────────────────

def test_product_crud(client, admin, product):
    assert product["stock"] == 10
    pid = product["id"]

    resp = client.put(f"/api/products/{pid}", json={"price": "8.50", "stock": 4}, headers=admin)
    assert resp.json()["data"]["price"] == "8.50"
    assert resp.json()["data"]["stock"] == 4

    found = client.get("/api/products/search/soda", headers=admin).json()["data"]
    assert [p["id"] for p in found] == [pid]

    dup = client.post(
        "/api/products", json={"name": "Other", "sku": "SODA-1", "price": "1.00"}, headers=admin
    )
    assert dup.status_code == 400

    assert client.delete(f"/api/products/{pid}", headers=admin).status_code == 200
    assert client.get(f"/api/products/{pid}", headers=admin).status_code == 404


def test_invalid_product_payload(client, admin):
    resp = client.post("/api/products", json={"price": "-1"}, headers=admin)

    assert resp.status_code == 400
    assert "name" in resp.json()["message"]


# ── Transactions ───────────────────────────────────

def test_sale_lifecycle(client, admin, cashier, product):
    resp = client.post(
        "/api/transactions",
        json={"items": [{"product_id": product["id"], "quantity": 3}]},
        headers=cashier,
    )
    assert resp.status_code == 201
    txn = resp.json()["data"]
    assert (txn["subtotal"], txn["tax_amount"], txn["total"]) == ("29.97", "2.25", "32.22")
    assert txn["status"] == "pending"

    short = client.post(
        f"/api/transactions/{txn['id']}/complete",
        json={"payment_methods": [{"type": "cash", "amount": "20"}]},
        headers=admin,
    )
    assert short.status_code == 400
    assert client.get(f"/api/transactions/{txn['id']}", headers=cashier).json()["data"]["status"] == "pending"

    done = client.post(
        f"/api/transactions/{txn['id']}/complete",
        json={"payment_methods": [{"type": "cash", "amount": "40"}]},
        headers=admin,
    )
    assert done.status_code == 200
    assert done.json()["data"]["change_due"] == "7.78"
    assert client.get(f"/api/products/{product['id']}", headers=admin).json()["data"]["stock"] == 7

    denied = client.post(f"/api/transactions/{txn['id']}/void", json={}, headers=cashier)
    assert denied.status_code == 403
    assert denied.json()["success"] is False

    voided = client.post(
        f"/api/transactions/{txn['id']}/void", json={"reason": "refund"}, headers=admin
    )
    assert voided.json()["data"]["status"] == "voided"
    assert client.get(f"/api/products/{product['id']}", headers=admin).json()["data"]["stock"] == 10

    listed = client.get("/api/transactions", params={"status": "voided"}, headers=admin).json()["data"]
    assert [t["id"] for t in listed] == [txn["id"]]


def test_transaction_over_stock(client, cashier, product):
    resp = client.post(
        "/api/transactions",
        json={"items": [{"product_id": product["id"], "quantity": 11}]},
        headers=cashier,
    )

    assert resp.status_code == 400
    assert "Insufficient stock" in resp.json()["message"]


# ── Users / settings / vision ──────────────────────

def test_cannot_delete_own_account(client, admin):
    me = client.get("/api/auth/current-user", headers=admin).json()["data"]

    resp = client.delete(f"/api/users/{me['id']}", headers=admin)

    assert resp.status_code == 400


def test_narrowed_manager_loses_void(client, admin):
    created = client.post(
        "/api/users",
        json={
            "username": "morgan",
            "password": "floor-pass-1",
            "email": "morgan@visionpos.app",
            "role": "manager",
        },
        headers=admin,
    ).json()["data"]

    resp = client.put(
        f"/api/users/{created['id']}", json={"permissions": ["products:read"]}, headers=admin
    )
    assert resp.json()["data"]["permissions"] == ["products:read"]

    manager = _login(client, "morgan", "floor-pass-1")
    assert client.post("/api/transactions/txn_x/void", json={}, headers=manager).status_code == 403


def test_cashier_cannot_manage_users(client, cashier):
    assert client.get("/api/users", headers=cashier).status_code == 403


def test_settings(client, admin):
    assert client.get("/api/settings/tax_rate", headers=admin).json()["data"]["value"] == 7.5

    client.put("/api/settings/currency", json={"value": "EUR"}, headers=admin)

    assert client.get("/api/settings", headers=admin).json()["data"]["currency"] == "EUR"
    assert client.get("/api/settings/nope", headers=admin).status_code == 404
    assert client.put("/api/settings/currency", json={}, headers=admin).status_code == 400


def test_vision_process(client, admin, product):
    assert client.put("/api/vision/threshold", json={"threshold": 0}, headers=admin).status_code == 200

    resp = client.post("/api/vision/process", json={"image_data": "frame"}, headers=admin)

    candidates = resp.json()["data"]
    assert [c["product_id"] for c in candidates] == [product["id"]]
    assert candidates[0]["product"]["name"] == "Soda"


def test_invalid_threshold_setting_rejected(client, admin, product):
    resp = client.put(
        "/api/settings/vision_confidence_threshold", json={"value": "high"}, headers=admin
    )
    assert resp.status_code == 400

    assert client.post(
        "/api/vision/process", json={"image_data": "frame"}, headers=admin
    ).status_code == 200


@pytest.mark.asyncio
async def test_unreadable_stored_threshold_falls_back(settings):
    ctx = await build_context(settings)
    try:
        await ctx.store.put(
            "settings",
            "vision_confidence_threshold",
            {"key": "vision_confidence_threshold", "value": "high"},
        )
        token = (await ctx.auth.login("admin", "admin123")).access_token
        envelope = await ctx.dispatch(
            Command(verb="POST", path="/vision/process", data={"image_data": "frame"}, token=token)
        )
        assert envelope.status == 200
    finally:
        await ctx.close()
