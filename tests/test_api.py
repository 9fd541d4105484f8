import itertools
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.records.domain.errors import PersistenceError
from app.records.infrastructure.exchange_rates import UsdInrRateProvider
from app.records.infrastructure.local_store import LocalJsonRecordStore
from routes.dependencies import get_rate_provider, get_record_store
from server import app

ADMIN_EMAIL = "asha@interiorstudio.in"
EMPLOYEE_EMAIL = "ravi@interiorstudio.in"
PASSWORD = "veneer123"


class UnreachableStore:
    async def _fail(self, *args, **kwargs):
        raise PersistenceError(
            "Could not fetch profiles",
            detail="connection refused",
            hint="Is the database running?",
        )

    select_all = select_where = get = insert = upsert = delete = _fail


def use_store(store):
    async def override():
        yield store

    app.dependency_overrides[get_record_store] = override


@pytest.fixture
def client(tmp_path):
    ticks = itertools.count()
    start = datetime(2026, 1, 17, 10, 0, 0, tzinfo=timezone.utc)
    clock = lambda: start + timedelta(seconds=next(ticks))  # noqa: E731
    use_store(LocalJsonRecordStore(tmp_path / "data", clock=clock))
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"rates": {"INR": 84}}))
    app.dependency_overrides[get_rate_provider] = lambda: UsdInrRateProvider(transport=transport)
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_up(client, name, email):
    response = client.post(
        "/api/auth/signup", json={"full_name": name, "email": email, "password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    return response.json()


def auth(token_response):
    return {"Authorization": f"Bearer {token_response['access_token']}"}


@pytest.fixture
def admin(client):
    return auth(sign_up(client, "Asha Rao", ADMIN_EMAIL))


@pytest.fixture
def employee(client, admin):
    return auth(sign_up(client, "Ravi Kumar", EMPLOYEE_EMAIL))


# ==================== AUTH ====================

def test_first_signup_is_admin_and_later_ones_are_employees(client):
    first = sign_up(client, "Asha Rao", ADMIN_EMAIL)
    second = sign_up(client, "Ravi Kumar", EMPLOYEE_EMAIL)

    assert first["user"]["role"] == "admin"
    assert second["user"]["role"] == "employee"

    me = client.get("/api/auth/me", headers=auth(second))
    assert me.status_code == 200
    assert me.json()["name"] == "Ravi Kumar"


def test_signup_rejects_duplicate_email_and_short_password(client, admin):
    duplicate = client.post(
        "/api/auth/signup",
        json={"full_name": "Someone", "email": ADMIN_EMAIL.upper(), "password": PASSWORD},
    )
    short = client.post(
        "/api/auth/signup",
        json={"full_name": "Someone", "email": "new@interiorstudio.in", "password": "123"},
    )

    assert duplicate.status_code == 400
    assert short.status_code == 400


def test_login(client, admin):
    ok = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})
    wrong = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope123"})

    assert ok.status_code == 200
    assert ok.json()["user"]["role"] == "admin"
    assert wrong.status_code == 401


def test_requests_without_token_are_rejected(client):
    response = client.get("/api/inventory")
    assert response.status_code in (401, 403)


def test_unreachable_store_is_reported_with_details(client):
    use_store(UnreachableStore())

    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})

    assert response.status_code == 503
    assert response.json()["detail"] == {
        "message": "Could not fetch profiles",
        "detail": "connection refused",
        "hint": "Is the database running?",
    }


# ==================== NAVIGATION ====================

def test_logs_page_hidden_and_denied_for_employees(client, admin, employee):
    employee_nav = [page["id"] for page in client.get("/api/navigation", headers=employee).json()]
    admin_nav = [page["id"] for page in client.get("/api/navigation", headers=admin).json()]

    assert "logs" not in employee_nav
    assert "logs" in admin_nav
    assert client.get("/api/pages/logs", headers=employee).json() == {"page": None, "denied": True}
    assert client.get("/api/pages/logs", headers=admin).json()["page"]["label"] == "Logs"
    assert client.get("/api/pages/nowhere", headers=employee).json()["page"]["id"] == "overview"
    assert client.get("/api/logs", headers=employee).status_code == 403


# ==================== RECORDS ====================

def test_material_issue_flow_and_financials(client, admin, employee):
    material = client.post(
        "/api/inventory",
        headers=admin,
        json={"name": "Teak veneer", "quantity": "40", "unit": "sheet", "price": "150.50"},
    ).json()
    customer = client.post("/api/customers", headers=admin, json={"name": "Meera Iyer"}).json()
    project = client.post(
        "/api/projects",
        headers=admin,
        json={"name": "Living room", "customer_id": customer["id"], "project_value": 5000},
    ).json()

    for quantity, rate in ((10, "150.50"), (5, "160.00")):
        response = client.post(
            "/api/material-issues",
            headers=employee,
            json={
                "project_id": project["id"],
                "material_id": material["id"],
                "quantity": quantity,
                "rate_at_issue": rate,
            },
        )
        assert response.status_code == 200, response.text

    financials = client.get(f"/api/projects/{project['id']}/financials", headers=admin).json()
    inventory = client.get("/api/inventory", headers=admin).json()
    issues = client.get(f"/api/projects/{project['id']}/material-issues", headers=admin).json()
    logs = client.get("/api/logs", headers=admin).json()

    assert financials["total_material_cost"] == 2305.0
    assert financials["profit"] == 2695.0
    assert financials["display"]["profit"] == "₹2,695.00"
    assert inventory[0]["quantity"] == 25
    assert len(issues) == 2
    assert [log["quantity"] for log in logs] == [-5, -10, 40]
    assert logs[0]["material_name"] == "Teak veneer"
    assert logs[0]["used_by"] == "Ravi Kumar"


def test_invalid_issue_quantity_is_a_bad_request(client, admin):
    response = client.post(
        "/api/material-issues",
        headers=admin,
        json={"project_id": "p-1", "material_id": "m-1", "quantity": "-1", "rate_at_issue": "10"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity must be a positive whole number"


def test_update_keeps_one_record_and_delete_twice_is_fine(client, admin):
    created = client.post(
        "/api/vendors", headers=admin, json={"name": "Shree Plywood", "phone": "080 2222"}
    ).json()
    updated = client.put(
        f"/api/vendors/{created['id']}", headers=admin, json={"name": "Shree Plywood & Co"}
    ).json()

    vendors = client.get("/api/vendors", headers=admin).json()
    assert len(vendors) == 1
    assert updated["name"] == "Shree Plywood & Co"
    assert updated["created_at"] == created["created_at"]

    first = client.delete(f"/api/vendors/{created['id']}", headers=admin)
    second = client.delete(f"/api/vendors/{created['id']}", headers=admin)
    assert first.json()["deleted"] is True
    assert second.status_code == 200
    assert second.json()["deleted"] is False


def test_project_for_missing_customer_is_not_found(client, admin):
    response = client.post(
        "/api/projects",
        headers=admin,
        json={"name": "Kitchen", "customer_id": "missing", "project_value": 100},
    )
    assert response.status_code == 404


def test_purchase_and_payment(client, admin):
    customer = client.post("/api/customers", headers=admin, json={"name": "Meera"}).json()
    vendor = client.post("/api/vendors", headers=admin, json={"name": "Shree Plywood"}).json()
    worker = client.post(
        "/api/workers", headers=admin, json={"name": "Suresh", "trade": "Carpenter"}
    ).json()

    purchase = client.post(
        "/api/vendor-purchases",
        headers=admin,
        json={
            "customer_id": customer["id"],
            "vendor_id": vendor["id"],
            "item_description": "18mm BWP ply",
            "quantity": 4,
            "rate": "2500",
        },
    )
    payment = client.post(
        "/api/payments",
        headers=admin,
        json={"payee_type": "worker", "payee_id": worker["id"], "amount": "1500"},
    )

    assert purchase.json()["total_amount"] == 10000.0
    assert payment.json()["payee_id"] == worker["id"]
    worker_payments = client.get("/api/payments?payee_type=worker", headers=admin).json()
    assert [p["amount"] for p in worker_payments] == [1500.0]


def test_overview_and_currency(client, admin):
    client.post(
        "/api/inventory",
        headers=admin,
        json={"name": "Hinges", "quantity": 8, "unit": "piece", "price": 45},
    )

    overview = client.get("/api/overview", headers=admin).json()
    currency = client.get("/api/currency/usd-inr?amount=10", headers=admin).json()

    assert overview["material_count"] == 1
    assert [m["name"] for m in overview["low_stock_materials"]] == ["Hinges"]
    assert currency["inr"] == 840.0
    assert currency["formatted"] == "₹840.00"
    assert currency["error"] is None


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
