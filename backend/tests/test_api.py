from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from crud.expense_categories import get_category_by_name
from crud.job_cards import create_job_card
from database import get_db
from main import app
from models.employees import DIRECTOR, STAFF
from schemas.job_cards import JobCardCreate
from utils.auth_utils import create_access_token


@pytest.fixture()
def api(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def director_headers(director):
    return {"Authorization": f"Bearer {create_access_token(director.id, DIRECTOR)}"}


@pytest.fixture()
def staff_headers(make_employee):
    staff = make_employee()
    return {"Authorization": f"Bearer {create_access_token(staff.id, STAFF)}"}


def test_requests_without_token_are_rejected(api):
    resp = api.get("/sales/")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authorization header is missing"


def test_invalid_token_is_rejected(api):
    resp = api.get("/sales/", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_staff_cannot_use_director_routes(api, staff_headers):
    assert api.post("/payment-reminders/monthly", headers=staff_headers).status_code == 403
    assert api.get("/system-logs/Sale/1", headers=staff_headers).status_code == 403


def test_sale_lifecycle_over_http(api, director_headers, make_client, product, license_mock, sms_mock):
    client = make_client(configured=False)

    resp = api.post("/sales/", headers=director_headers, json={
        "client_id": client.id,
        "items": [{"product_id": product.id, "quantity": 1, "unit_price": "1200.00"}],
        "first_installment": {"amount": "200"},
    })
    assert resp.status_code == 201
    sale = resp.json()
    assert sale["sale_number"].startswith("SALE-")
    assert Decimal(sale["total_amount"]) == Decimal("1200")
    assert Decimal(sale["paid_amount"]) == Decimal("200")
    assert sale["status"] == "PENDING"

    resp = api.post(f"/sales/{sale['id']}/installments", headers=director_headers, json={"amount": "1000"})
    assert resp.status_code == 201

    resp = api.get(f"/sales/{sale['id']}", headers=director_headers)
    assert resp.json()["status"] == "COMPLETED"
    assert len(resp.json()["installments"]) == 2

    resp = api.get(f"/system-logs/Sale/{sale['id']}", headers=director_headers)
    assert resp.status_code == 200
    assert resp.json()[-1]["action"] == "CREATE"


def test_domain_errors_map_to_status_codes(api, director_headers, make_client, make_sale):
    resp = api.get("/sales/999", headers=director_headers)
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Sale not found"}

    sale = make_sale(make_client(configured=False), total=Decimal("500"))
    resp = api.post(f"/sales/{sale.id}/payment-extension", headers=director_headers,
                    json={"payment_extension_due_date": date(2026, 7, 1).isoformat()})
    assert resp.status_code == 400
    assert "not configured for license extension" in resp.json()["detail"]


def test_staff_cannot_approve_expenses(api, db, staff_headers, director_headers):
    transport = get_category_by_name(db, "Transport")
    resp = api.post("/expenses/", headers=staff_headers, json={
        "category_id": transport.id,
        "description": "Matatu fare",
        "amount": "150",
        "expense_date": "2026-05-04",
    })
    assert resp.status_code == 201
    expense_id = resp.json()["id"]
    assert resp.json()["expense_number"].startswith("EXP-")

    resp = api.patch(f"/expenses/{expense_id}/status", headers=staff_headers, json={"status": "APPROVED"})
    assert resp.status_code == 403

    resp = api.patch(f"/expenses/{expense_id}/status", headers=director_headers, json={"status": "APPROVED"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "APPROVED"
    assert resp.json()["approved_by_id"] is not None


def test_categories_route_is_not_shadowed_by_expense_id(api, staff_headers):
    resp = api.get("/expenses/categories", headers=staff_headers)
    assert resp.status_code == 200
    assert "Miscellaneous" in [category["name"] for category in resp.json()]


def test_job_card_over_http_creates_linked_expense(api, director_headers, make_client):
    client = make_client(configured=False)
    resp = api.post("/job-cards/", headers=director_headers, json={
        "client_id": client.id,
        "status": "IN_PROGRESS",
        "expenses": [{"category": "Taxi", "amount": "700"}],
    })
    assert resp.status_code == 201
    job_card = resp.json()
    assert job_card["job_number"].startswith("JC-")

    resp = api.get("/expenses/", headers=director_headers, params={"job_card_id": job_card["id"]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total"] == 1
    assert body["data"][0]["status"] == "PENDING"


def test_job_card_lookup_by_number(api, staff_headers, make_client, db):
    job_card = create_job_card(db, JobCardCreate(client_id=make_client(configured=False).id))

    resp = api.get(f"/job-cards/job-number/{job_card.job_number}", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == job_card.id

    assert api.get("/job-cards/job-number/JC-1999-001", headers=staff_headers).status_code == 404


def test_expense_category_by_id(api, db, staff_headers):
    transport = get_category_by_name(db, "Transport")

    resp = api.get(f"/expenses/categories/{transport.id}", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Transport"

    assert api.get("/expenses/categories/999", headers=staff_headers).status_code == 404


def test_roles_are_read_only(api, staff_headers):
    resp = api.get("/roles/", headers=staff_headers)
    assert resp.status_code == 200
    assert [role["name"] for role in resp.json()] == ["DIRECTOR", "STAFF"]
    assert api.post("/roles/", headers=staff_headers, json={"name": "ADMIN"}).status_code == 405


def test_client_integrations_over_http(api, director_headers, staff_headers, make_client):
    client = make_client()

    resp = api.post("/client-integrations/", headers=director_headers, json={
        "client_id": client.id, "label": "VPN", "value": "10.0.0.5",
    })
    assert resp.status_code == 201
    integration_id = resp.json()["id"]

    assert api.get("/client-integrations/", headers=staff_headers, params={"client_id": client.id}).status_code == 403

    resp = api.get("/client-integrations/", headers=director_headers, params={"client_id": client.id})
    assert [row["label"] for row in resp.json()] == ["VPN"]

    resp = api.post("/client-integrations/", headers=director_headers, json={
        "client_id": client.id, "label": " ", "value": "x",
    })
    assert resp.status_code == 422

    assert api.delete(f"/client-integrations/{integration_id}", headers=director_headers).status_code == 204
    assert api.get(f"/client-integrations/{integration_id}", headers=director_headers).status_code == 404


def test_client_and_product_delete_over_http(api, director_headers, make_client, product):
    client = make_client()

    resp = api.delete(f"/clients/{client.id}", headers=director_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "archived"
    assert api.get("/clients/", headers=director_headers).json() == []

    resp = api.delete(f"/products/{product.id}", headers=director_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "discontinued"


def test_product_categories_over_http(api, director_headers, staff_headers):
    resp = api.post("/product-categories/", headers=director_headers, json={"name": "Software"})
    assert resp.status_code == 201
    category_id = resp.json()["id"]

    assert api.post("/product-categories/", headers=director_headers, json={"name": "Software"}).status_code == 400
    assert api.post("/product-categories/", headers=staff_headers, json={"name": "Hardware"}).status_code == 403

    resp = api.post("/products/", headers=director_headers, json={
        "name": "Ventura POS", "unit_price": "25000", "category_id": category_id,
    })
    assert resp.status_code == 201
    assert resp.json()["category_name"] == "Software"


def test_lifespan_seeds_defaults_without_starting_scheduler():
    session = mock.MagicMock()
    with mock.patch("main.SessionLocal", return_value=session), \
            mock.patch("main.ensure_default_roles") as roles, \
            mock.patch("main.seed_default_categories") as categories, \
            mock.patch("scheduler.scheduler.start") as start:
        with TestClient(app) as client:
            assert client.get("/").status_code == 200

    roles.assert_called_once_with(session)
    categories.assert_called_once_with(session)
    session.close.assert_called_once()
    start.assert_not_called()
