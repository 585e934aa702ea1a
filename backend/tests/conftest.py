"""
Pytest fixtures for the backend tests.

Every test gets a fresh in-memory SQLite database with the default roles and
expense categories seeded. Outbound SMS and remote license calls are replaced
with mocks; no test touches the network.
"""
import os
import tempfile

# Settings are read at import time, so the environment must be prepared first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="ventura-test-logs-")

from decimal import Decimal
from unittest import mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401
from crud.employees import ensure_default_roles, get_role_by_name
from crud.expense_categories import seed_default_categories
from crud.sales import create_sale
from models.clients import Client
from models.employees import Employee, DIRECTOR, STAFF
from models.products import Product
from schemas.sales import FirstInstallment, SaleCreate, SaleItemCreate


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    ensure_default_roles(session)
    seed_default_categories(session)
    yield session
    session.close()


@pytest.fixture()
def sms_mock():
    """Replaces the SMS gateway used by the license flows."""
    with mock.patch("crud.license_extensions.send_single_sms") as sms:
        sms.return_value = {}
        yield sms


@pytest.fixture()
def license_mock():
    """Replaces the remote license API primitive."""
    with mock.patch("crud.license_extensions.update_client_license_expiry") as update:
        yield update


@pytest.fixture()
def make_client(db):
    def _make_client(configured=True, **overrides):
        values = {
            "company_name": "Acme Traders Ltd",
            "contact_person": "Alice Wanjiku",
            "phone": "0712345678",
        }
        if configured:
            values.update({
                "backend_base_url": "https://acme.example.com/api/",
                "api_user_name": "acme-admin",
                "api_password": "s3cret",
            })
        values.update(overrides)
        client = Client(**values)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client
    return _make_client


@pytest.fixture()
def make_employee(db):
    def _make_employee(role=STAFF, first_name="Sam", phone="0722000111", status="active", email=None):
        role_row = get_role_by_name(db, role)
        employee = Employee(
            first_name=first_name,
            last_name="Otieno",
            email=email or f"{first_name.lower()}.{role.lower()}@example.com",
            phone=phone,
            status=status,
            role_id=role_row.id,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee
    return _make_employee


@pytest.fixture()
def director(make_employee):
    return make_employee(role=DIRECTOR, first_name="Diana", phone="0733444555")


@pytest.fixture()
def product(db):
    product = Product(name="Ventura Prime ERP", sku="VP-ERP", unit_price=Decimal("1000.00"))
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture()
def make_sale(db, product):
    def _make_sale(client, total=Decimal("1000.00"), first_installment=None, **overrides):
        data = SaleCreate(
            client_id=client.id,
            items=[SaleItemCreate(product_id=product.id, quantity=1, unit_price=total)],
            first_installment=FirstInstallment(**first_installment) if first_installment else None,
            **overrides,
        )
        return create_sale(db, data, performed_by="1")
    return _make_sale
