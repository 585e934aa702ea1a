from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from crud.audit_log import list_audit_logs
from crud.client_integrations import (
    create_integration,
    delete_integration,
    get_integration,
    list_integrations,
    update_integration,
)
from crud.clients import create_client, delete_client, get_client, list_clients, update_client
from crud.employees import get_active_directors_with_phone, get_role, list_roles, terminate_employee
from crud.products import (
    create_product,
    create_product_category,
    delete_product,
    delete_product_category,
    list_product_categories,
    list_products,
    update_product,
)
from models.employees import DIRECTOR
from schemas.clients import ClientCreate, ClientIntegrationCreate, ClientIntegrationUpdate, ClientUpdate
from schemas.products import ProductCategoryCreate, ProductCreate, ProductUpdate
from utils.errors import NotFoundError, ValidationError


def test_client_password_is_redacted_in_audit(db):
    client = create_client(db, ClientCreate(
        company_name="Acme Traders Ltd",
        backend_base_url="https://acme.example.com/api",
        api_user_name="acme-admin",
        api_password="s3cret",
    ), performed_by="1")

    (log,) = list_audit_logs(db, "Client", client.id)
    assert log.new_values["api_password"] == "***"
    assert client.license_configured is True


def test_blank_credentials_leave_client_unconfigured(db):
    client = create_client(db, ClientCreate(company_name="Beta", backend_base_url="https://beta.example.com"))
    assert client.license_configured is False

    client = update_client(db, client.id, ClientUpdate(api_user_name="beta", api_password="   "))
    assert client.license_configured is False

    client = update_client(db, client.id, ClientUpdate(api_password="pw"))
    assert client.license_configured is True


def test_display_name_prefers_contact_person(make_client):
    assert make_client(contact_person="  Alice  ").display_name == "Alice"
    assert make_client(contact_person=" ").display_name == "Acme Traders Ltd"


def test_only_active_directors_with_phone_get_summaries(db, make_employee, director):
    make_employee(role=DIRECTOR, first_name="Noah", phone=None)
    leaving = make_employee(role=DIRECTOR, first_name="Lena", phone="0700111222")
    make_employee(first_name="Sam", phone="0722000111")

    assert [e.first_name for e in get_active_directors_with_phone(db)] == ["Diana", "Lena"]

    terminate_employee(db, leaving.id, performed_by=str(director.id))

    assert [e.first_name for e in get_active_directors_with_phone(db)] == ["Diana"]
    assert list_audit_logs(db, "Employee", leaving.id)[0].new_values["status"] == "terminated"


def test_create_product(db):
    product = create_product(db, ProductCreate(name="Support hours", sku="SUP-HR", unit_price=Decimal("2500")))
    assert product.unit_price == Decimal("2500")
    assert list_audit_logs(db, "Product", product.id)[0].action == "CREATE"


def test_scheduler_registers_both_reminder_jobs():
    from scheduler import scheduler

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"payment_reminders_job", "payment_extension_reminders_job"}
    assert str(jobs["payment_reminders_job"].trigger.fields[2]) == "1,2,3"


def test_deleted_client_is_archived_not_removed(db, make_client, make_sale):
    client = make_client()
    other = make_client(company_name="Beta Stores")
    sale = make_sale(client, total=Decimal("1000"))

    archived = delete_client(db, client.id, performed_by="1")

    assert archived.status == "archived"
    assert get_client(db, client.id).sales[0].id == sale.id
    assert [c.id for c in list_clients(db)] == [other.id]
    log = list_audit_logs(db, "Client", client.id)[0]
    assert log.action == "DELETE"
    assert log.new_values["status"] == "archived"
    assert log.new_values["api_password"] == "***"


def test_client_integrations_lifecycle(db, make_client):
    client = make_client()
    vpn = create_integration(db, ClientIntegrationCreate(client_id=client.id, label=" VPN ", value=" 10.0.0.5 "), performed_by="1")
    create_integration(db, ClientIntegrationCreate(client_id=client.id, label="AnyDesk", value="123 456 789"))

    assert vpn.label == "VPN"
    assert vpn.value == "10.0.0.5"
    assert [i.label for i in list_integrations(db, client.id)] == ["AnyDesk", "VPN"]

    update_integration(db, vpn.id, ClientIntegrationUpdate(value="10.0.0.9"), performed_by="1")
    assert get_integration(db, vpn.id).value == "10.0.0.9"
    assert get_integration(db, vpn.id).label == "VPN"

    delete_integration(db, vpn.id, performed_by="1")
    with pytest.raises(NotFoundError):
        get_integration(db, vpn.id)

    actions = [log.action for log in list_audit_logs(db, "ClientIntegration", vpn.id)]
    assert actions == ["DELETE", "UPDATE", "CREATE"]
    assert list_audit_logs(db, "ClientIntegration", vpn.id)[0].meta == {"client_id": client.id}


def test_client_integration_needs_existing_client_and_text(db):
    with pytest.raises(NotFoundError):
        create_integration(db, ClientIntegrationCreate(client_id=999, label="VPN", value="x"))
    with pytest.raises(SchemaValidationError):
        ClientIntegrationCreate(client_id=1, label="   ", value="x")


def test_product_categories_link_products(db):
    software = create_product_category(db, ProductCategoryCreate(name="Software"), performed_by="1")
    hardware = create_product_category(db, ProductCategoryCreate(name="Hardware"))
    with pytest.raises(ValidationError):
        create_product_category(db, ProductCategoryCreate(name="Software"))

    erp = create_product(db, ProductCreate(name="Ventura ERP", unit_price=Decimal("90000"), category_id=software.id))
    create_product(db, ProductCreate(name="Receipt printer", unit_price=Decimal("15000"), category_id=hardware.id))

    assert erp.category_name == "Software"
    assert [p.name for p in list_products(db, category_id=software.id)] == ["Ventura ERP"]
    with pytest.raises(NotFoundError):
        create_product(db, ProductCreate(name="Ghost", category_id=999))

    unlinked = update_product(db, erp.id, ProductUpdate(category_id=None))
    assert unlinked.category_id is None

    delete_product_category(db, hardware.id, performed_by="1")
    assert [c.name for c in list_product_categories(db)] == ["Software"]
    assert list_audit_logs(db, "ProductCategory", hardware.id)[0].new_values["status"] == "archived"


def test_deleted_product_is_discontinued(db, product):
    discontinued = delete_product(db, product.id, performed_by="1")

    assert discontinued.status == "discontinued"
    assert list_products(db) == []
    assert list_audit_logs(db, "Product", product.id)[0].action == "DELETE"


def test_roles_are_listed_by_name(db):
    roles = list_roles(db)
    assert [role.name for role in roles] == ["DIRECTOR", "STAFF"]
    assert get_role(db, roles[0].id).name == "DIRECTOR"
    with pytest.raises(NotFoundError):
        get_role(db, 999)
