from datetime import date
from decimal import Decimal

import pytest

from crud.audit_log import list_audit_logs
from crud.sales import (
    add_sale_item,
    cancel_sale,
    delete_sale_item,
    get_sale_by_number,
    list_sales,
    update_sale,
    update_sale_item,
)
from crud.sale_installments import record_installment
from models.sales import SaleStatus
from schemas.sale_installments import SaleInstallmentCreate
from schemas.sales import SaleCreate, SaleItemCreate, SaleItemUpdate, SaleUpdate
from crud.sales import create_sale
from utils.errors import NotFoundError, ValidationError


def test_sales_are_numbered_per_year(db, make_client, make_sale):
    client = make_client(configured=False)
    first = make_sale(client)
    second = make_sale(client)

    year = first.created_at.year
    assert first.sale_number == f"SALE-{year}-001"
    assert second.sale_number == f"SALE-{year}-002"
    assert get_sale_by_number(db, second.sale_number).id == second.id


def test_create_sale_totals_items_and_audits_each_row(db, make_client, product):
    client = make_client(configured=False)
    data = SaleCreate(
        client_id=client.id,
        items=[
            SaleItemCreate(product_id=product.id, quantity=2, unit_price=Decimal("1500.50")),
            SaleItemCreate(product_id=product.id, quantity=1, unit_price=Decimal("999")),
        ],
    )
    sale = create_sale(db, data, performed_by="3")

    assert sale.total_amount == Decimal("4000.00")
    assert sale.paid_amount == Decimal("0")
    assert sale.status == SaleStatus.PENDING
    assert [item.total_price for item in sale.items] == [Decimal("3001.00"), Decimal("999.00")]
    assert len(list_audit_logs(db, "Sale", sale.id)) == 1
    assert len(list_audit_logs(db, "SaleItem", sale.items[0].id)) == 1


def test_create_sale_validates_references(db, make_client):
    client = make_client(configured=False)
    with pytest.raises(NotFoundError):
        create_sale(db, SaleCreate(client_id=999, items=[SaleItemCreate(product_id=1, quantity=1, unit_price=Decimal("1"))]))
    with pytest.raises(NotFoundError):
        create_sale(db, SaleCreate(client_id=client.id, items=[SaleItemCreate(product_id=999, quantity=1, unit_price=Decimal("1"))]))
    with pytest.raises(ValidationError):
        create_sale(db, SaleCreate(client_id=client.id, items=[]))


def test_item_changes_recompute_total_and_status(db, make_client, make_sale, product):
    sale = make_sale(make_client(configured=False), total=Decimal("1000"))
    record_installment(db, sale.id, SaleInstallmentCreate(amount=Decimal("1000")))

    sale = add_sale_item(db, sale.id, SaleItemCreate(product_id=product.id, quantity=1, unit_price=Decimal("500")))
    assert sale.total_amount == Decimal("1500")
    assert sale.status == SaleStatus.PENDING
    assert sale.completed_at is None

    extra = sale.items[1]
    sale = update_sale_item(db, sale.id, extra.id, SaleItemUpdate(unit_price=Decimal("250"), quantity=2))
    assert sale.total_amount == Decimal("1500")

    sale = delete_sale_item(db, sale.id, extra.id)
    assert sale.total_amount == Decimal("1000")
    assert sale.status == SaleStatus.COMPLETED
    assert len(sale.items) == 1


def test_last_item_cannot_be_deleted(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False))
    with pytest.raises(ValidationError):
        delete_sale_item(db, sale.id, sale.items[0].id)


def test_list_sales_hides_cancelled_unless_asked(db, make_client, make_sale):
    client = make_client(configured=False)
    kept = make_sale(client)
    dropped = make_sale(client)
    cancel_sale(db, dropped.id)

    rows, total = list_sales(db)
    assert total == 1
    assert rows[0].id == kept.id

    rows, total = list_sales(db, status=SaleStatus.CANCELLED)
    assert [row.id for row in rows] == [dropped.id]


def test_cancelled_sale_cannot_be_edited(db, make_client, make_sale, product):
    sale = make_sale(make_client(configured=False))
    cancel_sale(db, sale.id)

    with pytest.raises(ValidationError):
        update_sale(db, sale.id, SaleUpdate(notes="late"))
    with pytest.raises(ValidationError):
        add_sale_item(db, sale.id, SaleItemCreate(product_id=product.id, quantity=1, unit_price=Decimal("1")))
    with pytest.raises(ValidationError):
        cancel_sale(db, sale.id)


def test_update_sale_with_due_date_grants_extension(db, make_client, make_sale, license_mock, sms_mock):
    sale = make_sale(make_client(), total=Decimal("1000"))

    sale = update_sale(db, sale.id, SaleUpdate(payment_extension_due_date=date(2026, 6, 20), notes="Promised by the 20th"))

    assert sale.requested_payment_date_extension is True
    assert sale.payment_extension_due_date == date(2026, 6, 20)
    assert sale.notes == "Promised by the 20th"
    assert license_mock.call_args[0][1] == "2026-06-20T00:00:00.000Z"

    sale = update_sale(db, sale.id, SaleUpdate(requested_payment_date_extension=False))
    assert sale.requested_payment_date_extension is False
    assert sale.payment_extension_due_date is None
    assert license_mock.call_count == 1


def test_update_sale_extension_requires_configured_client(db, make_client, make_sale, license_mock):
    sale = make_sale(make_client(configured=False))
    with pytest.raises(ValidationError):
        update_sale(db, sale.id, SaleUpdate(payment_extension_due_date=date(2026, 6, 20)))
    license_mock.assert_not_called()
