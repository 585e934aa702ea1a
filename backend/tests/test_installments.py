from datetime import date, datetime
from decimal import Decimal

import pytest
import pytz

from crud.audit_log import list_audit_logs
from crud.sale_installments import (
    delete_installment,
    record_installment,
    request_extension,
    update_installment,
)
from crud.sales import cancel_sale, get_sale
from models.sale_installments import InstallmentStatus
from models.sales import Sale, SaleStatus
from schemas.sale_installments import SaleInstallmentCreate, SaleInstallmentUpdate
from utils.errors import ExternalServiceError, NotFoundError, ValidationError


def paid(amount, paid_at=None, status=InstallmentStatus.PAID):
    return SaleInstallmentCreate(amount=Decimal(amount), paid_at=paid_at, status=status)


def test_full_payment_completes_sale_and_extends_license(db, make_client, make_sale, director, license_mock, sms_mock):
    client = make_client()
    sale = make_sale(client, total=Decimal("1000"))

    record_installment(db, sale.id, paid("1000", datetime(2026, 1, 15, 9, 30, tzinfo=pytz.utc)), performed_by="1")

    sale = get_sale(db, sale.id)
    assert sale.status == SaleStatus.COMPLETED
    assert sale.paid_amount == Decimal("1000")
    assert sale.completed_at is not None

    license_mock.assert_called_once()
    called_client, expiry = license_mock.call_args[0]
    assert called_client.id == client.id
    assert expiry == "2026-02-03T00:00:00.000Z"

    messages = {call.kwargs["mobile"]: call.kwargs["message"] for call in sms_mock.call_args_list}
    assert messages["254712345678"] == (
        "We have received your payment for January 2026. "
        "Your license has been extended to 3 Feb 2026. Thank you."
    )
    assert messages["254733444555"] == (
        "Client Acme Traders Ltd has paid their installment for January 2026. "
        "License expiry updated to 3 Feb 2026."
    )


def test_paid_amount_is_exact_sum_of_paid_installments(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("1000"))

    record_installment(db, sale.id, paid("100.10"))
    record_installment(db, sale.id, paid("200.20"))
    record_installment(db, sale.id, paid("300.30", status=InstallmentStatus.PENDING))

    sale = get_sale(db, sale.id)
    assert sale.paid_amount == Decimal("300.30")
    assert sale.status == SaleStatus.PENDING
    assert sale.completed_at is None


def test_unpaying_an_installment_reverts_completed_sale(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("500"))
    first = record_installment(db, sale.id, paid("200"))
    second = record_installment(db, sale.id, paid("300"))
    assert get_sale(db, sale.id).status == SaleStatus.COMPLETED

    update_installment(db, second.id, SaleInstallmentUpdate(status=InstallmentStatus.PENDING))

    sale = get_sale(db, sale.id)
    assert sale.status == SaleStatus.PENDING
    assert sale.completed_at is None
    assert sale.paid_amount == Decimal("200")

    update_installment(db, first.id, SaleInstallmentUpdate(amount=Decimal("500")))
    sale = get_sale(db, sale.id)
    assert sale.status == SaleStatus.COMPLETED
    assert sale.paid_amount == Decimal("500")


def test_deleting_last_installment_resets_paid_amount(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("800"))
    installment = record_installment(db, sale.id, paid("800"))
    assert get_sale(db, sale.id).status == SaleStatus.COMPLETED

    delete_installment(db, installment.id, performed_by="1")

    sale = get_sale(db, sale.id)
    assert sale.paid_amount == Decimal("0")
    assert sale.status == SaleStatus.PENDING
    assert sale.installments == []


def test_recording_installment_clears_pending_extension(db, make_client, make_sale, license_mock, sms_mock):
    sale = make_sale(make_client(), total=Decimal("1000"))
    request_extension(db, sale.id, date(2026, 3, 10))
    assert get_sale(db, sale.id).requested_payment_date_extension is True

    record_installment(db, sale.id, paid("100"))

    sale = get_sale(db, sale.id)
    assert sale.requested_payment_date_extension is False
    assert sale.payment_extension_due_date is None


def test_license_failure_does_not_fail_the_payment(db, make_client, make_sale, license_mock, sms_mock):
    license_mock.side_effect = ExternalServiceError("Client login failed (401): bad credentials")
    sale = make_sale(make_client(), total=Decimal("1000"))

    installment = record_installment(db, sale.id, paid("1000"))

    assert installment.id is not None
    assert get_sale(db, sale.id).status == SaleStatus.COMPLETED
    sms_mock.assert_not_called()


def test_no_license_update_for_unconfigured_client_or_pending_installment(db, make_client, make_sale, license_mock, sms_mock):
    unconfigured = make_sale(make_client(configured=False, company_name="Beta"), total=Decimal("1000"))
    record_installment(db, unconfigured.id, paid("1000"))

    configured = make_sale(make_client(), total=Decimal("1000"))
    record_installment(db, configured.id, paid("400", status=InstallmentStatus.PENDING))

    license_mock.assert_not_called()
    sms_mock.assert_not_called()


def test_first_installment_above_total_persists_nothing(db, make_client, make_sale):
    client = make_client(configured=False)

    with pytest.raises(ValidationError):
        make_sale(client, total=Decimal("1000"), first_installment={"amount": Decimal("1000.01")})

    assert db.query(Sale).count() == 0


def test_first_installment_is_recorded_with_the_sale(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("1000"), first_installment={"amount": Decimal("250")})

    assert sale.paid_amount == Decimal("250")
    assert len(sale.installments) == 1
    assert sale.installments[0].status == InstallmentStatus.PAID


def test_cancelled_sale_keeps_its_status(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("300"))
    cancel_sale(db, sale.id)

    record_installment(db, sale.id, paid("300"))

    sale = get_sale(db, sale.id)
    assert sale.status == SaleStatus.CANCELLED
    assert sale.paid_amount == Decimal("300")


def test_request_extension_requires_configured_client(db, make_client, make_sale, license_mock):
    sale = make_sale(make_client(configured=False), total=Decimal("1000"))

    with pytest.raises(ValidationError):
        request_extension(db, sale.id, "2026-03-10")

    assert get_sale(db, sale.id).requested_payment_date_extension is False
    license_mock.assert_not_called()


def test_request_extension_flags_sale_and_extends_license(db, make_client, make_sale, director, license_mock, sms_mock):
    client = make_client()
    sale = make_sale(client, total=Decimal("1000"))

    request_extension(db, sale.id, "2026-03-10T00:00:00.000Z", performed_by="1")

    sale = get_sale(db, sale.id)
    assert sale.requested_payment_date_extension is True
    assert sale.payment_extension_due_date == date(2026, 3, 10)
    assert license_mock.call_args[0][1] == "2026-03-10T00:00:00.000Z"

    messages = [call.kwargs["message"] for call in sms_mock.call_args_list]
    assert "Your system license for Acme Traders Ltd has been extended. New expiry date: 10 Mar 2026. Thank you." in messages
    assert "License extended for client Acme Traders Ltd. New expiry date: 10 Mar 2026." in messages


def test_request_extension_swallows_remote_failure(db, make_client, make_sale, license_mock, sms_mock):
    license_mock.side_effect = ExternalServiceError("Failed to fetch client company (500): oops")
    sale = make_sale(make_client(), total=Decimal("1000"))

    request_extension(db, sale.id, date(2026, 3, 10))

    assert get_sale(db, sale.id).requested_payment_date_extension is True
    sms_mock.assert_not_called()


def test_request_extension_rejects_bad_dates(db, make_client, make_sale):
    sale = make_sale(make_client(), total=Decimal("1000"))
    with pytest.raises(ValidationError):
        request_extension(db, sale.id, "next tuesday")


def test_unknown_sale_raises_not_found(db):
    with pytest.raises(NotFoundError):
        record_installment(db, 999, paid("10"))


def test_each_installment_mutation_writes_one_audit_entry(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False), total=Decimal("1000"))
    installment = record_installment(db, sale.id, paid("100"), performed_by="7")

    logs = list_audit_logs(db, "SaleInstallment", installment.id)
    assert len(logs) == 1
    assert logs[0].action == "CREATE"
    assert logs[0].performed_by == "7"
    assert Decimal(logs[0].new_values["amount"]) == Decimal("100")

    update_installment(db, installment.id, SaleInstallmentUpdate(notes="bank slip 42"), performed_by="7")
    assert [log.action for log in list_audit_logs(db, "SaleInstallment", installment.id)] == ["UPDATE", "CREATE"]
