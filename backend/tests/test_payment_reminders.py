from datetime import date, datetime
from decimal import Decimal
from unittest import mock

import pytest
import pytz

from crud.sale_installments import record_installment
from crud.sales import cancel_sale
from models.employees import DIRECTOR
from schemas.sale_installments import SaleInstallmentCreate
from tasks.payment_reminders import (
    format_client_list,
    get_sales_due_for_extension_reminder,
    get_sales_due_for_reminder,
    monthly_due_date_text,
    send_payment_extension_reminders,
    send_payment_reminders,
)

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=pytz.utc)


def pay(db, sale, amount, paid_at):
    record_installment(db, sale.id, SaleInstallmentCreate(amount=Decimal(amount), paid_at=paid_at))


def sent_messages(sms_sender):
    return {call.kwargs["mobile"]: call.kwargs["message"] for call in sms_sender.call_args_list}


@pytest.mark.parametrize("names, expected", [
    ([], "no clients"),
    (["Alice"], "Alice"),
    (["Alice", "Brian"], "Alice and Brian"),
    (["Alice", "Brian", "Carol"], "Alice, Brian and Carol"),
    (["Alice", "Brian", "Alice"], "Alice and Brian"),
])
def test_format_client_list(names, expected):
    assert format_client_list(names) == expected


def test_monthly_due_date_is_the_third():
    assert monthly_due_date_text(NOW) == "2026-03-03 00:00:00"


def test_monthly_selection(db, make_client, make_sale):
    never_paid = make_sale(make_client(configured=False, contact_person="Alice"))
    paid_last_month = make_sale(make_client(configured=False, contact_person="Brian"))
    pay(db, paid_last_month, "100", datetime(2026, 2, 15, tzinfo=pytz.utc))

    paid_this_month = make_sale(make_client(configured=False, contact_person="Carol"))
    pay(db, paid_this_month, "100", datetime(2026, 3, 1, 6, tzinfo=pytz.utc))
    paid_long_ago = make_sale(make_client(configured=False, contact_person="Dan"))
    pay(db, paid_long_ago, "100", datetime(2026, 1, 20, tzinfo=pytz.utc))
    fully_paid = make_sale(make_client(configured=False, contact_person="Eve"), total=Decimal("500"))
    pay(db, fully_paid, "500", datetime(2026, 2, 10, tzinfo=pytz.utc))
    extended = make_sale(make_client(configured=False, contact_person="Faith"))
    extended.requested_payment_date_extension = True
    extended.payment_extension_due_date = date(2026, 3, 20)
    db.commit()
    cancelled = make_sale(make_client(configured=False, contact_person="Gideon"))
    cancel_sale(db, cancelled.id)

    due = get_sales_due_for_reminder(db, NOW)

    assert [sale.id for sale in due] == [never_paid.id, paid_last_month.id]


def test_previous_month_wraps_to_december(db, make_client, make_sale):
    sale = make_sale(make_client(configured=False))
    pay(db, sale, "100", datetime(2025, 12, 28, tzinfo=pytz.utc))

    due = get_sales_due_for_reminder(db, datetime(2026, 1, 1, 8, tzinfo=pytz.utc))

    assert [s.id for s in due] == [sale.id]


def test_send_payment_reminders_messages_and_counts(db, make_client, make_sale, make_employee, director):
    make_employee(role=DIRECTOR, first_name="Idle", phone="0799000000", status="inactive")
    make_employee(first_name="Sam", phone="0722000111")
    make_sale(make_client(configured=False, contact_person="Alice", phone="0711000001"))
    make_sale(make_client(configured=False, contact_person="Brian", phone=None, alternate_phone="0711000002"))
    no_phone = make_sale(make_client(configured=False, company_name="Ghost Co", contact_person="Gina", phone=None))
    sms_sender = mock.MagicMock()

    result = send_payment_reminders(db, now=NOW, sms_sender=sms_sender)

    assert result.sent == 2
    assert result.skipped == 1
    assert result.director_summary_sent == 1
    assert len(result.errors) == 1
    assert result.errors[0].identifier == no_phone.sale_number
    assert result.errors[0].client_name == "Ghost Co"
    assert result.errors[0].reason == "No valid phone number"

    messages = sent_messages(sms_sender)
    assert set(messages) == {"254711000001", "254711000002", "254733444555"}
    assert messages["254711000001"] == (
        "Dear Alice, your monthly Ventura Prime ERP Software subscription is due for renewal on 2026-03-03 00:00:00.\n"
        "Company name: ESPERANZA DIGITAL SOLUTIONS LTD\n"
        "Bank account: 2053858417"
    )
    assert messages["254733444555"] == "Hi Diana, clients Alice and Brian have received their monthly subscription reminder."


def test_send_failure_is_recorded_and_batch_continues(db, make_client, make_sale, director):
    failing = make_sale(make_client(configured=False, contact_person="Alice", phone="0711000001"))
    make_sale(make_client(configured=False, contact_person="Brian", phone="0711000002"))

    def sender(mobile, message):
        if mobile == "254711000001":
            raise RuntimeError("Gateway timeout")
        return {}

    sms_sender = mock.MagicMock(side_effect=sender)
    result = send_payment_reminders(db, now=NOW, sms_sender=sms_sender)

    assert result.sent == 1
    assert result.skipped == 0
    assert [(error.identifier, error.reason) for error in result.errors] == [(failing.sale_number, "Gateway timeout")]
    assert sent_messages(sms_sender)["254733444555"] == (
        "Hi Diana, clients Brian have received their monthly subscription reminder."
    )


def test_directors_are_told_when_nobody_was_reminded(db, director):
    sms_sender = mock.MagicMock()

    result = send_payment_reminders(db, now=NOW, sms_sender=sms_sender)

    assert result.sent == 0
    assert result.director_summary_sent == 1
    sms_sender.assert_called_once_with(
        mobile="254733444555",
        message="Hi Diana, no clients were sent the monthly subscription reminder today.",
    )


def test_director_summary_failure_is_not_counted(db, make_client, make_sale, director):
    make_sale(make_client(configured=False, phone="0711000001"))

    def sender(mobile, message):
        if mobile == "254733444555":
            raise RuntimeError("Insufficient credit")
        return {}

    result = send_payment_reminders(db, now=NOW, sms_sender=mock.MagicMock(side_effect=sender))

    assert result.sent == 1
    assert result.director_summary_sent == 0
    assert result.errors == []


def extend(db, sale, due_date):
    sale.requested_payment_date_extension = True
    sale.payment_extension_due_date = due_date
    db.commit()


def test_extension_window_is_one_to_three_days_ahead(db, make_client, make_sale):
    client = make_client(configured=False)
    sales = {}
    for offset in range(5):
        sale = make_sale(client)
        extend(db, sale, date(2026, 3, 2 + offset))
        sales[offset] = sale
    settled = make_sale(client, total=Decimal("100"))
    pay(db, settled, "100", datetime(2026, 2, 27, tzinfo=pytz.utc))
    extend(db, settled, date(2026, 3, 3))

    due = get_sales_due_for_extension_reminder(db, NOW)

    assert [sale.id for sale in due] == [sales[1].id, sales[2].id, sales[3].id]


def test_send_payment_extension_reminders(db, make_client, make_sale, director):
    sale = make_sale(make_client(configured=False, contact_person="Alice", phone="0711000001"))
    extend(db, sale, date(2026, 3, 4))
    sms_sender = mock.MagicMock()

    result = send_payment_extension_reminders(db, now=NOW, sms_sender=sms_sender)

    assert result.sent == 1
    assert result.director_summary_sent == 1
    messages = sent_messages(sms_sender)
    assert messages["254711000001"] == (
        "Dear Alice, this is a reminder that your Ventura Prime ERP Software payment extension is due on 4 Mar 2026.\n"
        "Company name: ESPERANZA DIGITAL SOLUTIONS LTD\n"
        "Bank account: 2053858417"
    )
    assert messages["254733444555"] == "Hi Diana, clients Alice have received their payment extension reminder."


def test_no_extension_summary_when_nothing_was_sent(db, director):
    sms_sender = mock.MagicMock()

    result = send_payment_extension_reminders(db, now=NOW, sms_sender=sms_sender)

    assert result.sent == 0
    assert result.director_summary_sent == 0
    sms_sender.assert_not_called()
