"""
Payment reminder batch jobs.

Two variants, both sending one SMS per due sale and then one summary SMS per
active director:

- monthly renewal reminders (run on the first days of the month) for unpaid
  sales with no payment yet or whose last payment was last month;
- extension reminders (run daily) for sales whose agreed payment extension
  falls due within the next one to three days.

Sales are processed one at a time; a failed send is recorded in the result's
`errors` and never stops the batch. All day arithmetic is done on UTC dates.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

import pytz
from sqlalchemy.orm import Session, joinedload

from config import settings
from crud.employees import get_active_directors_with_phone
from database import SessionLocal
from models.sale_installments import SaleInstallment, InstallmentStatus
from models.sales import Sale, SaleStatus
from schemas.payment_reminders import ReminderError, ReminderResult
from utils.formatting import as_utc, format_day_month_year
from utils.phone import first_valid_mobile, normalize_mobile
from utils.sms import send_single_sms

logger = logging.getLogger(__name__)

SmsSender = Callable[..., object]


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now else datetime.now(pytz.utc)


def _has_balance(sale: Sale) -> bool:
    total = Decimal(sale.total_amount or 0)
    return total > 0 and Decimal(sale.paid_amount or 0) < total


def _last_paid_at(db: Session, sale_id: int) -> Optional[datetime]:
    last = db.query(SaleInstallment.paid_at).filter(
        SaleInstallment.sale_id == sale_id,
        SaleInstallment.status == InstallmentStatus.PAID,
    ).order_by(SaleInstallment.paid_at.desc()).first()
    return as_utc(last[0]) if last and last[0] else None


def _open_sales(db: Session):
    return db.query(Sale).options(joinedload(Sale.client)).filter(
        Sale.status != SaleStatus.CANCELLED,
        Sale.total_amount > 0,
    )


def format_client_list(names: Iterable[str]) -> str:
    """Join names for a summary SMS: "A", "A and B", "A, B and C". Duplicates are dropped."""
    unique = list(dict.fromkeys(name for name in names if name))
    if not unique:
        return "no clients"
    if len(unique) == 1:
        return unique[0]
    return f"{', '.join(unique[:-1])} and {unique[-1]}"


def monthly_due_date_text(now: datetime) -> str:
    """Renewal due date: the 3rd of the current month, rendered 2026-02-03 00:00:00."""
    return f"{now.year:04d}-{now.month:02d}-03 00:00:00"


def get_sales_due_for_reminder(db: Session, now: datetime = None) -> List[Sale]:
    """
    Unpaid sales due a monthly renewal reminder.

    A sale qualifies when it is not cancelled, has a positive total and an
    outstanding balance, has no payment extension pending, and either has never
    been paid or was last paid during the previous calendar month.
    """
    now = _now(now)
    first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    prev_month_end = first_of_month - timedelta(days=1)
    prev_year, prev_month = prev_month_end.year, prev_month_end.month

    sales = _open_sales(db).filter(
        Sale.requested_payment_date_extension.is_(False),
    ).order_by(Sale.id).all()

    due = []
    for sale in sales:
        if not _has_balance(sale):
            continue
        last_paid = _last_paid_at(db, sale.id)
        if last_paid is None or (last_paid.year == prev_year and last_paid.month == prev_month):
            due.append(sale)
    return due


def get_sales_due_for_extension_reminder(db: Session, now: datetime = None) -> List[Sale]:
    """Sales with an extension due between tomorrow and three days from now (UTC dates, inclusive)."""
    today = _now(now).date()
    window_start = today + timedelta(days=1)
    window_end = today + timedelta(days=3)

    sales = _open_sales(db).filter(
        Sale.requested_payment_date_extension.is_(True),
        Sale.payment_extension_due_date.isnot(None),
        Sale.payment_extension_due_date >= window_start,
        Sale.payment_extension_due_date <= window_end,
    ).order_by(Sale.payment_extension_due_date, Sale.id).all()
    return [sale for sale in sales if _has_balance(sale)]


def _send_client_reminders(sales: List[Sale], message_for: Callable, sms_sender: SmsSender, result: ReminderResult) -> List[str]:
    names_sent = []
    for sale in sales:
        client = sale.client
        mobile = first_valid_mobile(client.phone, client.alternate_phone)
        if not mobile:
            result.skipped += 1
            result.errors.append(ReminderError(
                identifier=sale.sale_number,
                client_name=client.company_name,
                reason="No valid phone number",
            ))
            logger.warning(f"Reminder for sale {sale.sale_number} skipped: client {client.id} has no valid phone number")
            continue

        try:
            sms_sender(mobile=mobile, message=message_for(sale))
        except Exception as e:
            result.errors.append(ReminderError(
                identifier=sale.sale_number,
                client_name=client.company_name,
                reason=str(e) or "SMS send failed",
            ))
            logger.error(f"Reminder SMS for sale {sale.sale_number} failed: {e}")
            continue

        result.sent += 1
        names_sent.append(client.display_name)
    return names_sent


def _send_director_summaries(db: Session, message_for: Callable, sms_sender: SmsSender, result: ReminderResult) -> None:
    for director in get_active_directors_with_phone(db):
        mobile = normalize_mobile(director.phone)
        if not mobile:
            continue
        try:
            sms_sender(mobile=mobile, message=message_for(director))
            result.director_summary_sent += 1
        except Exception:
            logger.warning(f"Reminder summary SMS to director {director.id} failed", exc_info=True)


def send_payment_reminders(db: Session, now: datetime = None, sms_sender: SmsSender = send_single_sms) -> ReminderResult:
    """Send the monthly renewal reminder to every due client, then a summary to each director."""
    now = _now(now)
    due_date_text = monthly_due_date_text(now)
    sales = get_sales_due_for_reminder(db, now)
    logger.info(f"Monthly payment reminder run at {now.isoformat()}: {len(sales)} sale(s) due")

    def client_message(sale: Sale) -> str:
        return (
            f"Dear {sale.client.display_name}, your monthly {settings.PRODUCT_NAME} subscription "
            f"is due for renewal on {due_date_text}.\n"
            f"Company name: {settings.COMPANY_NAME}\n"
            f"Bank account: {settings.BANK_ACCOUNT}"
        )

    result = ReminderResult()
    names_sent = _send_client_reminders(sales, client_message, sms_sender, result)
    client_list = format_client_list(names_sent)

    def director_message(director) -> str:
        if result.sent == 0:
            return f"Hi {director.first_name}, no clients were sent the monthly subscription reminder today."
        return f"Hi {director.first_name}, clients {client_list} have received their monthly subscription reminder."

    _send_director_summaries(db, director_message, sms_sender, result)
    logger.info(
        f"Monthly payment reminders: sent {result.sent}, skipped {result.skipped}, "
        f"errors {len(result.errors)}, director summaries {result.director_summary_sent}"
    )
    return result


def send_payment_extension_reminders(db: Session, now: datetime = None, sms_sender: SmsSender = send_single_sms) -> ReminderResult:
    """Remind clients whose payment extension falls due in one to three days; directors hear only if any were sent."""
    now = _now(now)
    sales = get_sales_due_for_extension_reminder(db, now)
    logger.info(f"Payment extension reminder run at {now.isoformat()}: {len(sales)} sale(s) due")

    def client_message(sale: Sale) -> str:
        return (
            f"Dear {sale.client.display_name}, this is a reminder that your {settings.PRODUCT_NAME} "
            f"payment extension is due on {format_day_month_year(sale.payment_extension_due_date)}.\n"
            f"Company name: {settings.COMPANY_NAME}\n"
            f"Bank account: {settings.BANK_ACCOUNT}"
        )

    result = ReminderResult()
    names_sent = _send_client_reminders(sales, client_message, sms_sender, result)

    if result.sent > 0:
        client_list = format_client_list(names_sent)
        _send_director_summaries(
            db,
            lambda director: f"Hi {director.first_name}, clients {client_list} have received their payment extension reminder.",
            sms_sender,
            result,
        )
    logger.info(
        f"Payment extension reminders: sent {result.sent}, skipped {result.skipped}, "
        f"errors {len(result.errors)}, director summaries {result.director_summary_sent}"
    )
    return result


def _run(job: Callable, label: str) -> Optional[ReminderResult]:
    db: Session = SessionLocal()
    try:
        result = job(db)
        if result.errors:
            logger.error(f"{label} finished with errors: {[error.model_dump() for error in result.errors]}")
        return result
    except Exception as e:
        logger.error(f"Error during {label}: {e}", exc_info=True)
        db.rollback()
        return None
    finally:
        db.close()


def run_payment_reminders() -> Optional[ReminderResult]:
    """Scheduler entry point: monthly renewal reminders in a fresh session."""
    return _run(send_payment_reminders, "monthly payment reminder task")


def run_payment_extension_reminders() -> Optional[ReminderResult]:
    """Scheduler entry point: payment extension reminders in a fresh session."""
    return _run(send_payment_extension_reminders, "payment extension reminder task")
