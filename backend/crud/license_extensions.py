"""
License extension flows.

Two named operations share the single remote primitive
`update_client_license_expiry`:

- `extend_client_license`: a director granted a payment extension; the license
  moves to the agreed due date and an "extended" SMS goes out.
- `apply_payment_license_update`: an installment was paid; the license moves to
  the 3rd of the following month and a "payment received" SMS goes out.

The remote call raises on failure. SMS delivery is best-effort: each failed
send is logged and the remaining recipients are still tried.
"""
import logging
from datetime import date, datetime
from typing import Callable, Union

from sqlalchemy.orm import Session

from crud.employees import get_active_directors_with_phone
from models.clients import Client
from utils.formatting import as_utc, format_day_month_year, format_month_label, next_month_third, to_license_iso
from utils.license_client import update_client_license_expiry
from utils.phone import first_valid_mobile, normalize_mobile
from utils.sms import send_single_sms

logger = logging.getLogger(__name__)


def _send_to_client(client: Client, message: str) -> bool:
    mobile = first_valid_mobile(client.phone, client.alternate_phone)
    if not mobile:
        logger.warning(f"Client {client.id} has no valid phone number; SMS not sent")
        return False
    try:
        send_single_sms(mobile=mobile, message=message)
        return True
    except Exception:
        logger.exception(f"Failed to send SMS to client {client.id}")
        return False


def notify_directors(db: Session, message_for: Callable) -> int:
    """Send `message_for(director)` to every active director with a usable phone. Returns the number sent."""
    sent = 0
    try:
        directors = get_active_directors_with_phone(db)
    except Exception:
        logger.exception("Failed to fetch directors for SMS notification")
        return 0

    for director in directors:
        mobile = normalize_mobile(director.phone)
        if not mobile:
            continue
        try:
            send_single_sms(mobile=mobile, message=message_for(director))
            sent += 1
        except Exception:
            logger.exception(f"Failed to send SMS to director {director.id}")
    return sent


def extend_client_license(db: Session, client: Client, license_expiry_date: Union[date, datetime]) -> None:
    """Push the extension due date to the client's system, then notify client and directors."""
    update_client_license_expiry(client, to_license_iso(license_expiry_date))

    expiry_formatted = format_day_month_year(license_expiry_date)
    _send_to_client(
        client,
        f"Your system license for {client.company_name} has been extended. "
        f"New expiry date: {expiry_formatted}. Thank you.",
    )
    notify_directors(
        db,
        lambda director: f"License extended for client {client.company_name}. New expiry date: {expiry_formatted}.",
    )


def send_payment_received_notifications(db: Session, client: Client, month_label: str, new_expiry_formatted: str) -> None:
    _send_to_client(
        client,
        f"We have received your payment for {month_label}. "
        f"Your license has been extended to {new_expiry_formatted}. Thank you.",
    )
    notify_directors(
        db,
        lambda director: (
            f"Client {client.company_name} has paid their installment for {month_label}. "
            f"License expiry updated to {new_expiry_formatted}."
        ),
    )


def apply_payment_license_update(db: Session, client: Client, paid_at: datetime) -> datetime:
    """Move the license to the 3rd of the month after `paid_at` and send payment-received SMS."""
    paid_at = as_utc(paid_at)
    new_expiry = next_month_third(paid_at)
    update_client_license_expiry(client, to_license_iso(new_expiry))
    send_payment_received_notifications(
        db,
        client,
        format_month_label(paid_at),
        format_day_month_year(new_expiry),
    )
    return new_expiry
