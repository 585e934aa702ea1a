"""
Installment ledger.

Sale.paid_amount and Sale.status are derived from the sale's installments:
paid_amount is the exact Decimal sum of PAID installments, and a sale is
COMPLETED exactly when paid_amount >= total_amount (CANCELLED sales keep their
status). Every installment insert, update or delete ends with `recalculate`.

Remote license updates and SMS run only after the ledger write has been
committed; their failures are logged and never undo the payment.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Union

import pytz
from sqlalchemy.orm import Session

from crud.audit_log import record_audit
from crud.license_extensions import apply_payment_license_update, extend_client_license
from models.sale_installments import SaleInstallment, InstallmentStatus
from models.sales import Sale, SaleStatus
from schemas.sale_installments import SaleInstallmentCreate, SaleInstallmentUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError
from utils.formatting import as_utc
from utils.license_client import NOT_CONFIGURED_MESSAGE

logger = logging.getLogger(__name__)


def _get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def get_installment(db: Session, installment_id: int) -> SaleInstallment:
    installment = db.query(SaleInstallment).filter(SaleInstallment.id == installment_id).first()
    if installment is None:
        raise NotFoundError("Installment not found")
    return installment


def list_installments(db: Session, sale_id: int) -> List[SaleInstallment]:
    _get_sale(db, sale_id)
    return db.query(SaleInstallment).filter(
        SaleInstallment.sale_id == sale_id
    ).order_by(SaleInstallment.paid_at.asc(), SaleInstallment.id.asc()).all()


def paid_total(db: Session, sale_id: int) -> Decimal:
    amounts = db.query(SaleInstallment.amount).filter(
        SaleInstallment.sale_id == sale_id,
        SaleInstallment.status == InstallmentStatus.PAID,
    ).all()
    return sum((Decimal(amount) for (amount,) in amounts), Decimal("0"))


def recalculate(db: Session, sale: Sale) -> Sale:
    """Recompute paid_amount and COMPLETED/PENDING status from the sale's PAID installments."""
    db.flush()
    paid_amount = paid_total(db, sale.id)
    sale.paid_amount = paid_amount

    if sale.status == SaleStatus.CANCELLED:
        return sale

    if paid_amount >= Decimal(sale.total_amount):
        sale.status = SaleStatus.COMPLETED
        sale.completed_at = datetime.now(pytz.utc)
    else:
        sale.completed_at = None
        if sale.status == SaleStatus.COMPLETED:
            sale.status = SaleStatus.PENDING
            logger.info(f"Sale {sale.sale_number} reverted to PENDING (paid {paid_amount} of {sale.total_amount})")
    return sale


def record_installment(
    db: Session,
    sale_id: int,
    data: SaleInstallmentCreate,
    performed_by: str = None,
    first_installment: bool = False,
) -> SaleInstallment:
    """
    Record a payment (or a scheduled PENDING installment) against a sale.

    `first_installment` marks the deposit taken at sale creation, which may not
    exceed the sale total. Recording any installment clears a pending payment
    extension request on the sale.
    """
    sale = _get_sale(db, sale_id)
    amount = Decimal(data.amount)
    if amount <= 0:
        raise ValidationError("Installment amount must be greater than zero")
    if first_installment and amount > Decimal(sale.total_amount):
        raise ValidationError("First installment amount cannot exceed the sale total")

    paid_at = as_utc(data.paid_at) if data.paid_at else datetime.now(pytz.utc)
    installment = SaleInstallment(
        sale_id=sale.id,
        amount=amount,
        due_date=data.due_date,
        paid_at=paid_at,
        status=data.status or InstallmentStatus.PAID,
        notes=data.notes,
        created_by=performed_by,
    )
    db.add(installment)
    db.flush()

    recalculate(db, sale)
    sale.requested_payment_date_extension = False
    sale.payment_extension_due_date = None

    record_audit(
        db, "CREATE", "SaleInstallment", installment.id, performed_by,
        new_values=sqlalchemy_to_dict(installment),
        meta={"sale_id": sale.id},
    )
    db.commit()
    db.refresh(installment)
    logger.info(f"Installment of {amount} ({installment.status.name}) recorded for sale {sale.sale_number} by user {performed_by}")

    client = sale.client
    if installment.status == InstallmentStatus.PAID and client is not None and client.license_configured:
        try:
            new_expiry = apply_payment_license_update(db, client, paid_at)
            logger.info(f"License for client {client.id} extended to {new_expiry.date()} after payment on sale {sale.sale_number}")
        except Exception:
            logger.exception(
                f"Failed to update client license or send payment-received notifications for sale {sale.sale_number}"
            )

    return installment


def update_installment(
    db: Session,
    installment_id: int,
    data: SaleInstallmentUpdate,
    performed_by: str = None,
) -> SaleInstallment:
    installment = get_installment(db, installment_id)
    old_values = sqlalchemy_to_dict(installment)

    changes = data.model_dump(exclude_unset=True)
    for key in ("amount", "paid_at", "status"):
        # these columns are not nullable; an explicit null leaves them unchanged
        if key in changes and changes[key] is None:
            changes.pop(key)
    if "paid_at" in changes:
        changes["paid_at"] = as_utc(changes["paid_at"])

    for key, value in changes.items():
        setattr(installment, key, value)
    installment.updated_by = performed_by
    db.flush()

    sale = _get_sale(db, installment.sale_id)
    recalculate(db, sale)

    record_audit(
        db, "UPDATE", "SaleInstallment", installment.id, performed_by,
        old_values, sqlalchemy_to_dict(installment),
        meta={"sale_id": sale.id},
    )
    db.commit()
    db.refresh(installment)
    logger.info(f"Installment {installment.id} on sale {sale.sale_number} updated by user {performed_by}")
    return installment


def delete_installment(db: Session, installment_id: int, performed_by: str = None) -> None:
    installment = get_installment(db, installment_id)
    sale = _get_sale(db, installment.sale_id)
    old_values = sqlalchemy_to_dict(installment)

    db.delete(installment)
    db.flush()
    recalculate(db, sale)

    record_audit(
        db, "DELETE", "SaleInstallment", installment_id, performed_by,
        old_values=old_values,
        meta={"sale_id": sale.id},
    )
    db.commit()
    logger.info(f"Installment {installment_id} deleted from sale {sale.sale_number} by user {performed_by}")


def parse_extension_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if not text:
        raise ValidationError("Payment extension due date is required")
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"Invalid payment extension due date: {value}")


def apply_extension(sale: Sale, due_date: date) -> None:
    """Validate and flag a payment extension on the sale (no commit, no remote calls)."""
    if sale.status == SaleStatus.CANCELLED:
        raise ValidationError("Cannot extend payment on a cancelled sale")
    if sale.client is None or not sale.client.license_configured:
        raise ValidationError(NOT_CONFIGURED_MESSAGE)
    sale.requested_payment_date_extension = True
    sale.payment_extension_due_date = due_date


def push_extension(db: Session, sale: Sale, due_date: date) -> None:
    """Extend the client's license to the due date; failures are logged, never raised."""
    try:
        extend_client_license(db, sale.client, due_date)
        logger.info(f"License for client {sale.client_id} extended to {due_date} for sale {sale.sale_number}")
    except Exception:
        logger.exception(f"Failed to extend client license for sale {sale.sale_number}")


def request_extension(
    db: Session,
    sale_id: int,
    new_due_date: Union[date, datetime, str],
    performed_by: str = None,
) -> Sale:
    """Grant a payment extension: flag the sale, then move the client's license to the new due date."""
    sale = _get_sale(db, sale_id)
    due_date = parse_extension_date(new_due_date)
    old_values = sqlalchemy_to_dict(sale)

    apply_extension(sale, due_date)
    sale.updated_by = performed_by
    db.flush()
    record_audit(
        db, "UPDATE", "Sale", sale.id, performed_by,
        old_values, sqlalchemy_to_dict(sale),
        meta={"source": "PaymentExtension"},
    )
    db.commit()
    db.refresh(sale)

    push_extension(db, sale, due_date)
    return sale
