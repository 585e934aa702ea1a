"""
Expense <-> JobCard status bridge.

Two one-directional procedures keep a job card's lifecycle and the status of
its derived expenses consistent:

- `on_job_card_status_changed` pushes a job card status down to its expenses.
  It writes expense statuses directly and never calls back up.
- `on_expense_status_changed` lifts an expense status to its job card, but only
  once every linked expense agrees (all PAID -> COMPLETED, all CANCELLED ->
  CANCELLED). It writes the job card directly and never pushes back down.

Neither function commits; the caller's mutation owns the transaction.
"""
import logging
from datetime import datetime
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from crud.audit_log import record_audit
from models.expenses import Expense, ExpenseStatus
from models.job_cards import JobCard, JobCardStatus
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)

JOB_CARD_TO_EXPENSE_STATUS = {
    JobCardStatus.DRAFT: ExpenseStatus.DRAFT,
    JobCardStatus.PENDING_CLIENT_CONFIRMATION: ExpenseStatus.PENDING,
    JobCardStatus.IN_PROGRESS: ExpenseStatus.PENDING,
    JobCardStatus.COMPLETED: ExpenseStatus.PAID,
    JobCardStatus.CANCELLED: ExpenseStatus.CANCELLED,
}

EXPENSE_TO_JOB_CARD_STATUS = {
    ExpenseStatus.PAID: JobCardStatus.COMPLETED,
    ExpenseStatus.CANCELLED: JobCardStatus.CANCELLED,
}

TERMINAL_EXPENSE_STATUSES = {ExpenseStatus.PAID, ExpenseStatus.REJECTED, ExpenseStatus.CANCELLED}
TERMINAL_JOB_CARD_STATUSES = {JobCardStatus.COMPLETED, JobCardStatus.CANCELLED}

# Fields a job-card-derived Expense shares with its JobExpense
MIRRORED_FIELDS = ("amount", "has_receipt", "receipt_url", "description")


def map_job_card_status_to_expense_status(status: JobCardStatus) -> ExpenseStatus:
    return JOB_CARD_TO_EXPENSE_STATUS.get(status, ExpenseStatus.PENDING)


def map_expense_status_to_job_card_status(status: ExpenseStatus) -> Optional[JobCardStatus]:
    return EXPENSE_TO_JOB_CARD_STATUS.get(status)


def employee_id_of(performed_by) -> Optional[int]:
    """Actor ids travel as strings (token `sub`); FK columns want the integer."""
    if performed_by is None:
        return None
    text = str(performed_by).strip()
    return int(text) if text.isdigit() else None


def stamp_expense_status(expense: Expense, status: ExpenseStatus, now: datetime = None, overwrite: bool = False) -> None:
    """
    Set the status and its timestamps. approved_at / rejected_at are set once
    unless `overwrite` is given (explicit approve / pay / reject actions).
    """
    now = now or datetime.now(pytz.utc)
    expense.status = status
    if status in (ExpenseStatus.APPROVED, ExpenseStatus.PAID) and (overwrite or expense.approved_at is None):
        expense.approved_at = now
    elif status == ExpenseStatus.REJECTED and (overwrite or expense.rejected_at is None):
        expense.rejected_at = now


def stamp_job_card_status(job_card: JobCard, status: JobCardStatus, now: datetime = None) -> None:
    now = now or datetime.now(pytz.utc)
    job_card.status = status
    if status == JobCardStatus.COMPLETED and job_card.completed_at is None:
        job_card.completed_at = now
    elif status == JobCardStatus.CANCELLED and job_card.cancelled_at is None:
        job_card.cancelled_at = now


def on_job_card_status_changed(
    db: Session,
    job_card: JobCard,
    new_status: JobCardStatus,
    performed_by: str = None,
) -> int:
    """
    Push a job card's new status onto its linked expenses.

    Expenses already PAID, REJECTED or CANCELLED are left alone, except that a
    CANCELLED job card cancels every linked expense. Returns the number of
    expenses changed.
    """
    target = map_job_card_status_to_expense_status(new_status)
    approver_id = employee_id_of(performed_by)
    expenses = db.query(Expense).filter(Expense.job_card_id == job_card.id).order_by(Expense.id).all()

    changed = 0
    for expense in expenses:
        if new_status != JobCardStatus.CANCELLED and expense.status in TERMINAL_EXPENSE_STATUSES:
            continue
        if expense.status == target:
            continue

        old_values = sqlalchemy_to_dict(expense)
        stamp_expense_status(expense, target)
        if target in (ExpenseStatus.APPROVED, ExpenseStatus.PAID) and approver_id is not None:
            expense.approved_by_id = approver_id
        expense.updated_by = performed_by
        db.flush()
        record_audit(
            db, "UPDATE", "Expense", expense.id, performed_by,
            old_values, sqlalchemy_to_dict(expense),
            meta={"source": "JobCardStatusSync", "job_card_id": job_card.id},
        )
        changed += 1

    if changed:
        logger.info(f"Job card {job_card.job_number} -> {new_status.name}: {changed} linked expense(s) set to {target.name}")
    return changed


def on_expense_status_changed(
    db: Session,
    expense: Expense,
    new_status: ExpenseStatus,
    old_status: Optional[ExpenseStatus],
    performed_by: str = None,
) -> Optional[JobCard]:
    """
    Lift an expense status change to its job card when all linked expenses agree.

    `new_status` is used for the triggering expense in the all-of check even if
    the persisted row still holds the old value. Job cards already COMPLETED or
    CANCELLED are only touched to cancel them. Returns the job card if it changed.
    """
    if expense.job_card_id is None or new_status == old_status:
        return None

    target = map_expense_status_to_job_card_status(new_status)
    if target is None:
        return None

    job_card = db.query(JobCard).filter(JobCard.id == expense.job_card_id).first()
    if job_card is None or job_card.status == target:
        return None
    if job_card.status in TERMINAL_JOB_CARD_STATUSES and target != JobCardStatus.CANCELLED:
        return None

    required = ExpenseStatus.PAID if target == JobCardStatus.COMPLETED else ExpenseStatus.CANCELLED
    siblings = db.query(Expense).filter(Expense.job_card_id == job_card.id).all()
    statuses = [new_status if sibling.id == expense.id else sibling.status for sibling in siblings]
    if not statuses or any(status != required for status in statuses):
        return None

    old_values = sqlalchemy_to_dict(job_card)
    stamp_job_card_status(job_card, target)
    job_card.updated_by = performed_by
    db.flush()
    record_audit(
        db, "UPDATE", "JobCard", job_card.id, performed_by,
        old_values, sqlalchemy_to_dict(job_card),
        meta={"source": "ExpenseStatusSync", "expense_id": expense.id},
    )
    logger.info(f"Job card {job_card.job_number} set to {target.name}: all {len(statuses)} linked expense(s) are {required.name}")
    return job_card


def mirror_expense_to_job_expense(db: Session, expense: Expense, changes: dict, performed_by: str = None) -> bool:
    """Copy changed shared fields from a derived Expense onto its JobExpense. Returns True if anything changed."""
    if expense.job_expense_id is None:
        return False
    job_expense = expense.job_expense
    if job_expense is None:
        return False

    old = sqlalchemy_to_dict(job_expense)
    updated = False
    # Explicit nulls are mirrored too; clearing a receipt must clear it on both rows
    for field in MIRRORED_FIELDS:
        if field in changes and getattr(job_expense, field) != changes[field]:
            setattr(job_expense, field, changes[field])
            updated = True
    if updated:
        job_expense.updated_by = performed_by
        db.flush()
        record_audit(
            db, "UPDATE", "JobExpense", job_expense.id, performed_by,
            old_values=old,
            new_values=sqlalchemy_to_dict(job_expense),
            meta={"source": "ExpenseSync", "expense_id": expense.id},
        )
    return updated
