import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

import pytz
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crud.audit_log import record_audit
from crud.expense_categories import find_matching_category, get_category
from crud.expense_sync import (
    map_job_card_status_to_expense_status,
    mirror_expense_to_job_expense,
    on_expense_status_changed,
    stamp_expense_status,
)
from crud.numbering import next_document_number
from models.employees import Employee
from models.expenses import Expense, ExpenseStatus
from models.job_cards import JobCard, JobExpense
from schemas.expenses import ExpenseCreate, ExpenseUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

AUTO_CREATED_NOTE = "Auto-created from Job Card expense"


def generate_expense_number(db: Session) -> str:
    return next_document_number(db, Expense.expense_number, "EXP")


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def get_expense_by_job_expense_id(db: Session, job_expense_id: int) -> Optional[Expense]:
    return db.query(Expense).filter(Expense.job_expense_id == job_expense_id).first()


def list_expenses(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: Optional[ExpenseStatus] = None,
    category_id: Optional[int] = None,
    job_card_id: Optional[int] = None,
    submitted_by_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> Tuple[List[Expense], int]:
    query = db.query(Expense)
    if status is not None:
        query = query.filter(Expense.status == status)
    if category_id is not None:
        query = query.filter(Expense.category_id == category_id)
    if job_card_id is not None:
        query = query.filter(Expense.job_card_id == job_card_id)
    if submitted_by_id is not None:
        query = query.filter(Expense.submitted_by_id == submitted_by_id)
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Expense.expense_number.ilike(pattern),
            Expense.description.ilike(pattern),
            Expense.vendor.ilike(pattern),
        ))

    total = query.count()
    expenses = query.order_by(Expense.expense_date.desc(), Expense.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return expenses, total


def _check_employee(db: Session, employee_id: Optional[int], label: str) -> None:
    if employee_id is not None and db.query(Employee).filter(Employee.id == employee_id).first() is None:
        raise NotFoundError(f"{label} not found")


def create_expense(db: Session, data: ExpenseCreate, performed_by: str = None) -> Expense:
    """Create a standalone expense (no job card link)."""
    get_category(db, data.category_id)
    _check_employee(db, data.submitted_by_id, "Submitting employee")

    expense = Expense(
        **data.model_dump(exclude={"status"}),
        expense_number=generate_expense_number(db),
        created_by=performed_by,
    )
    stamp_expense_status(expense, data.status)
    db.add(expense)
    db.flush()
    record_audit(db, "CREATE", "Expense", expense.id, performed_by, new_values=sqlalchemy_to_dict(expense))
    db.commit()
    db.refresh(expense)
    logger.info(f"Expense {expense.expense_number} ({expense.amount}) created by user {performed_by}")
    return expense


def create_from_job_expense(
    db: Session,
    job_card: JobCard,
    job_expense: JobExpense,
    submitted_by_id: Optional[int] = None,
    performed_by: str = None,
) -> Optional[Expense]:
    """
    Create the formal Expense derived from a JobExpense, in the caller's transaction.

    The status follows the job card's lifecycle. Returns None (and logs) when no
    expense category can be resolved for the free-text category.
    """
    category = find_matching_category(db, job_expense.category)
    if category is None:
        logger.warning(
            f"No matching expense category for job expense {job_expense.id} ('{job_expense.category}'); derived expense not created"
        )
        return None

    status = map_job_card_status_to_expense_status(job_card.status)
    visit_date = job_card.visit_date or datetime.now(pytz.utc)
    expense = Expense(
        expense_number=generate_expense_number(db),
        category_id=category.id,
        description=job_expense.description or job_expense.category,
        amount=job_expense.amount,
        expense_date=visit_date.date() if isinstance(visit_date, datetime) else visit_date,
        has_receipt=job_expense.has_receipt,
        receipt_url=job_expense.receipt_url,
        notes=AUTO_CREATED_NOTE,
        job_card_id=job_card.id,
        job_expense_id=job_expense.id,
        submitted_by_id=submitted_by_id,
        status=status,
        created_by=performed_by,
    )
    if status == ExpenseStatus.PAID and submitted_by_id is not None:
        expense.approved_by_id = submitted_by_id
        expense.approved_at = datetime.now(pytz.utc)

    db.add(expense)
    db.flush()
    record_audit(
        db, "CREATE", "Expense", expense.id, performed_by,
        new_values=sqlalchemy_to_dict(expense),
        meta={"source": "JobExpense", "job_expense_id": job_expense.id, "job_card_id": job_card.id},
    )
    return expense


def _apply_update(
    db: Session,
    expense: Expense,
    changes: dict,
    performed_by: str = None,
    restamp: bool = False,
) -> Expense:
    old_values = sqlalchemy_to_dict(expense)
    old_status = expense.status

    if changes.get("category_id") is not None:
        get_category(db, changes["category_id"])
    _check_employee(db, changes.get("approved_by_id"), "Approving employee")
    for key in ("category_id", "description", "amount", "expense_date", "has_receipt"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    new_status = changes.pop("status", None)
    for key, value in changes.items():
        setattr(expense, key, value)
    if new_status is not None:
        stamp_expense_status(expense, new_status, overwrite=restamp)
    expense.updated_by = performed_by
    db.flush()

    mirror_expense_to_job_expense(db, expense, changes, performed_by)

    record_audit(db, "UPDATE", "Expense", expense.id, performed_by, old_values, sqlalchemy_to_dict(expense))

    if new_status is not None:
        on_expense_status_changed(db, expense, new_status, old_status, performed_by)

    db.commit()
    db.refresh(expense)
    logger.info(f"Expense {expense.expense_number} updated by user {performed_by}")
    return expense


def update_expense(
    db: Session,
    expense_id: int,
    data: ExpenseUpdate,
    performed_by: str = None,
) -> Expense:
    """
    Update an expense. Shared fields are mirrored onto a linked JobExpense, and a
    status change is lifted to the linked job card when every sibling agrees.
    """
    expense = get_expense(db, expense_id)
    return _apply_update(db, expense, data.model_dump(exclude_unset=True), performed_by)


def update_expense_status(
    db: Session,
    expense_id: int,
    status: ExpenseStatus,
    performed_by: str = None,
    approved_by_id: Optional[int] = None,
    rejection_reason: Optional[str] = None,
) -> Expense:
    expense = get_expense(db, expense_id)
    changes = {"status": status}
    if status in (ExpenseStatus.APPROVED, ExpenseStatus.PAID):
        if approved_by_id is not None:
            changes["approved_by_id"] = approved_by_id
    elif status == ExpenseStatus.REJECTED:
        if rejection_reason:
            changes["rejection_reason"] = rejection_reason
    return _apply_update(db, expense, changes, performed_by, restamp=True)


def approve_expense(db: Session, expense_id: int, approved_by_id: Optional[int], performed_by: str = None) -> Expense:
    return update_expense_status(db, expense_id, ExpenseStatus.APPROVED, performed_by, approved_by_id=approved_by_id)


def mark_expense_paid(db: Session, expense_id: int, approved_by_id: Optional[int], performed_by: str = None) -> Expense:
    return update_expense_status(db, expense_id, ExpenseStatus.PAID, performed_by, approved_by_id=approved_by_id)


def reject_expense(db: Session, expense_id: int, rejection_reason: str, performed_by: str = None) -> Expense:
    if not (rejection_reason or "").strip():
        raise ValidationError("A rejection reason is required")
    return update_expense_status(db, expense_id, ExpenseStatus.REJECTED, performed_by, rejection_reason=rejection_reason.strip())


def cancel_expense(db: Session, expense_id: int, performed_by: str = None) -> Expense:
    return update_expense_status(db, expense_id, ExpenseStatus.CANCELLED, performed_by)


def remove_expense(db: Session, expense: Expense, performed_by: str = None) -> None:
    """Delete in the caller's transaction (used by job card / job expense deletion)."""
    old_values = sqlalchemy_to_dict(expense)
    expense_id = expense.id
    db.delete(expense)
    db.flush()
    record_audit(db, "DELETE", "Expense", expense_id, performed_by, old_values=old_values)


def delete_expense(db: Session, expense_id: int, performed_by: str = None) -> None:
    expense = get_expense(db, expense_id)
    number = expense.expense_number
    remove_expense(db, expense, performed_by)
    db.commit()
    logger.info(f"Expense {number} deleted by user {performed_by}")


def delete_by_job_expense_id(db: Session, job_expense_id: int, performed_by: str = None) -> bool:
    """Delete the Expense derived from a JobExpense, if any (caller commits). Returns True if one was deleted."""
    expense = get_expense_by_job_expense_id(db, job_expense_id)
    if expense is None:
        return False
    remove_expense(db, expense, performed_by)
    return True


def sync_expense_from_job_expense(db: Session, job_expense: JobExpense, performed_by: str = None) -> Optional[Expense]:
    """Copy a JobExpense's shared fields onto its derived Expense (caller commits). Does not touch the job card."""
    expense = get_expense_by_job_expense_id(db, job_expense.id)
    if expense is None:
        return None

    old_values = sqlalchemy_to_dict(expense)
    expense.amount = job_expense.amount
    expense.has_receipt = job_expense.has_receipt
    expense.receipt_url = job_expense.receipt_url
    expense.description = job_expense.description or job_expense.category
    expense.updated_by = performed_by
    db.flush()
    record_audit(
        db, "UPDATE", "Expense", expense.id, performed_by,
        old_values, sqlalchemy_to_dict(expense),
        meta={"source": "JobExpense", "job_expense_id": job_expense.id},
    )
    return expense
