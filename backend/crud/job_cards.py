import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from crud.audit_log import record_audit
from crud.expense_sync import on_job_card_status_changed, stamp_job_card_status
from crud.expenses import (
    create_from_job_expense,
    delete_by_job_expense_id,
    remove_expense,
    sync_expense_from_job_expense,
)
from crud.numbering import next_document_number
from models.audit_mixin import utc_now
from models.clients import Client
from models.employees import Employee
from models.expenses import Expense
from models.job_cards import JobCard, JobCardApproval, JobCardStatus, JobExpense, JobTask
from schemas.job_cards import (
    JobCardApprovalCreate,
    JobCardApprovalUpdate,
    JobCardCreate,
    JobCardUpdate,
    JobExpenseCreate,
    JobExpenseUpdate,
    JobTaskCreate,
    JobTaskUpdate,
)
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _with_children(db: Session):
    return db.query(JobCard).options(
        joinedload(JobCard.tasks),
        joinedload(JobCard.expenses),
        joinedload(JobCard.approvals),
    )


def get_job_card(db: Session, job_card_id: int) -> JobCard:
    job_card = _with_children(db).filter(JobCard.id == job_card_id).first()
    if job_card is None:
        raise NotFoundError("Job card not found")
    return job_card


def get_job_card_by_number(db: Session, job_number: str) -> JobCard:
    job_card = _with_children(db).filter(JobCard.job_number == job_number.strip().upper()).first()
    if job_card is None:
        raise NotFoundError("Job card not found")
    return job_card


def list_job_cards(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: Optional[JobCardStatus] = None,
    client_id: Optional[int] = None,
) -> Tuple[List[JobCard], int]:
    query = db.query(JobCard)
    if status is not None:
        query = query.filter(JobCard.status == status)
    if client_id is not None:
        query = query.filter(JobCard.client_id == client_id)
    total = query.count()
    job_cards = query.order_by(JobCard.visit_date.desc(), JobCard.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return job_cards, total


def _check_references(db: Session, client_id: Optional[int], support_staff_id: Optional[int]) -> None:
    if client_id is not None and db.query(Client).filter(Client.id == client_id).first() is None:
        raise NotFoundError("Client not found")
    if support_staff_id is not None and db.query(Employee).filter(Employee.id == support_staff_id).first() is None:
        raise NotFoundError("Support staff not found")


def _create_derived_expense(db: Session, job_card: JobCard, job_expense: JobExpense, performed_by: str = None) -> Optional[Expense]:
    expense = create_from_job_expense(
        db, job_card, job_expense,
        submitted_by_id=job_card.support_staff_id,
        performed_by=performed_by,
    )
    if expense is None:
        logger.warning(f"Job expense {job_expense.id} on {job_card.job_number} kept without a derived expense")
    return expense


def create_job_card(db: Session, data: JobCardCreate, performed_by: str = None) -> JobCard:
    """Create a job card with its tasks and expenses; every job expense gets a derived Expense."""
    _check_references(db, data.client_id, data.support_staff_id)

    job_card = JobCard(
        **data.model_dump(exclude={"tasks", "expenses", "status", "visit_date"}),
        job_number=next_document_number(db, JobCard.job_number, "JC"),
        created_by=performed_by,
    )
    job_card.visit_date = data.visit_date or utc_now()
    stamp_job_card_status(job_card, data.status)
    job_card.tasks = [JobTask(**task.model_dump(), created_by=performed_by) for task in data.tasks]
    job_card.expenses = [JobExpense(**expense.model_dump(), created_by=performed_by) for expense in data.expenses]
    db.add(job_card)
    db.flush()

    record_audit(
        db, "CREATE", "JobCard", job_card.id, performed_by,
        new_values=sqlalchemy_to_dict(job_card),
        meta={"tasks": len(job_card.tasks), "expenses": len(job_card.expenses)},
    )
    for entity_type, children in (("JobTask", job_card.tasks), ("JobExpense", job_card.expenses)):
        for child in children:
            record_audit(
                db, "CREATE", entity_type, child.id, performed_by,
                new_values=sqlalchemy_to_dict(child),
                meta={"job_card_id": job_card.id},
            )
    for job_expense in job_card.expenses:
        _create_derived_expense(db, job_card, job_expense, performed_by)

    db.commit()
    logger.info(f"Job card {job_card.job_number} created for client {job_card.client_id} by user {performed_by}")
    return get_job_card(db, job_card.id)


def update_job_card(db: Session, job_card_id: int, data: JobCardUpdate, performed_by: str = None) -> JobCard:
    job_card = get_job_card(db, job_card_id)
    old_values = sqlalchemy_to_dict(job_card)
    old_status = job_card.status

    changes = data.model_dump(exclude_unset=True)
    _check_references(db, changes.get("client_id"), changes.get("support_staff_id"))
    for key in ("client_id", "visit_date"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    new_status = changes.pop("status", None)
    for key, value in changes.items():
        setattr(job_card, key, value)
    if new_status is not None:
        stamp_job_card_status(job_card, new_status)
    job_card.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "JobCard", job_card.id, performed_by, old_values, sqlalchemy_to_dict(job_card))

    if new_status is not None and new_status != old_status:
        on_job_card_status_changed(db, job_card, new_status, performed_by)

    db.commit()
    logger.info(f"Job card {job_card.job_number} updated by user {performed_by}")
    return get_job_card(db, job_card.id)


def delete_job_card(db: Session, job_card_id: int, performed_by: str = None) -> None:
    """Delete the card's linked Expenses, then the card (tasks, job expenses and approvals cascade)."""
    job_card = get_job_card(db, job_card_id)
    job_number = job_card.job_number
    old_values = sqlalchemy_to_dict(job_card)

    for expense in db.query(Expense).filter(Expense.job_card_id == job_card.id).all():
        remove_expense(db, expense, performed_by)

    db.delete(job_card)
    db.flush()
    record_audit(db, "DELETE", "JobCard", job_card_id, performed_by, old_values=old_values)
    db.commit()
    logger.info(f"Job card {job_number} deleted by user {performed_by}")


def _get_child(db: Session, model, job_card_id: int, child_id: int, label: str):
    child = db.query(model).filter(model.id == child_id, model.job_card_id == job_card_id).first()
    if child is None:
        raise NotFoundError(f"{label} not found")
    return child


def _create_child(db: Session, job_card: JobCard, child, entity_type: str, performed_by: str = None):
    child.job_card_id = job_card.id
    child.created_by = performed_by
    db.add(child)
    db.flush()
    record_audit(
        db, "CREATE", entity_type, child.id, performed_by,
        new_values=sqlalchemy_to_dict(child),
        meta={"job_card_id": job_card.id},
    )
    return child


def _update_child(db: Session, child, changes: dict, entity_type: str, performed_by: str = None):
    old_values = sqlalchemy_to_dict(child)
    for key, value in changes.items():
        setattr(child, key, value)
    child.updated_by = performed_by
    db.flush()
    record_audit(
        db, "UPDATE", entity_type, child.id, performed_by,
        old_values, sqlalchemy_to_dict(child),
        meta={"job_card_id": child.job_card_id},
    )
    return child


def _delete_child(db: Session, child, entity_type: str, performed_by: str = None) -> None:
    old_values = sqlalchemy_to_dict(child)
    child_id = child.id
    job_card_id = child.job_card_id
    db.delete(child)
    db.flush()
    record_audit(db, "DELETE", entity_type, child_id, performed_by, old_values=old_values, meta={"job_card_id": job_card_id})


# Tasks

def add_task(db: Session, job_card_id: int, data: JobTaskCreate, performed_by: str = None) -> JobTask:
    job_card = get_job_card(db, job_card_id)
    task = _create_child(db, job_card, JobTask(**data.model_dump()), "JobTask", performed_by)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, job_card_id: int, task_id: int, data: JobTaskUpdate, performed_by: str = None) -> JobTask:
    task = _get_child(db, JobTask, job_card_id, task_id, "Task")
    changes = data.model_dump(exclude_unset=True)
    if "description" in changes and not changes["description"]:
        raise ValidationError("Task description is required")
    _update_child(db, task, changes, "JobTask", performed_by)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, job_card_id: int, task_id: int, performed_by: str = None) -> None:
    task = _get_child(db, JobTask, job_card_id, task_id, "Task")
    _delete_child(db, task, "JobTask", performed_by)
    db.commit()


# Job expenses

def add_job_expense(db: Session, job_card_id: int, data: JobExpenseCreate, performed_by: str = None) -> JobExpense:
    job_card = get_job_card(db, job_card_id)
    job_expense = _create_child(db, job_card, JobExpense(**data.model_dump()), "JobExpense", performed_by)
    _create_derived_expense(db, job_card, job_expense, performed_by)
    db.commit()
    db.refresh(job_expense)
    return job_expense


def update_job_expense(
    db: Session,
    job_card_id: int,
    job_expense_id: int,
    data: JobExpenseUpdate,
    performed_by: str = None,
) -> JobExpense:
    job_expense = _get_child(db, JobExpense, job_card_id, job_expense_id, "Job expense")
    changes = {key: value for key, value in data.model_dump(exclude_unset=True).items()
               if value is not None or key in ("description", "receipt_url")}
    _update_child(db, job_expense, changes, "JobExpense", performed_by)
    sync_expense_from_job_expense(db, job_expense, performed_by)
    db.commit()
    db.refresh(job_expense)
    return job_expense


def delete_job_expense(db: Session, job_card_id: int, job_expense_id: int, performed_by: str = None) -> None:
    job_expense = _get_child(db, JobExpense, job_card_id, job_expense_id, "Job expense")
    delete_by_job_expense_id(db, job_expense.id, performed_by)
    _delete_child(db, job_expense, "JobExpense", performed_by)
    db.commit()


# Approvals

def add_approval(db: Session, job_card_id: int, data: JobCardApprovalCreate, performed_by: str = None) -> JobCardApproval:
    job_card = get_job_card(db, job_card_id)
    approval = _create_child(db, job_card, JobCardApproval(**data.model_dump()), "JobCardApproval", performed_by)
    db.commit()
    db.refresh(approval)
    return approval


def update_approval(
    db: Session,
    job_card_id: int,
    approval_id: int,
    data: JobCardApprovalUpdate,
    performed_by: str = None,
) -> JobCardApproval:
    approval = _get_child(db, JobCardApproval, job_card_id, approval_id, "Approval")
    changes = data.model_dump(exclude_unset=True)
    if "role" in changes and not changes["role"]:
        raise ValidationError("Approval role is required")
    _update_child(db, approval, changes, "JobCardApproval", performed_by)
    db.commit()
    db.refresh(approval)
    return approval


def delete_approval(db: Session, job_card_id: int, approval_id: int, performed_by: str = None) -> None:
    approval = _get_child(db, JobCardApproval, job_card_id, approval_id, "Approval")
    _delete_child(db, approval, "JobCardApproval", performed_by)
    db.commit()
