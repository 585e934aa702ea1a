from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database import get_db
from crud import job_cards as crud
from models.employees import DIRECTOR, STAFF
from models.job_cards import JobCardStatus
from schemas import job_cards as schemas
from schemas.pagination import build_pagination
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/job-cards", tags=["Job Cards"])
logger = logging.getLogger("job_cards")

any_employee = require_role([DIRECTOR, STAFF])


@router.post("/", response_model=schemas.JobCard, status_code=status.HTTP_201_CREATED)
def create_job_card(
    job_card: schemas.JobCardCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    """Create a job card; each job expense also becomes a formal expense."""
    return crud.create_job_card(db, job_card, performed_by=get_user_identifier(user))


@router.get("/", response_model=schemas.JobCardList)
def read_job_cards(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    job_status: Optional[JobCardStatus] = Query(None, alias="status"),
    client_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    job_cards, total = crud.list_job_cards(db, page=page, limit=limit, status=job_status, client_id=client_id)
    return {"data": job_cards, "pagination": build_pagination(page, limit, total)}


@router.get("/job-number/{job_number}", response_model=schemas.JobCard)
def read_job_card_by_number(job_number: str, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    return crud.get_job_card_by_number(db, job_number)


@router.get("/{job_card_id}", response_model=schemas.JobCard)
def read_job_card(job_card_id: int, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    return crud.get_job_card(db, job_card_id)


@router.patch("/{job_card_id}", response_model=schemas.JobCard)
def update_job_card(
    job_card_id: int,
    job_card: schemas.JobCardUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    """Update a job card. A status change is pushed down to its linked expenses."""
    return crud.update_job_card(db, job_card_id, job_card, performed_by=get_user_identifier(user))


@router.delete("/{job_card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job_card(
    job_card_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    crud.delete_job_card(db, job_card_id, performed_by=get_user_identifier(user))


@router.post("/{job_card_id}/tasks", response_model=schemas.JobTask, status_code=status.HTTP_201_CREATED)
def add_task(job_card_id: int, task: schemas.JobTaskCreate, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    return crud.add_task(db, job_card_id, task, performed_by=get_user_identifier(user))


@router.patch("/{job_card_id}/tasks/{task_id}", response_model=schemas.JobTask)
def update_task(
    job_card_id: int,
    task_id: int,
    task: schemas.JobTaskUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    return crud.update_task(db, job_card_id, task_id, task, performed_by=get_user_identifier(user))


@router.delete("/{job_card_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(job_card_id: int, task_id: int, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    crud.delete_task(db, job_card_id, task_id, performed_by=get_user_identifier(user))


@router.post("/{job_card_id}/expenses", response_model=schemas.JobExpense, status_code=status.HTTP_201_CREATED)
def add_job_expense(
    job_card_id: int,
    job_expense: schemas.JobExpenseCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    return crud.add_job_expense(db, job_card_id, job_expense, performed_by=get_user_identifier(user))


@router.patch("/{job_card_id}/expenses/{job_expense_id}", response_model=schemas.JobExpense)
def update_job_expense(
    job_card_id: int,
    job_expense_id: int,
    job_expense: schemas.JobExpenseUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    return crud.update_job_expense(db, job_card_id, job_expense_id, job_expense, performed_by=get_user_identifier(user))


@router.delete("/{job_card_id}/expenses/{job_expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job_expense(job_card_id: int, job_expense_id: int, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    crud.delete_job_expense(db, job_card_id, job_expense_id, performed_by=get_user_identifier(user))


@router.post("/{job_card_id}/approvals", response_model=schemas.JobCardApproval, status_code=status.HTTP_201_CREATED)
def add_approval(
    job_card_id: int,
    approval: schemas.JobCardApprovalCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    return crud.add_approval(db, job_card_id, approval, performed_by=get_user_identifier(user))


@router.patch("/{job_card_id}/approvals/{approval_id}", response_model=schemas.JobCardApproval)
def update_approval(
    job_card_id: int,
    approval_id: int,
    approval: schemas.JobCardApprovalUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(any_employee),
):
    return crud.update_approval(db, job_card_id, approval_id, approval, performed_by=get_user_identifier(user))


@router.delete("/{job_card_id}/approvals/{approval_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_approval(job_card_id: int, approval_id: int, db: Session = Depends(get_db), user: dict = Depends(any_employee)):
    crud.delete_approval(db, job_card_id, approval_id, performed_by=get_user_identifier(user))
