from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import expenses as crud
from crud import expense_categories as crud_categories
from crud.expense_sync import employee_id_of
from models.employees import DIRECTOR, STAFF
from models.expenses import ExpenseStatus
from schemas import expenses as schemas
from schemas.pagination import build_pagination
from utils.auth_utils import get_user_identifier, require_role
from utils.errors import ForbiddenError

router = APIRouter(prefix="/expenses", tags=["Expenses"])
logger = logging.getLogger("expenses")

DIRECTOR_ONLY_STATUSES = {ExpenseStatus.APPROVED, ExpenseStatus.PAID, ExpenseStatus.REJECTED}


def _check_status_permission(user: dict, new_status: Optional[ExpenseStatus]) -> None:
    if new_status in DIRECTOR_ONLY_STATUSES and user.get("role") != DIRECTOR:
        raise ForbiddenError("Only directors can approve, pay or reject expenses")


@router.get("/categories", response_model=List[schemas.ExpenseCategory])
def read_expense_categories(
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud_categories.list_categories(db)


@router.post("/categories", response_model=schemas.ExpenseCategory, status_code=status.HTTP_201_CREATED)
def create_expense_category(
    category: schemas.ExpenseCategoryCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud_categories.create_category(db, category, performed_by=get_user_identifier(user))


@router.get("/categories/{category_id}", response_model=schemas.ExpenseCategory)
def read_expense_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud_categories.get_category(db, category_id)


@router.get("/", response_model=schemas.ExpenseList)
def read_expenses(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    expense_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    category_id: Optional[int] = None,
    job_card_id: Optional[int] = None,
    submitted_by_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    expenses, total = crud.list_expenses(
        db,
        page=page,
        limit=limit,
        status=expense_status,
        category_id=category_id,
        job_card_id=job_card_id,
        submitted_by_id=submitted_by_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return {"data": expenses, "pagination": build_pagination(page, limit, total)}


@router.get("/{expense_id}", response_model=schemas.Expense)
def read_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.get_expense(db, expense_id)


@router.post("/", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: schemas.ExpenseCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    _check_status_permission(user, expense.status)
    if expense.submitted_by_id is None:
        expense.submitted_by_id = employee_id_of(get_user_identifier(user))
    return crud.create_expense(db, expense, performed_by=get_user_identifier(user))


@router.patch("/{expense_id}", response_model=schemas.Expense)
def update_expense(
    expense_id: int,
    expense: schemas.ExpenseUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    _check_status_permission(user, expense.status)
    return crud.update_expense(db, expense_id, expense, performed_by=get_user_identifier(user))


@router.patch("/{expense_id}/status", response_model=schemas.Expense)
def update_expense_status(
    expense_id: int,
    status_update: schemas.ExpenseStatusUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    _check_status_permission(user, status_update.status)
    performed_by = get_user_identifier(user)
    return crud.update_expense_status(
        db,
        expense_id,
        status_update.status,
        performed_by=performed_by,
        approved_by_id=employee_id_of(performed_by),
        rejection_reason=status_update.rejection_reason,
    )


@router.post("/{expense_id}/approve", response_model=schemas.Expense)
def approve_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    performed_by = get_user_identifier(user)
    return crud.approve_expense(db, expense_id, employee_id_of(performed_by), performed_by=performed_by)


@router.post("/{expense_id}/pay", response_model=schemas.Expense)
def mark_expense_paid(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    performed_by = get_user_identifier(user)
    return crud.mark_expense_paid(db, expense_id, employee_id_of(performed_by), performed_by=performed_by)


@router.post("/{expense_id}/reject", response_model=schemas.Expense)
def reject_expense(
    expense_id: int,
    rejection: schemas.ExpenseRejection,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.reject_expense(db, expense_id, rejection.rejection_reason, performed_by=get_user_identifier(user))


@router.post("/{expense_id}/cancel", response_model=schemas.Expense)
def cancel_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.cancel_expense(db, expense_id, performed_by=get_user_identifier(user))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    crud.delete_expense(db, expense_id, performed_by=get_user_identifier(user))
