from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import employees as crud
from models.employees import DIRECTOR, STAFF
from schemas import employees as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post("/", response_model=schemas.Employee, status_code=status.HTTP_201_CREATED)
def create_employee(
    employee: schemas.EmployeeCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.create_employee(db, employee, performed_by=get_user_identifier(user))


@router.get("/", response_model=List[schemas.Employee])
def read_employees(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.list_employees(db, skip=skip, limit=limit)


@router.get("/{employee_id}", response_model=schemas.Employee)
def read_employee(employee_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.get_employee(db, employee_id)


@router.patch("/{employee_id}", response_model=schemas.Employee)
def update_employee(
    employee_id: int,
    employee: schemas.EmployeeUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_employee(db, employee_id, employee, performed_by=get_user_identifier(user))


@router.delete("/{employee_id}", response_model=schemas.Employee)
def terminate_employee(employee_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Employees are terminated, never deleted."""
    return crud.terminate_employee(db, employee_id, performed_by=get_user_identifier(user))
