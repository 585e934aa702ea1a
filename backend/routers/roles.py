from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import employees as crud
from models.employees import DIRECTOR, STAFF
from schemas import employees as schemas
from utils.auth_utils import require_role

# Roles are seeded at startup and are read-only over the API
router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("/", response_model=List[schemas.Role])
def read_roles(db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.list_roles(db)


@router.get("/{role_id}", response_model=schemas.Role)
def read_role(role_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.get_role(db, role_id)
