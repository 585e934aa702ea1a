from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import clients as crud
from models.employees import DIRECTOR, STAFF
from schemas import clients as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("/", response_model=schemas.Client, status_code=status.HTTP_201_CREATED)
def create_client(
    client: schemas.ClientCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.create_client(db, client, performed_by=get_user_identifier(user))


@router.get("/", response_model=List[schemas.Client])
def read_clients(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.list_clients(db, skip=skip, limit=limit)


@router.get("/{client_id}", response_model=schemas.Client)
def read_client(client_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.get_client(db, client_id)


@router.patch("/{client_id}", response_model=schemas.Client)
def update_client(
    client_id: int,
    client: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_client(db, client_id, client, performed_by=get_user_identifier(user))


@router.delete("/{client_id}", response_model=schemas.Client)
def delete_client(client_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Clients are archived and drop out of the client list."""
    return crud.delete_client(db, client_id, performed_by=get_user_identifier(user))
