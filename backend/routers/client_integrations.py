from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import client_integrations as crud
from crud.clients import get_client
from models.employees import DIRECTOR
from schemas import clients as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/client-integrations", tags=["Client Integrations"])

director_only = require_role([DIRECTOR])


@router.get("/", response_model=List[schemas.ClientIntegration])
def read_client_integrations(client_id: int, db: Session = Depends(get_db), user: dict = Depends(director_only)):
    get_client(db, client_id)
    return crud.list_integrations(db, client_id)


@router.get("/{integration_id}", response_model=schemas.ClientIntegration)
def read_client_integration(integration_id: int, db: Session = Depends(get_db), user: dict = Depends(director_only)):
    return crud.get_integration(db, integration_id)


@router.post("/", response_model=schemas.ClientIntegration, status_code=status.HTTP_201_CREATED)
def create_client_integration(
    integration: schemas.ClientIntegrationCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(director_only),
):
    return crud.create_integration(db, integration, performed_by=get_user_identifier(user))


@router.patch("/{integration_id}", response_model=schemas.ClientIntegration)
def update_client_integration(
    integration_id: int,
    integration: schemas.ClientIntegrationUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(director_only),
):
    return crud.update_integration(db, integration_id, integration, performed_by=get_user_identifier(user))


@router.delete("/{integration_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client_integration(integration_id: int, db: Session = Depends(get_db), user: dict = Depends(director_only)):
    crud.delete_integration(db, integration_id, performed_by=get_user_identifier(user))
