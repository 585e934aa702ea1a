from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from crud import sale_installments as crud
from models.employees import DIRECTOR, STAFF
from schemas import sale_installments as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/sale-installments", tags=["Sale Installments"])


@router.get("/{installment_id}", response_model=schemas.SaleInstallment)
def read_installment(
    installment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.get_installment(db, installment_id)


@router.patch("/{installment_id}", response_model=schemas.SaleInstallment)
def update_installment(
    installment_id: int,
    installment: schemas.SaleInstallmentUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_installment(db, installment_id, installment, performed_by=get_user_identifier(user))


@router.delete("/{installment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_installment(
    installment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    crud.delete_installment(db, installment_id, performed_by=get_user_identifier(user))
