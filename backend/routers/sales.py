from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import sales as crud
from crud import sale_installments as crud_installments
from models.employees import DIRECTOR, STAFF
from models.sales import SaleStatus
from schemas import sales as schemas
from schemas.pagination import build_pagination
from schemas.sale_installments import SaleInstallment, SaleInstallmentCreate
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/sales", tags=["Sales"])
logger = logging.getLogger("sales")


@router.post("/", response_model=schemas.Sale, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale: schemas.SaleCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    """Create a sale with its items and an optional deposit."""
    return crud.create_sale(db, sale, performed_by=get_user_identifier(user))


@router.get("/", response_model=schemas.SaleList)
def read_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    client_id: Optional[int] = None,
    sale_status: Optional[SaleStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    sales, total = crud.list_sales(db, page=page, limit=limit, client_id=client_id, status=sale_status)
    return {"data": sales, "pagination": build_pagination(page, limit, total)}


@router.get("/by-number/{sale_number}", response_model=schemas.Sale)
def read_sale_by_number(
    sale_number: str,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.get_sale_by_number(db, sale_number)


@router.get("/{sale_id}", response_model=schemas.Sale)
def read_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.get_sale(db, sale_id)


@router.patch("/{sale_id}", response_model=schemas.Sale)
def update_sale(
    sale_id: int,
    sale: schemas.SaleUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    """Update a sale. Setting payment_extension_due_date also extends the client's license."""
    return crud.update_sale(db, sale_id, sale, performed_by=get_user_identifier(user))


@router.delete("/{sale_id}", response_model=schemas.Sale)
def cancel_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.cancel_sale(db, sale_id, performed_by=get_user_identifier(user))


@router.post("/{sale_id}/payment-extension", response_model=schemas.Sale)
def request_payment_extension(
    sale_id: int,
    extension: schemas.PaymentExtensionRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    crud_installments.request_extension(
        db, sale_id, extension.payment_extension_due_date, performed_by=get_user_identifier(user)
    )
    return crud.get_sale(db, sale_id)


@router.post("/{sale_id}/items", response_model=schemas.Sale, status_code=status.HTTP_201_CREATED)
def add_sale_item(
    sale_id: int,
    item: schemas.SaleItemCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.add_sale_item(db, sale_id, item, performed_by=get_user_identifier(user))


@router.patch("/{sale_id}/items/{item_id}", response_model=schemas.Sale)
def update_sale_item(
    sale_id: int,
    item_id: int,
    item: schemas.SaleItemUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_sale_item(db, sale_id, item_id, item, performed_by=get_user_identifier(user))


@router.delete("/{sale_id}/items/{item_id}", response_model=schemas.Sale)
def delete_sale_item(
    sale_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.delete_sale_item(db, sale_id, item_id, performed_by=get_user_identifier(user))


@router.get("/{sale_id}/installments", response_model=List[SaleInstallment])
def read_sale_installments(
    sale_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud_installments.list_installments(db, sale_id)


@router.post("/{sale_id}/installments", response_model=SaleInstallment, status_code=status.HTTP_201_CREATED)
def record_sale_installment(
    sale_id: int,
    installment: SaleInstallmentCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    """Record a payment. A PAID installment also extends the client's license to the 3rd of next month."""
    return crud_installments.record_installment(db, sale_id, installment, performed_by=get_user_identifier(user))
