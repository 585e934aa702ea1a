from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import products as crud
from models.employees import DIRECTOR, STAFF
from schemas import products as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("/", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.create_product(db, product, performed_by=get_user_identifier(user))


@router.get("/", response_model=List[schemas.Product])
def read_products(
    skip: int = 0,
    limit: int = 100,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR, STAFF])),
):
    return crud.list_products(db, skip=skip, limit=limit, category_id=category_id)


@router.get("/{product_id}", response_model=schemas.Product)
def read_product(product_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.get_product(db, product_id)


@router.patch("/{product_id}", response_model=schemas.Product)
def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_product(db, product_id, product, performed_by=get_user_identifier(user))


@router.delete("/{product_id}", response_model=schemas.Product)
def delete_product(product_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Products are discontinued, never deleted."""
    return crud.delete_product(db, product_id, performed_by=get_user_identifier(user))
