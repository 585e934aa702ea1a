from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import products as crud
from models.employees import DIRECTOR, STAFF
from schemas import products as schemas
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/product-categories", tags=["Product Categories"])


@router.get("/", response_model=List[schemas.ProductCategory])
def read_product_categories(db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.list_product_categories(db)


@router.get("/{category_id}", response_model=schemas.ProductCategory)
def read_product_category(category_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR, STAFF]))):
    return crud.get_product_category(db, category_id)


@router.post("/", response_model=schemas.ProductCategory, status_code=status.HTTP_201_CREATED)
def create_product_category(
    category: schemas.ProductCategoryCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.create_product_category(db, category, performed_by=get_user_identifier(user))


@router.patch("/{category_id}", response_model=schemas.ProductCategory)
def update_product_category(
    category_id: int,
    category: schemas.ProductCategoryUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    return crud.update_product_category(db, category_id, category, performed_by=get_user_identifier(user))


@router.delete("/{category_id}", response_model=schemas.ProductCategory)
def delete_product_category(category_id: int, db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Categories are archived and drop out of the category list."""
    return crud.delete_product_category(db, category_id, performed_by=get_user_identifier(user))
