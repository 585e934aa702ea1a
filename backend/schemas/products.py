from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal


class ProductCategoryBase(BaseModel):
    name: str
    description: Optional[str] = None


class ProductCategoryCreate(ProductCategoryBase):
    pass


class ProductCategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class ProductCategory(ProductCategoryBase):
    id: int
    status: str

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    category_id: Optional[int] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    status: Optional[str] = None


class Product(ProductBase):
    id: int
    status: str
    category_name: Optional[str] = None

    class Config:
        from_attributes = True
