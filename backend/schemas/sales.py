from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.sales import SaleStatus
from schemas.pagination import PaginationMeta
from schemas.sale_installments import SaleInstallment as SaleInstallmentSchema


class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class SaleItemUpdate(BaseModel):
    quantity: Optional[int] = Field(default=None, gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)


class SaleItem(BaseModel):
    id: int
    sale_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class FirstInstallment(BaseModel):
    """Deposit paid when the sale is created."""
    amount: Decimal = Field(gt=0)
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None


class SaleClientSummary(BaseModel):
    id: int
    company_name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class SaleBase(BaseModel):
    client_id: int
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    agreed_monthly_installment_amount: Optional[Decimal] = None


class SaleCreate(SaleBase):
    items: List[SaleItemCreate]
    first_installment: Optional[FirstInstallment] = None


class SaleUpdate(BaseModel):
    client_id: Optional[int] = None
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    agreed_monthly_installment_amount: Optional[Decimal] = None
    requested_payment_date_extension: Optional[bool] = None
    payment_extension_due_date: Optional[date] = None


class Sale(SaleBase):
    id: int
    sale_number: str
    sale_date: datetime
    status: SaleStatus
    total_amount: Decimal
    paid_amount: Decimal
    completed_at: Optional[datetime] = None
    requested_payment_date_extension: bool
    payment_extension_due_date: Optional[date] = None
    client: Optional[SaleClientSummary] = None
    items: List[SaleItem] = []
    installments: List[SaleInstallmentSchema] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleList(BaseModel):
    data: List[Sale]
    pagination: PaginationMeta


class PaymentExtensionRequest(BaseModel):
    payment_extension_due_date: date
