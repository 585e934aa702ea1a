from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from models.sale_installments import InstallmentStatus


class SaleInstallmentBase(BaseModel):
    amount: Decimal = Field(gt=0)
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    status: InstallmentStatus = InstallmentStatus.PAID
    notes: Optional[str] = None


class SaleInstallmentCreate(SaleInstallmentBase):
    pass


class SaleInstallmentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    status: Optional[InstallmentStatus] = None
    notes: Optional[str] = None


class SaleInstallment(SaleInstallmentBase):
    id: int
    sale_id: int
    paid_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
