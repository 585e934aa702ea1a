from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.expenses import ExpenseStatus
from schemas.pagination import PaginationMeta


class ExpenseCategoryBase(BaseModel):
    name: str
    description: Optional[str] = None


class ExpenseCategoryCreate(ExpenseCategoryBase):
    pass


class ExpenseCategory(ExpenseCategoryBase):
    id: int

    class Config:
        from_attributes = True


class ExpenseBase(BaseModel):
    category_id: int
    description: str
    amount: Decimal = Field(gt=0)
    expense_date: date
    vendor: Optional[str] = None
    reference_number: Optional[str] = None
    payment_method: Optional[str] = None
    has_receipt: bool = False
    receipt_url: Optional[str] = None
    notes: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    status: ExpenseStatus = ExpenseStatus.PENDING
    submitted_by_id: Optional[int] = None


class ExpenseUpdate(BaseModel):
    category_id: Optional[int] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    expense_date: Optional[date] = None
    vendor: Optional[str] = None
    reference_number: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[ExpenseStatus] = None
    has_receipt: Optional[bool] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    approved_by_id: Optional[int] = None
    rejection_reason: Optional[str] = None


class ExpenseStatusUpdate(BaseModel):
    status: ExpenseStatus
    rejection_reason: Optional[str] = None


class ExpenseRejection(BaseModel):
    rejection_reason: str = Field(min_length=1)


class Expense(ExpenseBase):
    id: int
    expense_number: str
    status: ExpenseStatus
    job_card_id: Optional[int] = None
    job_expense_id: Optional[int] = None
    submitted_by_id: Optional[int] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseList(BaseModel):
    data: List[Expense]
    pagination: PaginationMeta
