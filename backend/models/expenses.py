from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin


class ExpenseStatus(enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ExpenseCategory(Base, TimestampMixin):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    expense_number = Column(String, nullable=False, unique=True, index=True)  # EXP-YYYY-NNN
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    vendor = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    status = Column(Enum(ExpenseStatus), default=ExpenseStatus.PENDING, nullable=False)
    has_receipt = Column(Boolean, default=False, nullable=False)
    receipt_url = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Job-card-derived expenses carry both links; standalone expenses carry neither
    job_card_id = Column(Integer, ForeignKey("job_cards.id"), nullable=True, index=True)
    job_expense_id = Column(Integer, ForeignKey("job_expenses.id"), nullable=True, unique=True)

    submitted_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Relationships
    category = relationship("ExpenseCategory")
    job_card = relationship("JobCard", back_populates="linked_expenses")
    job_expense = relationship("JobExpense", back_populates="linked_expense")
    submitted_by = relationship("Employee", foreign_keys=[submitted_by_id])
    approved_by = relationship("Employee", foreign_keys=[approved_by_id])
