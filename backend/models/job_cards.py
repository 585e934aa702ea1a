from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, utc_now


class JobCardStatus(enum.Enum):
    DRAFT = "DRAFT"
    PENDING_CLIENT_CONFIRMATION = "PENDING_CLIENT_CONFIRMATION"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class JobCard(Base, TimestampMixin):
    __tablename__ = "job_cards"

    id = Column(Integer, primary_key=True, index=True)
    job_number = Column(String, nullable=False, unique=True, index=True)  # JC-YYYY-NNN
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    visit_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    location = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    purpose = Column(Text, nullable=True)
    work_summary = Column(Text, nullable=True)
    findings = Column(Text, nullable=True)
    recommendations = Column(Text, nullable=True)
    status = Column(Enum(JobCardStatus), default=JobCardStatus.DRAFT, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    support_staff_id = Column(Integer, ForeignKey("employees.id"), nullable=True)

    # Relationships
    client = relationship("Client", back_populates="job_cards")
    support_staff = relationship("Employee")
    tasks = relationship("JobTask", back_populates="job_card", cascade="all, delete-orphan", order_by="JobTask.id")
    expenses = relationship("JobExpense", back_populates="job_card", cascade="all, delete-orphan", order_by="JobExpense.id")
    approvals = relationship("JobCardApproval", back_populates="job_card", cascade="all, delete-orphan", order_by="JobCardApproval.id")
    linked_expenses = relationship("Expense", back_populates="job_card", order_by="Expense.id")


class JobTask(Base, TimestampMixin):
    __tablename__ = "job_tasks"

    id = Column(Integer, primary_key=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id"), nullable=False)
    module_name = Column(String, nullable=True)
    task_type = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    job_card = relationship("JobCard", back_populates="tasks")


class JobExpense(Base, TimestampMixin):
    __tablename__ = "job_expenses"

    id = Column(Integer, primary_key=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id"), nullable=False)
    category = Column(String, nullable=False)  # free text, resolved to an ExpenseCategory on sync
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    has_receipt = Column(Boolean, default=False, nullable=False)
    receipt_url = Column(String, nullable=True)

    job_card = relationship("JobCard", back_populates="expenses")
    linked_expense = relationship("Expense", back_populates="job_expense", uselist=False)


class JobCardApproval(Base, TimestampMixin):
    __tablename__ = "job_card_approvals"

    id = Column(Integer, primary_key=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id"), nullable=False)
    role = Column(String, nullable=False)
    approver_name = Column(String, nullable=True)
    approver_title = Column(String, nullable=True)
    comment = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    signature_type = Column(String, nullable=True)

    job_card = relationship("JobCard", back_populates="approvals")
