from sqlalchemy import Column, Integer, Numeric, Date, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, utc_now


class InstallmentStatus(enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class SaleInstallment(Base, TimestampMixin):
    __tablename__ = "sale_installments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    status = Column(Enum(InstallmentStatus), default=InstallmentStatus.PAID, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    sale = relationship("Sale", back_populates="installments")
