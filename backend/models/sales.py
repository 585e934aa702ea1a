from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, utc_now


class SaleStatus(enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Sale(Base, TimestampMixin):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_number = Column(String, nullable=False, unique=True, index=True)  # SALE-YYYY-NNN
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    sale_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    status = Column(Enum(SaleStatus), default=SaleStatus.PENDING, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    agreed_monthly_installment_amount = Column(Numeric(12, 2), nullable=True)
    # Derived from PAID installments, never written directly by callers
    paid_amount = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    requested_payment_date_extension = Column(Boolean, default=False, server_default='false', nullable=False)
    payment_extension_due_date = Column(Date, nullable=True)

    # Relationships
    client = relationship("Client", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")
    installments = relationship(
        "SaleInstallment",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleInstallment.paid_at",
    )


class SaleItem(Base, TimestampMixin):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
