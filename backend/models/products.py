from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class ProductCategory(Base, TimestampMixin):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="active")  # 'active' | 'archived'

    products = relationship("Product", back_populates="category")


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String, nullable=True, unique=True)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="active")  # 'active' | 'discontinued'
    category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True)

    category = relationship("ProductCategory", back_populates="products")

    @property
    def category_name(self):
        return self.category.name if self.category else None
