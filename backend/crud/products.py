from typing import List, Optional
from sqlalchemy.orm import Session
from crud.audit_log import record_audit
from models.products import Product, ProductCategory
from schemas.products import ProductCategoryCreate, ProductCategoryUpdate, ProductCreate, ProductUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError


# Product categories

def get_product_category(db: Session, category_id: int) -> ProductCategory:
    category = db.query(ProductCategory).filter(ProductCategory.id == category_id).first()
    if category is None:
        raise NotFoundError("Product category not found")
    return category


def get_product_category_by_name(db: Session, name: str) -> Optional[ProductCategory]:
    return db.query(ProductCategory).filter(ProductCategory.name == name).first()


def list_product_categories(db: Session) -> List[ProductCategory]:
    return db.query(ProductCategory).filter(
        ProductCategory.status != "archived"
    ).order_by(ProductCategory.name).all()


def create_product_category(db: Session, data: ProductCategoryCreate, performed_by: str = None) -> ProductCategory:
    if get_product_category_by_name(db, data.name) is not None:
        raise ValidationError(f"A product category named {data.name} already exists")
    category = ProductCategory(**data.model_dump(), status="active", created_by=performed_by)
    db.add(category)
    db.flush()
    record_audit(db, "CREATE", "ProductCategory", category.id, performed_by, new_values=sqlalchemy_to_dict(category))
    db.commit()
    db.refresh(category)
    return category


def update_product_category(db: Session, category_id: int, data: ProductCategoryUpdate, performed_by: str = None) -> ProductCategory:
    category = get_product_category(db, category_id)
    changes = data.model_dump(exclude_unset=True)
    name = changes.get("name")
    if name is not None and name != category.name and get_product_category_by_name(db, name) is not None:
        raise ValidationError(f"A product category named {name} already exists")

    old_values = sqlalchemy_to_dict(category)
    for key, value in changes.items():
        if value is not None:
            setattr(category, key, value)
    category.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "ProductCategory", category.id, performed_by, old_values, sqlalchemy_to_dict(category))
    db.commit()
    db.refresh(category)
    return category


def delete_product_category(db: Session, category_id: int, performed_by: str = None) -> ProductCategory:
    """Categories are archived; their products keep the link."""
    category = get_product_category(db, category_id)
    old_values = sqlalchemy_to_dict(category)
    category.status = "archived"
    category.updated_by = performed_by
    db.flush()
    record_audit(db, "DELETE", "ProductCategory", category.id, performed_by, old_values, sqlalchemy_to_dict(category))
    db.commit()
    db.refresh(category)
    return category


# Products

def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def list_products(db: Session, skip: int = 0, limit: int = 100, category_id: Optional[int] = None) -> List[Product]:
    query = db.query(Product).filter(Product.status != "discontinued")
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name).offset(skip).limit(limit).all()


def create_product(db: Session, data: ProductCreate, performed_by: str = None) -> Product:
    if data.category_id is not None:
        get_product_category(db, data.category_id)
    product = Product(**data.model_dump(), status="active", created_by=performed_by)
    db.add(product)
    db.flush()
    record_audit(db, "CREATE", "Product", product.id, performed_by, new_values=sqlalchemy_to_dict(product))
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, data: ProductUpdate, performed_by: str = None) -> Product:
    product = get_product(db, product_id)
    changes = data.model_dump(exclude_unset=True)
    # An explicit null category_id unlinks the product
    if changes.get("category_id") is not None:
        get_product_category(db, changes["category_id"])

    old_values = sqlalchemy_to_dict(product)
    for key, value in changes.items():
        setattr(product, key, value)
    product.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "Product", product.id, performed_by, old_values, sqlalchemy_to_dict(product))
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int, performed_by: str = None) -> Product:
    """Products stay referenced by past sale items, so they are discontinued rather than deleted."""
    product = get_product(db, product_id)
    old_values = sqlalchemy_to_dict(product)
    product.status = "discontinued"
    product.updated_by = performed_by
    db.flush()
    record_audit(db, "DELETE", "Product", product.id, performed_by, old_values, sqlalchemy_to_dict(product))
    db.commit()
    db.refresh(product)
    return product
