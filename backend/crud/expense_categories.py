import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.audit_log import record_audit
from models.expenses import ExpenseCategory
from schemas.expenses import ExpenseCategoryCreate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Miscellaneous"

DEFAULT_CATEGORIES = [
    ("Transport", "Fuel, fares, taxis and parking"),
    ("Meals & Entertainment", "Meals and client entertainment"),
    ("Office Supplies", "Stationery, printing and office consumables"),
    ("Utilities", "Electricity, water and internet"),
    ("Equipment", "Hardware, tools and machines"),
    ("Software & Subscriptions", "Software licenses and SaaS subscriptions"),
    ("Communication", "Airtime, data bundles and calls"),
    ("Accommodation", "Hotels and lodging"),
    ("Repairs & Maintenance", "Repairs, servicing and maintenance"),
    (FALLBACK_CATEGORY, "Anything that does not fit another category"),
]

# Checked in order; the first keyword contained in the text wins.
CATEGORY_KEYWORDS = [
    ("Transport", ["transport", "fuel", "taxi", "uber", "parking", "matatu", "bus", "fare"]),
    ("Meals & Entertainment", ["meal", "lunch", "dinner", "breakfast", "food", "entertainment", "snack"]),
    ("Office Supplies", ["stationery", "supplies", "office", "paper", "pen", "printing"]),
    ("Utilities", ["utility", "utilities", "electricity", "water", "internet", "wifi"]),
    ("Equipment", ["equipment", "hardware", "tool", "machine"]),
    ("Software & Subscriptions", ["software", "subscription", "license", "saas"]),
    ("Communication", ["airtime", "data", "phone", "call", "sms", "bundle"]),
    ("Accommodation", ["hotel", "lodging", "accommodation", "stay", "room"]),
    ("Repairs & Maintenance", ["repair", "maintenance", "fix", "service"]),
    (FALLBACK_CATEGORY, ["misc", "other", "miscellaneous"]),
]


def get_category(db: Session, category_id: int) -> ExpenseCategory:
    category = db.query(ExpenseCategory).filter(ExpenseCategory.id == category_id).first()
    if category is None:
        raise NotFoundError("Expense category not found")
    return category


def get_category_by_name(db: Session, name: str) -> Optional[ExpenseCategory]:
    return db.query(ExpenseCategory).filter(ExpenseCategory.name == name).first()


def list_categories(db: Session) -> List[ExpenseCategory]:
    return db.query(ExpenseCategory).order_by(ExpenseCategory.name).all()


def create_category(db: Session, data: ExpenseCategoryCreate, performed_by: str = None) -> ExpenseCategory:
    name = data.name.strip()
    if not name:
        raise ValidationError("Category name is required")
    if get_category_by_name(db, name) is not None:
        raise ValidationError(f"Expense category '{name}' already exists")

    category = ExpenseCategory(name=name, description=data.description, created_by=performed_by)
    db.add(category)
    db.flush()
    record_audit(db, "CREATE", "ExpenseCategory", category.id, performed_by, new_values=sqlalchemy_to_dict(category))
    db.commit()
    db.refresh(category)
    return category


def seed_default_categories(db: Session) -> int:
    """Insert any missing default categories. Returns the number created."""
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if get_category_by_name(db, name) is None:
            db.add(ExpenseCategory(name=name, description=description))
            created += 1
    if created:
        db.commit()
        logger.info(f"Seeded {created} default expense categories")
    return created


def find_matching_category(db: Session, category_text: str) -> Optional[ExpenseCategory]:
    """
    Resolve a free-text job expense category ("Taxi to site", "lunch") to a
    formal ExpenseCategory.

    An exact (case-insensitive) name match wins; otherwise the keyword table is
    scanned in order, and anything unmatched falls back to Miscellaneous.
    Returns None only when not even the fallback category exists.
    """
    text = (category_text or "").strip().lower()
    if text:
        exact = db.query(ExpenseCategory).filter(func.lower(ExpenseCategory.name) == text).first()
        if exact is not None:
            return exact

    for name, keywords in CATEGORY_KEYWORDS:
        for keyword in keywords:
            if keyword in text:
                category = get_category_by_name(db, name)
                if category is not None:
                    return category

    return get_category_by_name(db, FALLBACK_CATEGORY)
