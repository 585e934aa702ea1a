import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session, joinedload

from crud.audit_log import record_audit
from crud.numbering import next_document_number
from crud.sale_installments import (
    apply_extension,
    push_extension,
    recalculate,
    record_installment,
)
from models.clients import Client
from models.products import Product
from models.sales import Sale, SaleItem, SaleStatus
from schemas.sale_installments import SaleInstallmentCreate
from schemas.sales import SaleCreate, SaleItemCreate, SaleItemUpdate, SaleUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _sale_query(db: Session):
    return db.query(Sale).options(
        joinedload(Sale.client),
        joinedload(Sale.items),
        joinedload(Sale.installments),
    )


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = _sale_query(db).filter(Sale.id == sale_id).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def get_sale_by_number(db: Session, sale_number: str) -> Sale:
    sale = _sale_query(db).filter(Sale.sale_number == sale_number).first()
    if sale is None:
        raise NotFoundError(f"Sale {sale_number} not found")
    return sale


def list_sales(
    db: Session,
    page: int = 1,
    limit: int = 20,
    client_id: Optional[int] = None,
    status: Optional[SaleStatus] = None,
) -> Tuple[List[Sale], int]:
    """Sales newest first. CANCELLED sales are hidden unless asked for explicitly."""
    query = db.query(Sale)
    if status is not None:
        query = query.filter(Sale.status == status)
    else:
        query = query.filter(Sale.status != SaleStatus.CANCELLED)
    if client_id is not None:
        query = query.filter(Sale.client_id == client_id)

    total = query.count()
    sales = query.options(joinedload(Sale.client)).order_by(
        Sale.sale_date.desc(), Sale.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()
    return sales, total


def _get_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise NotFoundError("Client not found")
    return client


def _build_item(db: Session, item: SaleItemCreate, performed_by: str = None) -> SaleItem:
    if db.query(Product).filter(Product.id == item.product_id).first() is None:
        raise NotFoundError(f"Product with ID {item.product_id} not found")
    unit_price = Decimal(item.unit_price)
    return SaleItem(
        product_id=item.product_id,
        quantity=item.quantity,
        unit_price=unit_price,
        total_price=unit_price * item.quantity,
        created_by=performed_by,
    )


def _items_total(items) -> Decimal:
    return sum((Decimal(item.total_price) for item in items), Decimal("0"))


def create_sale(db: Session, data: SaleCreate, performed_by: str = None) -> Sale:
    """
    Create a sale with its line items and, optionally, a first installment.

    Everything is validated before anything is written, so an invalid first
    installment leaves no sale behind.
    """
    _get_client(db, data.client_id)
    if not data.items:
        raise ValidationError("A sale must have at least one item")

    items = [_build_item(db, item, performed_by) for item in data.items]
    total_amount = _items_total(items)

    if data.first_installment is not None and Decimal(data.first_installment.amount) > total_amount:
        raise ValidationError("First installment amount cannot exceed the sale total")

    sale = Sale(
        sale_number=next_document_number(db, Sale.sale_number, "SALE"),
        client_id=data.client_id,
        sale_date=data.sale_date or datetime.now(pytz.utc),
        status=SaleStatus.PENDING,
        total_amount=total_amount,
        agreed_monthly_installment_amount=data.agreed_monthly_installment_amount,
        paid_amount=Decimal("0"),
        notes=data.notes,
        requested_payment_date_extension=False,
        created_by=performed_by,
    )
    sale.items = items
    db.add(sale)
    db.flush()

    record_audit(db, "CREATE", "Sale", sale.id, performed_by, new_values=sqlalchemy_to_dict(sale))
    for item in items:
        record_audit(
            db, "CREATE", "SaleItem", item.id, performed_by,
            new_values=sqlalchemy_to_dict(item),
            meta={"sale_id": sale.id},
        )
    db.commit()
    logger.info(f"Sale {sale.sale_number} created for client {sale.client_id} (total {total_amount}) by user {performed_by}")

    if data.first_installment is not None:
        record_installment(
            db,
            sale.id,
            SaleInstallmentCreate(
                amount=data.first_installment.amount,
                paid_at=data.first_installment.paid_at,
                notes=data.first_installment.notes,
            ),
            performed_by=performed_by,
            first_installment=True,
        )

    return get_sale(db, sale.id)


def update_sale(db: Session, sale_id: int, data: SaleUpdate, performed_by: str = None) -> Sale:
    """
    Update sale header fields.

    Supplying `payment_extension_due_date` grants a payment extension: the sale
    is flagged in the same write and the client's license is then moved to the
    new due date.
    """
    sale = get_sale(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise ValidationError("Cannot update a cancelled sale")
    old_values = sqlalchemy_to_dict(sale)

    changes = data.model_dump(exclude_unset=True)
    extension_due_date = changes.pop("payment_extension_due_date", None)
    requested_flag = changes.pop("requested_payment_date_extension", None)

    if changes.get("client_id") is not None:
        _get_client(db, changes["client_id"])
    for key in ("client_id", "sale_date"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    for key, value in changes.items():
        setattr(sale, key, value)

    if extension_due_date is not None:
        apply_extension(sale, extension_due_date)
    elif requested_flag is False:
        sale.requested_payment_date_extension = False
        sale.payment_extension_due_date = None

    sale.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "Sale", sale.id, performed_by, old_values, sqlalchemy_to_dict(sale))
    db.commit()
    logger.info(f"Sale {sale.sale_number} updated by user {performed_by}")

    if extension_due_date is not None:
        push_extension(db, sale, extension_due_date)

    return get_sale(db, sale.id)


def cancel_sale(db: Session, sale_id: int, performed_by: str = None) -> Sale:
    sale = get_sale(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise ValidationError("Sale is already cancelled")
    old_values = sqlalchemy_to_dict(sale)
    sale.status = SaleStatus.CANCELLED
    sale.updated_by = performed_by
    db.flush()
    record_audit(db, "DELETE", "Sale", sale.id, performed_by, old_values, sqlalchemy_to_dict(sale))
    db.commit()
    logger.info(f"Sale {sale.sale_number} cancelled by user {performed_by}")
    return get_sale(db, sale.id)


def _refresh_totals(db: Session, sale: Sale) -> None:
    db.flush()
    items = db.query(SaleItem).filter(SaleItem.sale_id == sale.id).all()
    sale.total_amount = _items_total(items)
    recalculate(db, sale)


def _editable_sale(db: Session, sale_id: int) -> Sale:
    sale = get_sale(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise ValidationError("Cannot change items on a cancelled sale")
    return sale


def _get_item(db: Session, sale_id: int, item_id: int) -> SaleItem:
    item = db.query(SaleItem).filter(SaleItem.id == item_id, SaleItem.sale_id == sale_id).first()
    if item is None:
        raise NotFoundError("Sale item not found")
    return item


def add_sale_item(db: Session, sale_id: int, data: SaleItemCreate, performed_by: str = None) -> Sale:
    sale = _editable_sale(db, sale_id)
    item = _build_item(db, data, performed_by)
    item.sale_id = sale.id
    db.add(item)
    _refresh_totals(db, sale)
    record_audit(
        db, "CREATE", "SaleItem", item.id, performed_by,
        new_values=sqlalchemy_to_dict(item),
        meta={"sale_id": sale.id},
    )
    db.commit()
    return get_sale(db, sale.id)


def update_sale_item(db: Session, sale_id: int, item_id: int, data: SaleItemUpdate, performed_by: str = None) -> Sale:
    sale = _editable_sale(db, sale_id)
    item = _get_item(db, sale.id, item_id)
    old_values = sqlalchemy_to_dict(item)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("quantity") is not None:
        item.quantity = changes["quantity"]
    if changes.get("unit_price") is not None:
        item.unit_price = Decimal(changes["unit_price"])
    item.total_price = Decimal(item.unit_price) * item.quantity
    item.updated_by = performed_by

    _refresh_totals(db, sale)
    record_audit(
        db, "UPDATE", "SaleItem", item.id, performed_by,
        old_values, sqlalchemy_to_dict(item),
        meta={"sale_id": sale.id},
    )
    db.commit()
    return get_sale(db, sale.id)


def delete_sale_item(db: Session, sale_id: int, item_id: int, performed_by: str = None) -> Sale:
    sale = _editable_sale(db, sale_id)
    item = _get_item(db, sale.id, item_id)
    if len(sale.items) <= 1:
        raise ValidationError("A sale must have at least one item")
    old_values = sqlalchemy_to_dict(item)

    sale.items.remove(item)
    _refresh_totals(db, sale)
    record_audit(
        db, "DELETE", "SaleItem", item_id, performed_by,
        old_values=old_values,
        meta={"sale_id": sale.id},
    )
    db.commit()
    return get_sale(db, sale.id)
