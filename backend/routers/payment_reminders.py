from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from database import get_db
from models.employees import DIRECTOR
from schemas.payment_reminders import ReminderResult
from tasks.payment_reminders import send_payment_extension_reminders, send_payment_reminders
from utils.auth_utils import get_user_identifier, require_role

router = APIRouter(prefix="/payment-reminders", tags=["Payment Reminders"])
logger = logging.getLogger("payment_reminders")


@router.post("/monthly", response_model=ReminderResult)
def trigger_monthly_reminders(db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Run the monthly renewal reminder batch now (normally scheduled for the 1st-3rd at 08:00)."""
    logger.info(f"Monthly payment reminders triggered manually by user {get_user_identifier(user)}")
    return send_payment_reminders(db)


@router.post("/extensions", response_model=ReminderResult)
def trigger_extension_reminders(db: Session = Depends(get_db), user: dict = Depends(require_role([DIRECTOR]))):
    """Run the payment extension reminder batch now (normally scheduled daily at 08:00)."""
    logger.info(f"Payment extension reminders triggered manually by user {get_user_identifier(user)}")
    return send_payment_extension_reminders(db)
