from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud.audit_log import list_audit_logs
from models.employees import DIRECTOR
from schemas.audit_log import AuditLog
from utils.auth_utils import require_role

router = APIRouter(prefix="/system-logs", tags=["System Logs"])


@router.get("/{entity_type}/{entity_id}", response_model=List[AuditLog])
def read_entity_history(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role([DIRECTOR])),
):
    """Audit trail for one record, newest first."""
    return list_audit_logs(db, entity_type, entity_id)
