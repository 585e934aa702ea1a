from typing import List, Optional
from sqlalchemy.orm import Session
from models.audit_log import SystemLog
from schemas.audit_log import AuditLogCreate


def create_audit_log(db: Session, log_entry: AuditLogCreate) -> SystemLog:
    """Add an audit row to the caller's transaction; the caller commits."""
    db_log_entry = SystemLog(**log_entry.model_dump())
    db.add(db_log_entry)
    db.flush()
    return db_log_entry


def record_audit(
    db: Session,
    action: str,
    entity_type: str,
    entity_id,
    performed_by: Optional[str] = None,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    meta: Optional[dict] = None,
) -> SystemLog:
    return create_audit_log(
        db,
        AuditLogCreate(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            performed_by=str(performed_by) if performed_by is not None else None,
            old_values=old_values,
            new_values=new_values,
            meta=meta,
        ),
    )


def list_audit_logs(db: Session, entity_type: str, entity_id) -> List[SystemLog]:
    return db.query(SystemLog).filter(
        SystemLog.entity_type == entity_type,
        SystemLog.entity_id == str(entity_id),
    ).order_by(SystemLog.created_at.desc(), SystemLog.id.desc()).all()
