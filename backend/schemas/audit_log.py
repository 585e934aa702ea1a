from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class AuditLogCreate(BaseModel):
    action: str
    entity_type: str
    entity_id: str
    performed_by: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None


class AuditLog(AuditLogCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
