from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from models.audit_mixin import utc_now


class SystemLog(Base):
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False)  # 'CREATE', 'UPDATE', 'DELETE', 'OTHER'
    entity_type = Column(String, nullable=False, index=True)
    entity_id = Column(String, nullable=False, index=True)
    performed_by = Column(String, nullable=True)
    old_values = Column(JSON)
    new_values = Column(JSON)
    meta = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utc_now)
