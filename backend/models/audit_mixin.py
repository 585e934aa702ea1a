from sqlalchemy import Column, DateTime, String
from datetime import datetime
import pytz


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class TimestampMixin:
    """Mixin that provides created/updated timestamps and the acting employee.

    All timestamps are timezone-aware UTC. `created_by`/`updated_by` hold the
    employee id taken from the request token (or None for scheduled jobs).
    """
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), onupdate=utc_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
