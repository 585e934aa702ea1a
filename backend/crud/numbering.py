from datetime import datetime

import pytz
from sqlalchemy.orm import Session


def next_document_number(db: Session, column, prefix: str, now: datetime = None) -> str:
    """
    Next number in the PREFIX-YYYY-NNN series (e.g. SALE-2026-007).

    Takes the highest existing number for the current year and adds one; the
    sequence is zero-padded to three digits and simply grows past 999.
    """
    year = (now or datetime.now(pytz.utc)).year
    year_prefix = f"{prefix}-{year}-"
    existing = db.query(column).filter(column.like(f"{year_prefix}%")).all()

    last_sequence = 0
    for (number,) in existing:
        suffix = number[len(year_prefix):]
        if suffix.isdigit():
            last_sequence = max(last_sequence, int(suffix))
    return f"{year_prefix}{last_sequence + 1:03d}"
