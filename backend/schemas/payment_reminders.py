from pydantic import BaseModel
from typing import List


class ReminderError(BaseModel):
    identifier: str
    client_name: str
    reason: str


class ReminderResult(BaseModel):
    sent: int = 0
    skipped: int = 0
    errors: List[ReminderError] = []
    director_summary_sent: int = 0
