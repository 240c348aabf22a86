from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class WindowOut(BaseModel):
    instructor_id: int
    date: date
    day: str
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    source: str


class WeekOut(BaseModel):
    instructor_id: int
    week_start: date
    days: List[WindowOut]
