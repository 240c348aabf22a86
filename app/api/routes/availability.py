from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.core.exceptions import NotFoundError
from app.models.enums import Weekday
from app.scheduling.availability import AvailabilityResolver
from app.scheduling.store import BookingStore
from app.schemas.availability import WeekOut, WindowOut

router = APIRouter(prefix="/availability", tags=["Availability"])


def _window_out(instructor_id, d, window) -> WindowOut:
    return WindowOut(
        instructor_id=instructor_id,
        date=d,
        day=Weekday.of(d).value,
        is_available=window.is_available,
        start_time=window.start_time,
        end_time=window.end_time,
        source=window.source,
    )


def _resolver_for(instructor_id: int, db: Session) -> AvailabilityResolver:
    store = BookingStore(db)
    if not store.get_instructor(instructor_id):
        raise NotFoundError("Instructor not found", details={"instructor_id": instructor_id})
    return AvailabilityResolver(store)


# ---------------------------------------------------------------------
# RESOLVED WINDOW FOR ONE DATE
# ---------------------------------------------------------------------
@router.get("/instructors/{instructor_id}", response_model=WindowOut)
def instructor_window(instructor_id: int, date: date, db: Session = Depends(get_db)):
    resolver = _resolver_for(instructor_id, db)
    return _window_out(instructor_id, date, resolver.resolve_window(instructor_id, date))


# ---------------------------------------------------------------------
# RESOLVED WINDOWS FOR A WEEK
# ---------------------------------------------------------------------
@router.get("/instructors/{instructor_id}/week", response_model=WeekOut)
def instructor_week(instructor_id: int, week_start: date, db: Session = Depends(get_db)):
    resolver = _resolver_for(instructor_id, db)
    days = [
        _window_out(instructor_id, d, window)
        for d, window in resolver.weekly_schedule(instructor_id, week_start)
    ]
    return WeekOut(instructor_id=instructor_id, week_start=week_start, days=days)
