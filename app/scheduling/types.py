"""
Value objects passed between the scheduling components.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from app.models.enums import ClassType, LessonDuration, PackageLabel
from app.scheduling.time_range import add_minutes, to_minutes


@dataclass(frozen=True)
class AvailabilityWindow:
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    source: str = "none"        # absence | special | global | instructor | none

    def allows(self, start_time: str, end_time: str) -> bool:
        if not self.is_available or not self.start_time or not self.end_time:
            return False
        return to_minutes(self.start_time) <= to_minutes(start_time) and \
            to_minutes(end_time) <= to_minutes(self.end_time)


@dataclass(frozen=True)
class BookingCandidate:
    """A proposed lesson, validated once at the API boundary."""
    student_id: int
    instructor_id: int
    location: str
    class_type: ClassType
    duration: LessonDuration
    date: date
    start_time: str
    package: PackageLabel = PackageLabel.SINGLE
    price: Optional[float] = None
    terms_accepted_at: Optional[datetime] = None

    @property
    def end_time(self) -> str:
        return add_minutes(self.start_time, int(self.duration))

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    def moved_to(self, instructor_id: int, new_date: date, start_time: str) -> "BookingCandidate":
        return replace(self, instructor_id=instructor_id, date=new_date, start_time=start_time)

    @classmethod
    def from_booking(cls, booking) -> "BookingCandidate":
        return cls(
            student_id=booking.student_id,
            instructor_id=booking.instructor_id,
            location=booking.location,
            class_type=ClassType(booking.class_type),
            duration=LessonDuration(booking.duration),
            date=booking.date,
            start_time=booking.start_time,
            package=PackageLabel(booking.package),
            price=booking.price,
        )
