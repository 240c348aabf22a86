"""
Move an existing booking to a new instructor / date / start time.

The booking keeps its id, duration, class type, location, price and notes.
All checks run against the new slot with the booking itself excluded from
its own conflict set; if any check fails nothing is written.
"""
from datetime import date, datetime
from typing import Optional

from app.core.exceptions import NotFoundError, StateError
from app.core.logging_config import get_logger
from app.db.transaction import run_in_transaction
from app.models.booking import Booking
from app.models.enums import BookingStatus
from app.scheduling.availability import AvailabilityResolver
from app.scheduling.conflicts import ConflictChecker
from app.scheduling.store import BookingStore
from app.scheduling.time_range import as_naive_utc
from app.scheduling.types import BookingCandidate

logger = get_logger()

MOVABLE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)


class RescheduleCoordinator:

    def __init__(self, buffer=15, max_attempts: int = 3):
        self.checker = ConflictChecker(buffer)
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings):
        return cls(buffer=settings.buffer_policy(), max_attempts=settings.booking_max_retries)

    def reschedule(self, db, booking_id: int, new_instructor_id: Optional[int],
                   new_date: date, new_start_time: str,
                   now: Optional[datetime] = None) -> Booking:
        now = as_naive_utc(now)

        def work(session):
            store = BookingStore(session)

            booking = store.get_booking(booking_id, lock=True)
            if not booking:
                raise NotFoundError("Booking not found", details={"booking_id": booking_id})

            if BookingStatus(booking.status) not in MOVABLE_STATUSES:
                raise StateError(
                    f"Cannot reschedule a {BookingStatus(booking.status).value} booking",
                    details={"booking_id": booking_id},
                )

            instructor_id = new_instructor_id or booking.instructor_id
            candidate = BookingCandidate.from_booking(booking).moved_to(
                instructor_id, new_date, new_start_time
            )

            store.get_student(booking.student_id, lock=True)
            instructor = store.get_instructor(instructor_id, lock=True)
            if not instructor:
                raise NotFoundError("Instructor not found", details={"instructor_id": instructor_id})

            self.checker.check_profile(candidate, instructor)

            window = AvailabilityResolver(store).resolve_window(instructor.id, new_date)
            self.checker.check_candidate(
                candidate,
                window,
                store.load_bookings(instructor_id=instructor.id, on_date=new_date, exclude_id=booking.id),
                store.load_bookings(student_id=booking.student_id, on_date=new_date, exclude_id=booking.id),
                exclude_id=booking.id,
            )

            previous = (booking.instructor_id, booking.date, booking.start_time)
            store.update_booking(booking.id, {
                "instructor_id": instructor.id,
                "date": candidate.date,
                "start_time": candidate.start_time,
                "end_time": candidate.end_time,
                "updated_at": now,
            })
            return booking, previous

        booking, previous = run_in_transaction(db, work, self.max_attempts, label="reschedule_booking")
        db.refresh(booking)

        old_instructor, old_date, old_start = previous
        logger.bind(log_type="booking").info(
            f"Booking Rescheduled | Id={booking.id} | "
            f"Instructor {old_instructor} -> {booking.instructor_id} | "
            f"{old_date} {old_start} -> {booking.date} {booking.start_time}"
        )
        return booking
