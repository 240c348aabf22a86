"""
Double-booking checks.

Existing bookings are widened by a buffer on both sides before comparing
half-open intervals. The buffer is either a flat number of minutes or a
BufferPolicy that derives the margin from the two lessons' locations.
Buffers are only used here; they are never written to a booking.
"""
from app.core.exceptions import AvailabilityError, ConflictError, ValidationError
from app.models.enums import BookingStatus
from app.scheduling.time_range import overlaps, to_minutes, widen


class BufferPolicy:
    """
    Travel / cleanup margin between two lessons:
      same location     → same_location
      known pair        → travel_minutes[(a, b)] (either direction)
      anything else     → default
    """

    def __init__(self, same_location: int = 15, default: int = 30, travel_minutes=None):
        self.same_location = same_location
        self.default = default
        self.travel_minutes = dict(travel_minutes or {})

    def between(self, location_a: str, location_b: str) -> int:
        if location_a == location_b:
            return self.same_location
        if (location_a, location_b) in self.travel_minutes:
            return self.travel_minutes[(location_a, location_b)]
        if (location_b, location_a) in self.travel_minutes:
            return self.travel_minutes[(location_b, location_a)]
        return self.default


def buffer_for(buffer, existing_location: str, candidate_location: str) -> int:
    if isinstance(buffer, BufferPolicy):
        return buffer.between(existing_location, candidate_location)
    return int(buffer or 0)


def _is_cancelled(booking) -> bool:
    return BookingStatus(booking.status) == BookingStatus.CANCELLED


def find_conflicts(candidate, bookings, buffer=0, exclude_id=None) -> list:
    """Non-cancelled bookings whose buffered interval overlaps the candidate."""
    start = candidate.start_minutes
    end = candidate.end_minutes
    hits = []

    for booking in bookings:
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if _is_cancelled(booking):
            continue
        if booking.date != candidate.date:
            continue

        margin = buffer_for(buffer, booking.location, candidate.location)
        b_start, b_end = widen(to_minutes(booking.start_time), to_minutes(booking.end_time), margin)
        if overlaps(start, end, b_start, b_end):
            hits.append(booking)

    return hits


def has_conflict(candidate, instructor_bookings, student_bookings, buffer=0, exclude_id=None) -> bool:
    return bool(
        find_conflicts(candidate, instructor_bookings, buffer, exclude_id)
        or find_conflicts(candidate, student_bookings, buffer, exclude_id)
    )


class ConflictChecker:

    def __init__(self, buffer=0):
        self.buffer = buffer

    # ---------------------------------------------------------------------
    # PROFILE: class type + location
    # ---------------------------------------------------------------------
    def check_profile(self, candidate, instructor):
        if not instructor.teaches(candidate.class_type):
            raise ValidationError(
                "Instructor does not teach this class type",
                details={"instructor_id": instructor.id, "class_type": candidate.class_type.value},
            )
        if not instructor.works_at(candidate.location):
            raise ValidationError(
                "Instructor is not available at this location",
                details={"instructor_id": instructor.id, "location": candidate.location},
            )

    # ---------------------------------------------------------------------
    # WINDOW
    # ---------------------------------------------------------------------
    def check_window(self, candidate, window):
        if not window.is_available:
            reason = "absent" if window.source == "absence" else "not available"
            raise AvailabilityError(
                f"Instructor is {reason} on {candidate.date.isoformat()}",
                details={"date": candidate.date.isoformat(), "source": window.source},
            )

        if not window.allows(candidate.start_time, candidate.end_time):
            raise AvailabilityError(
                "Requested time is outside instructor's availability hours",
                details={
                    "requested": f"{candidate.start_time}-{candidate.end_time}",
                    "window": f"{window.start_time}-{window.end_time}",
                    "source": window.source,
                },
            )

    # ---------------------------------------------------------------------
    # OVERLAPS
    # ---------------------------------------------------------------------
    def check_overlaps(self, candidate, instructor_bookings, student_bookings, exclude_id=None):
        hits = find_conflicts(candidate, instructor_bookings, self.buffer, exclude_id)
        if hits:
            raise ConflictError(
                "Time slot is not available due to scheduling conflicts",
                scope="instructor",
                booking_ids=[b.id for b in hits],
            )

        hits = find_conflicts(candidate, student_bookings, self.buffer, exclude_id)
        if hits:
            raise ConflictError(
                "Student already has a lesson at this time",
                scope="student",
                booking_ids=[b.id for b in hits],
            )

    def check_candidate(self, candidate, window, instructor_bookings, student_bookings, exclude_id=None):
        self.check_window(candidate, window)
        self.check_overlaps(candidate, instructor_bookings, student_bookings, exclude_id)
