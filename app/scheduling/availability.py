"""
Effective working window of an instructor on a calendar date.

Sources, strongest first:
  1. Absence           : any absence covering the date vetoes the whole day
  2. Special range     : a date-ranged override for that weekday
  3. Global default    : the school-wide hours for that weekday
  4. Instructor default: the instructor's own weekly hours
  5. nothing matched   : unavailable

The first source that has an entry for the day decides, including when that
entry says the day is closed.
"""
from datetime import date, timedelta

from app.models.enums import Weekday
from app.scheduling.types import AvailabilityWindow


def _day_value(day) -> str:
    return getattr(day, "value", day)


def _window_from(record, source: str) -> AvailabilityWindow:
    if not record.is_available:
        return AvailabilityWindow(is_available=False, source=source)
    return AvailabilityWindow(
        is_available=True,
        start_time=record.start_time,
        end_time=record.end_time,
        source=source,
    )


class AvailabilityResolver:
    """
    `loader` provides the three reads the resolver needs:
        load_absences(instructor_id) → [Absence]
        load_global_availability(date) → (GlobalAvailability | None, [SpecialAvailability])
        load_instructor_availability(instructor_id) → [WeeklyAvailability]
    """

    def __init__(self, loader):
        self.loader = loader

    def resolve_window(self, instructor_id: int, on_date: date) -> AvailabilityWindow:
        weekday = Weekday.of(on_date).value

        # ── 1. Absence ───────────────────────────────────────────────────
        for absence in self.loader.load_absences(instructor_id):
            if absence.start_date <= on_date <= absence.end_date:
                return AvailabilityWindow(is_available=False, source="absence")

        default, specials = self.loader.load_global_availability(on_date)

        # ── 2. Special date range ────────────────────────────────────────
        in_range = [
            s for s in specials
            if _day_value(s.day) == weekday and s.start_date <= on_date <= s.end_date
        ]
        if in_range:
            in_range.sort(key=lambda s: s.start_date)
            return _window_from(in_range[0], "special")

        # ── 3. Global default ────────────────────────────────────────────
        if default is not None and _day_value(default.day) == weekday:
            return _window_from(default, "global")

        # ── 4. Instructor weekly default ─────────────────────────────────
        for entry in self.loader.load_instructor_availability(instructor_id):
            if _day_value(entry.day) == weekday:
                return _window_from(entry, "instructor")

        return AvailabilityWindow(is_available=False, source="none")

    def weekly_schedule(self, instructor_id: int, week_start: date) -> list:
        """Resolved windows for the 7 days starting at week_start."""
        days = [week_start + timedelta(days=i) for i in range(7)]
        return [(d, self.resolve_window(instructor_id, d)) for d in days]
