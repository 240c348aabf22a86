"""
Utility functions for HH:MM times and minute intervals.
"""
import re
from datetime import datetime, timezone

from app.core.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def to_minutes(t: str) -> int:
    """'08:30' → 510"""
    match = _HHMM.match(t or "")
    if not match:
        raise ValidationError(f"Invalid time '{t}', expected HH:MM", details={"time": t})
    return int(match.group(1)) * 60 + int(match.group(2))


def from_minutes(total: int) -> str:
    """510 → '08:30'"""
    if total < 0 or total >= MINUTES_PER_DAY:
        raise ValidationError(f"{total} minutes is outside a single day")
    return f"{total // 60:02d}:{total % 60:02d}"


def is_valid_time(t: str) -> bool:
    return bool(_HHMM.match(t or ""))


def add_minutes(t: str, minutes: int) -> str:
    """
    '10:00' + 90 → '11:30'.
    Lessons never run past midnight, so overflow is rejected instead of wrapped.
    """
    total = to_minutes(t) + minutes
    if total >= MINUTES_PER_DAY:
        raise ValidationError(
            f"A {minutes}-minute lesson starting at {t} would run past midnight",
            details={"start_time": t, "duration": minutes},
        )
    return from_minutes(total)


def overlaps(s1: int, e1: int, s2: int, e2: int) -> bool:
    """Half-open [s1, e1) and [s2, e2) share at least one minute."""
    return s1 < e2 and s2 < e1


def widen(start: int, end: int, buffer_minutes: int) -> tuple:
    return start - buffer_minutes, end + buffer_minutes


def contains(outer_start: int, outer_end: int, inner_start: int, inner_end: int) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def utc_now() -> datetime:
    """Naive UTC timestamp, matching how created_at is stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(moment):
    """
    Aware datetimes are converted to UTC and stripped; naive ones are taken
    to be UTC already. None means "now".
    """
    if moment is None:
        return utc_now()
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment
