"""
Atomic check-then-commit.

`run_in_transaction` runs a unit of work (read bookings, validate, write) on
one session and commits it as a whole. Collisions detected by the database
(unique-index violations, serialization failures, deadlocks) roll the unit
back and run it again, so every check is re-evaluated against the data the
winning writer committed.
"""
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import BookingEngineError, ConflictError
from app.core.logging_config import get_logger

logger = get_logger()

UNIQUE_VIOLATION = "23505"
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"


def _pgcode(exc):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_retryable(exc) -> bool:
    """
    Only unique-index collisions, serialization failures and deadlocks are
    worth another attempt. FK and NOT NULL violations are bugs, not races.
    """
    if isinstance(exc, IntegrityError):
        pgcode = _pgcode(exc)
        if pgcode is not None:
            return pgcode == UNIQUE_VIOLATION
        message = str(exc.orig).lower()
        return "unique constraint" in message or "duplicate key" in message
    if isinstance(exc, OperationalError):
        pgcode = _pgcode(exc)
        if pgcode in (SERIALIZATION_FAILURE, DEADLOCK_DETECTED):
            return True
        message = str(exc).lower()
        return "deadlock detected" in message or "could not serialize" in message \
            or "database is locked" in message
    return False


def run_in_transaction(db, work, max_attempts: int = 3, label: str = "booking"):
    """
    Call work(db) and commit. Domain errors roll back and propagate untouched,
    so a failed validation never leaves a partial write behind.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            result = work(db)
            db.commit()
            return result

        except BookingEngineError:
            db.rollback()
            raise

        except (IntegrityError, OperationalError) as exc:
            db.rollback()
            if not is_retryable(exc):
                raise

            logger.warning(f"{label}: write collided (attempt {attempt}/{attempts}) -> {exc.__class__.__name__}")
            if attempt == attempts:
                raise ConflictError(
                    "Time slot was taken by a concurrent booking, please try again",
                    scope="concurrent",
                ) from exc

        except Exception:
            db.rollback()
            raise
