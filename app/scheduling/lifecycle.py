"""
Booking lifecycle.

  status:          pending → approved → completed
                   pending | approved → cancelled      (terminal)
  payment_status:  requested → invoice-sent → approved | rejected
                   approved → completed

The two machines are independent of each other.
"""
from datetime import datetime, timedelta
from typing import Optional

from app.core.exceptions import DuplicatePendingError, NotFoundError, StateError
from app.core.logging_config import get_logger
from app.db.transaction import run_in_transaction
from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus
from app.scheduling.availability import AvailabilityResolver
from app.scheduling.conflicts import ConflictChecker
from app.scheduling.store import BookingStore
from app.scheduling.time_range import as_naive_utc
from app.scheduling.types import BookingCandidate
from app.utils.pricing import PackageValuator

logger = get_logger()


STATUS_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.CANCELLED},
    BookingStatus.APPROVED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.REQUESTED: {PaymentStatus.INVOICE_SENT},
    PaymentStatus.INVOICE_SENT: {PaymentStatus.APPROVED, PaymentStatus.REJECTED},
    PaymentStatus.APPROVED: {PaymentStatus.COMPLETED},
    PaymentStatus.REJECTED: set(),
    PaymentStatus.COMPLETED: set(),
}


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    return BookingStatus(new) in STATUS_TRANSITIONS[BookingStatus(current)]


def can_change_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return PaymentStatus(new) in PAYMENT_TRANSITIONS[PaymentStatus(current)]


class BookingLifecycleManager:

    def __init__(self, buffer=15, expiry_hours: int = 24, max_attempts: int = 3,
                 price_cache_ttl: int = 300):
        self.checker = ConflictChecker(buffer)
        self.expiry_hours = expiry_hours
        self.max_attempts = max_attempts
        self.price_cache_ttl = price_cache_ttl

    @classmethod
    def from_settings(cls, settings):
        return cls(
            buffer=settings.buffer_policy(),
            expiry_hours=settings.pending_expiry_hours,
            max_attempts=settings.booking_max_retries,
            price_cache_ttl=settings.price_cache_ttl,
        )

    def _store(self, db) -> BookingStore:
        return BookingStore(db, price_cache_ttl=self.price_cache_ttl)

    # =====================================================================
    # CREATE
    # =====================================================================
    def create(self, db, candidate: BookingCandidate, now: Optional[datetime] = None) -> Booking:
        now = as_naive_utc(now)

        def work(session):
            store = self._store(session)

            # Lock order is always student → instructor
            student = store.get_student(candidate.student_id, lock=True)
            if not student:
                raise NotFoundError("Student not found", details={"student_id": candidate.student_id})

            instructor = store.get_instructor(candidate.instructor_id, lock=True)
            if not instructor:
                raise NotFoundError("Instructor not found", details={"instructor_id": candidate.instructor_id})

            self.checker.check_profile(candidate, instructor)

            window = AvailabilityResolver(store).resolve_window(instructor.id, candidate.date)
            self.checker.check_candidate(
                candidate,
                window,
                store.load_bookings(instructor_id=instructor.id, on_date=candidate.date),
                store.load_bookings(student_id=student.id, on_date=candidate.date),
            )

            pending = store.pending_booking_for_student(student.id)
            if pending:
                raise DuplicatePendingError(
                    "Student already has a pending booking",
                    details={"pending_booking_id": pending.id},
                )

            prior = store.load_bookings(
                student_id=student.id,
                class_type=candidate.class_type,
                duration=candidate.duration,
            )
            valuator = PackageValuator(store.lookup_price)
            valuation = valuator.evaluate(
                student.id, candidate.class_type, candidate.duration, len(prior), candidate.price
            )

            booking = Booking(
                student_id=student.id,
                instructor_id=instructor.id,
                location=candidate.location,
                class_type=candidate.class_type,
                package=candidate.package,
                duration=int(candidate.duration),
                date=candidate.date,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                status=BookingStatus.PENDING,
                payment_status=PaymentStatus.REQUESTED,
                price=valuation.price,
                notes=valuation.package_note,
                terms_accepted_at=candidate.terms_accepted_at,
                created_at=now,
            )
            store.persist_booking(booking)

            for member in valuator.annotate_prior(prior, valuation):
                store.update_booking(member.id, {"notes": member.notes})

            return booking

        booking = run_in_transaction(db, work, self.max_attempts, label="create_booking")
        db.refresh(booking)

        logger.bind(log_type="booking").info(
            f"Booking Created | Id={booking.id} | Student={booking.student_id} | "
            f"Instructor={booking.instructor_id} | {booking.date} {booking.start_time}-{booking.end_time}"
        )
        return booking

    # =====================================================================
    # STATUS
    # =====================================================================
    def transition(self, db, booking_id: int, new_status: BookingStatus,
                   now: Optional[datetime] = None) -> Booking:
        new_status = BookingStatus(new_status)
        now = as_naive_utc(now)

        def work(session):
            store = self._store(session)
            booking = store.get_booking(booking_id, lock=True)
            if not booking:
                raise NotFoundError("Booking not found", details={"booking_id": booking_id})

            current = BookingStatus(booking.status)
            if current == BookingStatus.CANCELLED and new_status == BookingStatus.CANCELLED:
                return booking, current

            if not can_transition(current, new_status):
                raise StateError(
                    f"Cannot change booking from {current.value} to {new_status.value}",
                    details={"booking_id": booking_id, "from": current.value, "to": new_status.value},
                )

            store.update_booking(booking.id, {"status": new_status, "updated_at": now})
            return booking, current

        booking, previous = run_in_transaction(db, work, self.max_attempts, label="transition_booking")
        db.refresh(booking)

        logger.bind(log_type="booking").info(
            f"Booking Status | Id={booking.id} | {previous.value} -> {BookingStatus(booking.status).value}"
        )
        return booking

    def change_payment_status(self, db, booking_id: int, new_status: PaymentStatus,
                              now: Optional[datetime] = None) -> Booking:
        new_status = PaymentStatus(new_status)
        now = as_naive_utc(now)

        def work(session):
            store = self._store(session)
            booking = store.get_booking(booking_id, lock=True)
            if not booking:
                raise NotFoundError("Booking not found", details={"booking_id": booking_id})

            current = PaymentStatus(booking.payment_status)
            if not can_change_payment(current, new_status):
                raise StateError(
                    f"Cannot change payment from {current.value} to {new_status.value}",
                    details={"booking_id": booking_id, "from": current.value, "to": new_status.value},
                )

            store.update_booking(booking.id, {"payment_status": new_status, "updated_at": now})
            return booking, current

        booking, previous = run_in_transaction(db, work, self.max_attempts, label="payment_status")
        db.refresh(booking)

        logger.bind(log_type="payment").info(
            f"Payment Status | Booking={booking.id} | {previous.value} -> "
            f"{PaymentStatus(booking.payment_status).value}"
        )
        return booking

    # =====================================================================
    # EXPIRY SWEEP
    # =====================================================================
    def sweep_expired(self, db, now: Optional[datetime] = None) -> int:
        """Cancel pending bookings older than the expiry window. Idempotent."""
        now = as_naive_utc(now)
        cutoff = now - timedelta(hours=self.expiry_hours)

        def work(session):
            return self._store(session).batch_cancel(created_before=cutoff, now=now)

        count = run_in_transaction(db, work, self.max_attempts, label="expiry_sweep")

        logger.bind(log_type="sweep").info(
            f"Expiry Sweep | Cutoff={cutoff.isoformat()} | Cancelled={count}"
        )
        return count
