"""
SQLAlchemy-backed reads and writes used by the scheduling engine.

One BookingStore wraps one Session; it never commits. The caller decides the
transaction boundary (see app.db.transaction).
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.redis import cache_price, get_cached_price, price_cache_key
from app.models.availability import (
    Absence, GlobalAvailability, SpecialAvailability, WeeklyAvailability
)
from app.models.booking import Booking
from app.models.enums import BookingStatus, ClassType, PackageLabel, Weekday
from app.models.instructor import Instructor
from app.models.price import PriceRule
from app.models.student import Student


class BookingStore:

    def __init__(self, db: Session, price_cache_ttl: int = 300):
        self.db = db
        self.price_cache_ttl = price_cache_ttl

    # ---------------------------------------------------------------------
    # ENTITIES (optionally row-locked)
    # ---------------------------------------------------------------------
    def get_student(self, student_id: int, lock: bool = False) -> Optional[Student]:
        query = self.db.query(Student).filter(Student.id == student_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get_instructor(self, instructor_id: int, lock: bool = False) -> Optional[Instructor]:
        query = self.db.query(Instructor).filter(Instructor.id == instructor_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get_booking(self, booking_id: int, lock: bool = False) -> Optional[Booking]:
        query = self.db.query(Booking).filter(Booking.id == booking_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    # ---------------------------------------------------------------------
    # AVAILABILITY SOURCES
    # ---------------------------------------------------------------------
    def load_instructor_availability(self, instructor_id: int) -> list:
        return self.db.query(WeeklyAvailability).filter(
            WeeklyAvailability.instructor_id == instructor_id
        ).all()

    def load_absences(self, instructor_id: int) -> list:
        return self.db.query(Absence).filter(
            Absence.instructor_id == instructor_id
        ).order_by(Absence.start_date).all()

    def load_global_availability(self, on_date: date):
        """(default row for the weekday or None, special ranges covering the date)"""
        weekday = Weekday.of(on_date)

        default = self.db.query(GlobalAvailability).filter(
            GlobalAvailability.day == weekday
        ).first()

        specials = self.db.query(SpecialAvailability).filter(
            SpecialAvailability.day == weekday,
            SpecialAvailability.start_date <= on_date,
            SpecialAvailability.end_date >= on_date,
        ).order_by(SpecialAvailability.start_date).all()

        return default, specials

    # ---------------------------------------------------------------------
    # BOOKINGS
    # ---------------------------------------------------------------------
    def load_bookings(
        self,
        instructor_id: Optional[int] = None,
        student_id: Optional[int] = None,
        on_date: Optional[date] = None,
        class_type: Optional[ClassType] = None,
        duration: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        include_cancelled: bool = False,
        exclude_id: Optional[int] = None,
    ) -> list:
        query = self.db.query(Booking)

        if instructor_id is not None:
            query = query.filter(Booking.instructor_id == instructor_id)
        if student_id is not None:
            query = query.filter(Booking.student_id == student_id)
        if on_date is not None:
            query = query.filter(Booking.date == on_date)
        if class_type is not None:
            query = query.filter(Booking.class_type == ClassType(class_type))
        if duration is not None:
            query = query.filter(Booking.duration == int(duration))
        if status is not None:
            query = query.filter(Booking.status == BookingStatus(status))
        elif not include_cancelled:
            query = query.filter(Booking.status != BookingStatus.CANCELLED)
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)

        return query.order_by(Booking.date, Booking.start_time, Booking.id).all()

    def pending_booking_for_student(self, student_id: int, exclude_id: Optional[int] = None):
        query = self.db.query(Booking).filter(
            Booking.student_id == student_id,
            Booking.status == BookingStatus.PENDING,
        )
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)
        return query.first()

    def persist_booking(self, booking: Booking) -> int:
        self.db.add(booking)
        self.db.flush()
        return booking.id

    def update_booking(self, booking_id: int, patch: dict) -> Booking:
        booking = self.db.get(Booking, booking_id)
        for field, value in patch.items():
            setattr(booking, field, value)
        self.db.flush()
        return booking

    def batch_cancel(self, created_before: datetime, now: datetime) -> int:
        """Single UPDATE: pending bookings created before the cutoff → cancelled."""
        return self.db.query(Booking).filter(
            Booking.status == BookingStatus.PENDING,
            Booking.created_at < created_before,
        ).update(
            {Booking.status: BookingStatus.CANCELLED, Booking.updated_at: now},
            synchronize_session=False,
        )

    # ---------------------------------------------------------------------
    # PRICES
    # ---------------------------------------------------------------------
    def lookup_price(self, class_type, duration, package) -> Optional[float]:
        class_type = ClassType(class_type)
        package = PackageLabel(package)
        key = price_cache_key(class_type.value, duration, package.value)

        hit, cached = get_cached_price(key)
        if hit:
            return cached

        rule = self.db.query(PriceRule).filter(
            PriceRule.class_type == class_type,
            PriceRule.duration == int(duration),
            PriceRule.package == package,
        ).first()

        price = float(rule.price) if rule else None
        cache_price(key, price, ttl=self.price_cache_ttl)
        return price
