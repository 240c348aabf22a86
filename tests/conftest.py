"""
Shared fixtures: an in-memory SQLite database per test, seed helpers and a
TestClient wired to the same session.
"""
import os
import tempfile

# Settings are read at import time, so configure the environment first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="booking-logs-")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_db
from app.db.session import Base
from app.main import app
from app.models.availability import (
    Absence, GlobalAvailability, SpecialAvailability, WeeklyAvailability
)
from app.models.booking import Booking
from app.models.enums import (
    BookingStatus, ClassType, LessonDuration, PackageLabel, PaymentStatus, Weekday
)
from app.models.instructor import Instructor
from app.models.price import PriceRule
from app.models.student import Student
from app.scheduling.lifecycle import BookingLifecycleManager
from app.scheduling.reschedule import RescheduleCoordinator
from app.scheduling.types import BookingCandidate

MONDAY = date(2026, 11, 2)
TUESDAY = date(2026, 11, 3)
NOW = datetime(2026, 10, 30, 12, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def manager():
    return BookingLifecycleManager(buffer=15, expiry_hours=24, max_attempts=3)


@pytest.fixture
def coordinator():
    return RescheduleCoordinator(buffer=15, max_attempts=3)


# ── Seed helpers ──────────────────────────────────────────────────────────────

def add_student(db, email="sam@example.com", first_name="Sam", last_name="Lee"):
    student = Student(first_name=first_name, last_name=last_name, email=email)
    db.add(student)
    db.commit()
    return student


def add_instructor(db, email="ina@example.com", locations=("Surrey", "Burnaby"),
                   class_types=("class 5", "class 7")):
    instructor = Instructor(
        name="Ina Instructor",
        email=email,
        locations=list(locations),
        class_types=list(class_types),
    )
    db.add(instructor)
    db.commit()
    return instructor


def set_global(db, day=Weekday.MONDAY, start="09:00", end="17:00", is_available=True):
    row = GlobalAvailability(day=day, start_time=start, end_time=end, is_available=is_available)
    db.add(row)
    db.commit()
    return row


def add_special(db, start_date, end_date, day=Weekday.MONDAY, start="12:00", end="16:00",
                is_available=True):
    row = SpecialAvailability(
        day=day, start_time=start, end_time=end, is_available=is_available,
        start_date=start_date, end_date=end_date,
    )
    db.add(row)
    db.commit()
    return row


def add_weekly(db, instructor, day=Weekday.MONDAY, start="07:00", end="19:00", is_available=True):
    row = WeeklyAvailability(
        instructor_id=instructor.id, day=day, start_time=start, end_time=end,
        is_available=is_available,
    )
    db.add(row)
    db.commit()
    return row


def add_absence(db, instructor, start_date, end_date, reason="vacation"):
    row = Absence(instructor_id=instructor.id, start_date=start_date, end_date=end_date, reason=reason)
    db.add(row)
    db.commit()
    return row


def add_price(db, class_type, duration, package, price):
    row = PriceRule(class_type=class_type, duration=int(duration), package=package, price=price)
    db.add(row)
    db.commit()
    return row


def add_booking(db, student, instructor, on_date, start, end, status=BookingStatus.APPROVED,
                class_type=ClassType.CLASS_7, duration=LessonDuration.SIXTY,
                location="Surrey", price=None, created_at=NOW):
    booking = Booking(
        student_id=student.id,
        instructor_id=instructor.id,
        location=location,
        class_type=class_type,
        package=PackageLabel.SINGLE,
        duration=int(duration),
        date=on_date,
        start_time=start,
        end_time=end,
        status=status,
        payment_status=PaymentStatus.REQUESTED,
        price=price,
        created_at=created_at,
    )
    db.add(booking)
    db.commit()
    return booking


def candidate(student, instructor, on_date=MONDAY, start="10:00",
              duration=LessonDuration.SIXTY, class_type=ClassType.CLASS_7,
              location="Surrey", price=None):
    return BookingCandidate(
        student_id=student.id,
        instructor_id=instructor.id,
        location=location,
        class_type=class_type,
        duration=duration,
        date=on_date,
        start_time=start,
        price=price,
    )
