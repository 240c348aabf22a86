"""
Database backstops for concurrent writers, and the retry loop that turns a
lost race back into the regular domain error.
"""
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ConflictError, DuplicatePendingError
from app.db.session import Base
from app.models.booking import Booking
from app.models.enums import BookingStatus
from app.scheduling.store import BookingStore

from conftest import MONDAY, NOW, add_booking, add_instructor, add_student, candidate, set_global


# ── Partial unique indexes ────────────────────────────────────────────────────

def test_second_pending_row_for_a_student_is_rejected(db):
    instructor = add_instructor(db)
    alice = add_student(db)
    add_booking(db, alice, instructor, MONDAY, "10:00", "11:00", status=BookingStatus.PENDING)

    with pytest.raises(IntegrityError):
        add_booking(db, alice, instructor, MONDAY, "14:00", "15:00", status=BookingStatus.PENDING)
    db.rollback()

    # any number of non-pending rows is fine
    add_booking(db, alice, instructor, MONDAY, "16:00", "17:00", status=BookingStatus.APPROVED)
    assert db.query(Booking).count() == 2


def test_second_live_row_in_an_instructor_slot_is_rejected(db):
    instructor = add_instructor(db)
    alice = add_student(db, email="alice@example.com")
    bob = add_student(db, email="bob@example.com")
    add_booking(db, alice, instructor, MONDAY, "10:00", "11:00", status=BookingStatus.APPROVED)

    with pytest.raises(IntegrityError):
        add_booking(db, bob, instructor, MONDAY, "10:00", "11:00", status=BookingStatus.APPROVED)
    db.rollback()


def test_cancelled_row_does_not_hold_the_slot(db):
    instructor = add_instructor(db)
    alice = add_student(db, email="alice@example.com")
    bob = add_student(db, email="bob@example.com")
    add_booking(db, alice, instructor, MONDAY, "10:00", "11:00", status=BookingStatus.CANCELLED)
    add_booking(db, bob, instructor, MONDAY, "10:00", "11:00", status=BookingStatus.APPROVED)

    assert db.query(Booking).count() == 2


# ── Lost race inside create ───────────────────────────────────────────────────

@pytest.fixture
def shared_engine(tmp_path):
    """File database so a second connection can commit mid-transaction."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def race(shared_engine, monkeypatch):
    Session = sessionmaker(bind=shared_engine, autoflush=False, autocommit=False)
    session = Session()

    set_global(session)
    instructor = add_instructor(session)
    alice = add_student(session, email="alice@example.com")
    bob = add_student(session, email="bob@example.com")
    ids = SimpleNamespace(
        instructor=SimpleNamespace(id=instructor.id),
        alice=SimpleNamespace(id=alice.id),
        bob=SimpleNamespace(id=bob.id),
    )

    persisted = []
    original = BookingStore.persist_booking

    def rival_commits_first(rival_booking):
        def persist(self, booking):
            if not persisted:
                rival = Session()
                try:
                    rival_booking(rival)
                finally:
                    rival.close()
            persisted.append(booking)
            return original(self, booking)
        monkeypatch.setattr(BookingStore, "persist_booking", persist)

    yield session, ids, rival_commits_first, persisted
    session.close()


def test_lost_slot_race_is_retried_into_a_conflict(race, manager):
    session, ids, rival_commits_first, persisted = race
    rival_commits_first(lambda rival: add_booking(
        rival, ids.bob, ids.instructor, MONDAY, "10:00", "11:00", status=BookingStatus.APPROVED
    ))

    with pytest.raises(ConflictError) as err:
        manager.create(session, candidate(ids.alice, ids.instructor, start="10:00"), now=NOW)

    # second attempt saw the rival's booking and stopped before writing
    assert err.value.scope == "instructor"
    assert len(persisted) == 1
    assert session.query(Booking).filter(Booking.student_id == ids.alice.id).count() == 0


def test_lost_pending_race_is_retried_into_duplicate_pending(race, manager):
    session, ids, rival_commits_first, persisted = race
    rival_commits_first(lambda rival: add_booking(
        rival, ids.alice, ids.instructor, MONDAY, "15:00", "16:00", status=BookingStatus.PENDING
    ))

    with pytest.raises(DuplicatePendingError):
        manager.create(session, candidate(ids.alice, ids.instructor, start="10:00"), now=NOW)

    assert len(persisted) == 1
    starts = [b.start_time for b in session.query(Booking).filter(Booking.student_id == ids.alice.id)]
    assert starts == ["15:00"]
