from datetime import timedelta

import pytest

from app.models.enums import BookingStatus, Weekday

from conftest import (
    MONDAY, NOW, add_absence, add_booking, add_instructor, add_student, set_global
)


@pytest.fixture
def school(db):
    set_global(db)
    instructor = add_instructor(db)
    alice = add_student(db, email="alice@example.com")
    bob = add_student(db, email="bob@example.com")
    return instructor, alice, bob


def payload(student, instructor, **overrides):
    body = {
        "student_id": student.id,
        "instructor_id": instructor.id,
        "location": "Surrey",
        "class_type": "class 7",
        "duration": 60,
        "date": MONDAY.isoformat(),
        "start_time": "10:00",
    }
    body.update(overrides)
    return body


def test_root(client):
    assert client.get("/").status_code == 200


def test_create_booking(client, school):
    instructor, alice, _ = school

    res = client.post("/bookings/", json=payload(alice, instructor))

    assert res.status_code == 201
    data = res.json()
    assert data["status"] == "pending"
    assert data["payment_status"] == "requested"


def test_conflict_is_409(client, school):
    instructor, alice, bob = school
    client.post("/bookings/", json=payload(alice, instructor))

    res = client.post("/bookings/", json=payload(bob, instructor, start_time="10:30"))

    assert res.status_code == 409
    detail = res.json()["detail"]
    assert detail["code"] == "ConflictError"
    assert detail["details"]["scope"] == "instructor"


def test_outside_window_is_409(client, school):
    instructor, alice, _ = school
    res = client.post("/bookings/", json=payload(alice, instructor, start_time="08:00"))
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "AvailabilityError"


def test_duplicate_pending_is_409(client, school):
    instructor, alice, _ = school
    client.post("/bookings/", json=payload(alice, instructor))
    res = client.post("/bookings/", json=payload(alice, instructor, start_time="14:00"))
    assert res.json()["detail"]["code"] == "DuplicatePendingError"


def test_unknown_instructor_is_404(client, school):
    instructor, alice, _ = school
    body = payload(alice, instructor, instructor_id=999)
    assert client.post("/bookings/", json=body).status_code == 404


def test_wrong_location_is_400(client, school):
    instructor, alice, _ = school
    res = client.post("/bookings/", json=payload(alice, instructor, location="Richmond"))
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "ValidationError"


@pytest.mark.parametrize("overrides", [
    {"start_time": "9:00"},
    {"start_time": "25:00"},
    {"duration": 45},
    {"class_type": "class 9"},
    {"location": "   "},
    {"start_time": "23:30"},
    {"price": -5},
])
def test_malformed_requests_are_422(client, school, overrides):
    instructor, alice, _ = school
    res = client.post("/bookings/", json=payload(alice, instructor, **overrides))
    assert res.status_code == 422


def test_get_and_list(client, db, school):
    instructor, alice, bob = school
    created = client.post("/bookings/", json=payload(alice, instructor)).json()
    add_booking(db, bob, instructor, MONDAY, "14:00", "15:00",
                status=BookingStatus.CANCELLED)

    one = client.get(f"/bookings/{created['booking_id']}")
    assert one.status_code == 200
    assert one.json()["end_time"] == "11:00"

    everything = client.get("/bookings/", params={"instructor_id": instructor.id}).json()
    assert [b["start_time"] for b in everything] == ["10:00", "14:00"]

    cancelled = client.get("/bookings/", params={"status": "cancelled"}).json()
    assert [b["student_id"] for b in cancelled] == [bob.id]

    assert client.get("/bookings/4242").status_code == 404


def test_status_and_payment_changes(client, school):
    instructor, alice, _ = school
    booking_id = client.post("/bookings/", json=payload(alice, instructor)).json()["booking_id"]

    res = client.patch(f"/bookings/{booking_id}/status", json={"status": "approved"})
    assert res.status_code == 200
    assert res.json()["status"] == "approved"

    res = client.patch(f"/bookings/{booking_id}/status", json={"status": "pending"})
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "StateError"

    res = client.patch(f"/bookings/{booking_id}/payment-status", json={"payment_status": "invoice-sent"})
    assert res.json()["payment_status"] == "invoice-sent"


def test_reschedule_route(client, school):
    instructor, alice, _ = school
    booking_id = client.post("/bookings/", json=payload(alice, instructor)).json()["booking_id"]

    res = client.put(
        f"/bookings/{booking_id}/reschedule",
        json={"new_date": MONDAY.isoformat(), "new_start_time": "15:00"},
    )

    assert res.status_code == 200
    assert res.json()["id"] == booking_id
    assert res.json()["end_time"] == "16:00"

    res = client.put(
        f"/bookings/{booking_id}/reschedule",
        json={"new_date": MONDAY.isoformat(), "new_start_time": "16:30"},
    )
    assert res.status_code == 409


def test_expire_route(client, db, school):
    instructor, alice, _ = school
    add_booking(db, alice, instructor, MONDAY, "10:00", "11:00",
                status=BookingStatus.PENDING, created_at=NOW - timedelta(hours=25))

    res = client.post("/bookings/expire", json={"now": NOW.isoformat()})
    assert res.json() == {"cancelled_count": 1}

    res = client.post("/bookings/expire", json={"now": NOW.isoformat()})
    assert res.json() == {"cancelled_count": 0}


# ── Availability ──────────────────────────────────────────────────────────────

def test_window_endpoint(client, school):
    instructor, _, _ = school
    res = client.get(f"/availability/instructors/{instructor.id}", params={"date": MONDAY.isoformat()})

    assert res.status_code == 200
    assert res.json() == {
        "instructor_id": instructor.id,
        "date": MONDAY.isoformat(),
        "day": "Monday",
        "is_available": True,
        "start_time": "09:00",
        "end_time": "17:00",
        "source": "global",
    }


def test_window_endpoint_reports_absence(client, db, school):
    instructor, _, _ = school
    add_absence(db, instructor, MONDAY, MONDAY)
    res = client.get(f"/availability/instructors/{instructor.id}", params={"date": MONDAY.isoformat()})
    assert res.json()["is_available"] is False
    assert res.json()["source"] == "absence"


def test_week_endpoint(client, db, school):
    instructor, _, _ = school
    set_global(db, day=Weekday.WEDNESDAY, start="12:00", end="18:00")

    res = client.get(
        f"/availability/instructors/{instructor.id}/week",
        params={"week_start": MONDAY.isoformat()},
    )

    days = res.json()["days"]
    assert len(days) == 7
    assert [d["day"] for d in days if d["is_available"]] == ["Monday", "Wednesday"]


def test_availability_for_unknown_instructor_is_404(client, school):
    res = client.get("/availability/instructors/999", params={"date": MONDAY.isoformat()})
    assert res.status_code == 404


def test_expire_route_honours_utc_offset(client, db, school):
    instructor, alice, bob = school
    stale = add_booking(db, alice, instructor, MONDAY, "10:00", "11:00",
                        status=BookingStatus.PENDING, created_at=NOW - timedelta(hours=25))
    fresh = add_booking(db, bob, instructor, MONDAY, "13:00", "14:00",
                        status=BookingStatus.PENDING, created_at=NOW - timedelta(hours=23))

    # same instant as NOW, written in UTC+2
    res = client.post("/bookings/expire", json={"now": "2026-10-30T14:00:00+02:00"})
    assert res.json() == {"cancelled_count": 1}

    db.refresh(stale)
    db.refresh(fresh)
    assert stale.status == BookingStatus.CANCELLED
    assert stale.updated_at == NOW
    assert fresh.status == BookingStatus.PENDING
