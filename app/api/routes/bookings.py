from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_lifecycle_manager, get_reschedule_coordinator
from app.core.exceptions import NotFoundError
from app.models.enums import BookingStatus
from app.scheduling.lifecycle import BookingLifecycleManager
from app.scheduling.reschedule import RescheduleCoordinator
from app.scheduling.store import BookingStore
from app.schemas.booking import (
    BookingCreate, BookingCreated, BookingOut, PaymentStatusChange,
    RescheduleRequest, StatusChange, SweepRequest, SweepResult,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------
# CREATE BOOKING
# ---------------------------------------------------------------------
@router.post("/", response_model=BookingCreated, status_code=201)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    manager: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    booking = manager.create(db, data.to_candidate())

    return BookingCreated(
        booking_id=booking.id,
        status=booking.status,
        payment_status=booking.payment_status,
        price=booking.price,
        notes=booking.notes,
    )


# ---------------------------------------------------------------------
# LIST / GET
# ---------------------------------------------------------------------
@router.get("/", response_model=list[BookingOut])
def list_bookings(
    student_id: Optional[int] = None,
    instructor_id: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
):
    return BookingStore(db).load_bookings(
        student_id=student_id,
        instructor_id=instructor_id,
        status=status,
        include_cancelled=True,
    )


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    booking = BookingStore(db).get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found", details={"booking_id": booking_id})
    return booking


# ---------------------------------------------------------------------
# STATUS CHANGES
# ---------------------------------------------------------------------
@router.patch("/{booking_id}/status", response_model=BookingOut)
def change_booking_status(
    booking_id: int,
    data: StatusChange,
    db: Session = Depends(get_db),
    manager: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    return manager.transition(db, booking_id, data.status)


@router.patch("/{booking_id}/payment-status", response_model=BookingOut)
def change_payment_status(
    booking_id: int,
    data: PaymentStatusChange,
    db: Session = Depends(get_db),
    manager: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    return manager.change_payment_status(db, booking_id, data.payment_status)


# ---------------------------------------------------------------------
# RESCHEDULE
# ---------------------------------------------------------------------
@router.put("/{booking_id}/reschedule", response_model=BookingOut)
def reschedule_booking(
    booking_id: int,
    data: RescheduleRequest,
    db: Session = Depends(get_db),
    coordinator: RescheduleCoordinator = Depends(get_reschedule_coordinator),
):
    return coordinator.reschedule(
        db, booking_id, data.new_instructor_id, data.new_date, data.new_start_time
    )


# =====================================================================
# EXPIRY SWEEP (called by an external scheduler)
# =====================================================================
@router.post("/expire", response_model=SweepResult)
def run_expiry_sweep(
    data: Optional[SweepRequest] = None,
    db: Session = Depends(get_db),
    manager: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    now = data.now if data else None
    return SweepResult(cancelled_count=manager.sweep_expired(db, now))
