from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import (
    BookingStatus, ClassType, LessonDuration, PackageLabel, PaymentStatus
)
from app.scheduling.time_range import MINUTES_PER_DAY, as_naive_utc, is_valid_time, to_minutes
from app.scheduling.types import BookingCandidate


def _check_hhmm(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError("time must be HH:MM (00:00-23:59)")
    return value


class BookingCreate(BaseModel):
    student_id: int = Field(gt=0)
    instructor_id: int = Field(gt=0)
    location: str = Field(min_length=1)
    class_type: ClassType
    package: PackageLabel = PackageLabel.SINGLE
    duration: LessonDuration
    date: date
    start_time: str
    price: Optional[float] = Field(default=None, ge=0)
    terms_accepted_at: Optional[datetime] = None

    @field_validator("start_time")
    @classmethod
    def start_is_hhmm(cls, value: str) -> str:
        return _check_hhmm(value)

    @field_validator("location")
    @classmethod
    def strip_location(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("location is required")
        return value

    @model_validator(mode="after")
    def same_day(self):
        if to_minutes(self.start_time) + int(self.duration) >= MINUTES_PER_DAY:
            raise ValueError("lesson must end before midnight")
        return self

    def to_candidate(self) -> BookingCandidate:
        return BookingCandidate(
            student_id=self.student_id,
            instructor_id=self.instructor_id,
            location=self.location,
            class_type=self.class_type,
            duration=self.duration,
            date=self.date,
            start_time=self.start_time,
            package=self.package,
            price=self.price,
            terms_accepted_at=as_naive_utc(self.terms_accepted_at) if self.terms_accepted_at else None,
        )


class BookingCreated(BaseModel):
    booking_id: int
    status: BookingStatus
    payment_status: PaymentStatus
    price: Optional[float] = None
    notes: Optional[str] = None


class BookingOut(BaseModel):
    id: int
    student_id: int
    instructor_id: int
    location: str
    class_type: ClassType
    package: PackageLabel
    duration: int
    date: date
    start_time: str
    end_time: str
    status: BookingStatus
    payment_status: PaymentStatus
    price: Optional[float] = None
    notes: Optional[str] = None
    terms_accepted_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusChange(BaseModel):
    status: BookingStatus


class PaymentStatusChange(BaseModel):
    payment_status: PaymentStatus


class RescheduleRequest(BaseModel):
    new_instructor_id: Optional[int] = Field(default=None, gt=0)
    new_date: date
    new_start_time: str

    @field_validator("new_start_time")
    @classmethod
    def start_is_hhmm(cls, value: str) -> str:
        return _check_hhmm(value)


class SweepRequest(BaseModel):
    now: Optional[datetime] = None


class SweepResult(BaseModel):
    cancelled_count: int
