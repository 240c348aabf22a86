from sqlalchemy import Column, Integer, String, Date, DateTime, Float, ForeignKey, Index, Text, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base
from app.models.enums import (
    BookingStatus, ClassType, PackageLabel, PaymentStatus, enum_values
)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("instructors.id"), nullable=False, index=True)

    location = Column(String, nullable=False)
    class_type = Column(
        SAEnum(ClassType, name="classtype", values_callable=enum_values), nullable=False
    )
    package = Column(
        SAEnum(PackageLabel, name="packagelabel", values_callable=enum_values),
        nullable=False,
        default=PackageLabel.SINGLE,
    )
    duration = Column(Integer, nullable=False)          # minutes: 60 | 90 | 120

    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)      # "10:00"
    end_time = Column(String(5), nullable=False)        # start_time + duration, no buffer

    status = Column(
        SAEnum(BookingStatus, name="bookingstatus", values_callable=enum_values),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    payment_status = Column(
        SAEnum(PaymentStatus, name="paymentstatus", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.REQUESTED,
    )

    price = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    terms_accepted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)      # set explicitly by the engine

    student = relationship("Student", back_populates="bookings")
    instructor = relationship("Instructor", back_populates="bookings")

    __table_args__ = (
        # Backstops for concurrent writers; the engine checks overlaps itself.
        Index(
            "uq_bookings_instructor_slot",
            "instructor_id", "date", "start_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
        Index(
            "uq_bookings_student_pending",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_bookings_status_created", "status", "created_at"),
    )
