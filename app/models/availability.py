from sqlalchemy import (
    Column, Integer, String, Boolean, Date, ForeignKey, UniqueConstraint, Enum as SAEnum
)
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.models.enums import Weekday, enum_values


def _weekday_column():
    return Column(SAEnum(Weekday, name="weekday", values_callable=enum_values), nullable=False)


class WeeklyAvailability(Base):
    """Instructor's own hours for a weekday."""
    __tablename__ = "instructor_availability"

    id = Column(Integer, primary_key=True, index=True)
    instructor_id = Column(
        Integer, ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day = _weekday_column()
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    instructor = relationship("Instructor", back_populates="availability")

    __table_args__ = (
        UniqueConstraint("instructor_id", "day", name="uq_instructor_availability_day"),
    )


class Absence(Base):
    """Date range during which an instructor takes no lessons at all."""
    __tablename__ = "instructor_absences"

    id = Column(Integer, primary_key=True, index=True)
    instructor_id = Column(
        Integer, ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String, nullable=True)

    instructor = relationship("Instructor", back_populates="absences")

class GlobalAvailability(Base):
    """School-wide default hours for a weekday."""
    __tablename__ = "global_availability"

    id = Column(Integer, primary_key=True, index=True)
    day = _weekday_column()
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("day", name="uq_global_availability_day"),
    )


class SpecialAvailability(Base):
    """
    Date-ranged override of the global default for one weekday.
    Ranges for the same weekday never overlap (checked where they are written).
    """
    __tablename__ = "special_availability"

    id = Column(Integer, primary_key=True, index=True)
    day = _weekday_column()
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("day", "start_date", "end_date", name="uq_special_availability_range"),
    )