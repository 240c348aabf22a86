from sqlalchemy import Column, Integer, String, JSON
from sqlalchemy.orm import relationship

from app.db.session import Base


class Instructor(Base):
    __tablename__ = "instructors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    locations = Column(JSON, nullable=False, default=list)     # ["Surrey", "Burnaby"]
    class_types = Column(JSON, nullable=False, default=list)   # ["class 5", "class 7"]

    availability = relationship(
        "WeeklyAvailability",
        back_populates="instructor",
        cascade="all, delete"
    )
    absences = relationship(
        "Absence",
        back_populates="instructor",
        cascade="all, delete"
    )
    bookings = relationship("Booking", back_populates="instructor")

    def teaches(self, class_type) -> bool:
        value = getattr(class_type, "value", class_type)
        return value in (self.class_types or [])

    def works_at(self, location: str) -> bool:
        return location in (self.locations or [])
