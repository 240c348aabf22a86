from enum import Enum, IntEnum


class ClassType(str, Enum):
    CLASS_4 = "class 4"
    CLASS_5 = "class 5"
    CLASS_7 = "class 7"


class LessonDuration(IntEnum):
    SIXTY = 60
    NINETY = 90
    HUNDRED_TWENTY = 120


class PackageLabel(str, Enum):
    SINGLE = "1 lesson"
    THREE = "3 lessons"
    TEN = "10 lessons"


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    REQUESTED = "requested"
    INVOICE_SENT = "invoice-sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def of(cls, d):
        """date → Weekday (Monday is weekday() == 0)"""
        return list(cls)[d.weekday()]


def enum_values(enum_cls):
    """Persist enum *values* ("pending"), not member names ("PENDING")."""
    return [member.value for member in enum_cls]
