"""
Package pricing.

Some (class type, duration) pairs are sold as packages. Every Nth booking of
that pair closes a package: it is priced from the package rule and the N-1
bookings before it get a note saying they were part of it. Only the new
booking's price is ever set here; earlier bookings keep theirs.
"""
from dataclasses import dataclass
from typing import Optional

from app.core.logging_config import get_logger
from app.models.enums import BookingStatus, ClassType, LessonDuration, PackageLabel

logger = get_logger()


PACKAGE_SIZES = {
    (ClassType.CLASS_5, LessonDuration.NINETY): 3,
    (ClassType.CLASS_7, LessonDuration.SIXTY): 10,
}

PACKAGE_LABELS = {
    1: PackageLabel.SINGLE,
    3: PackageLabel.THREE,
    10: PackageLabel.TEN,
}

# Used when the price table has no row for the package
FALLBACK_PACKAGE_PRICES = {
    (ClassType.CLASS_5, LessonDuration.NINETY): 262.50,
    (ClassType.CLASS_7, LessonDuration.SIXTY): 892.50,
}


def last_booking_note(size: int) -> str:
    return f"last booking in a {size}-lesson package"


def part_of_package_note(size: int) -> str:
    return f"part of a {size}-lesson package; regular price applied"


@dataclass(frozen=True)
class PackageValuation:
    price: Optional[float]
    package_note: Optional[str]
    package_size: int
    completes_package: bool
    package_label: PackageLabel


def package_size(class_type, duration) -> int:
    return PACKAGE_SIZES.get((ClassType(class_type), LessonDuration(int(duration))), 1)


def completes_package(prior_count: int, size: int) -> bool:
    return size > 1 and (prior_count + 1) % size == 0


def sort_lessons(bookings) -> list:
    """Package order: date, then start time."""
    return sorted(bookings, key=lambda b: (b.date, b.start_time))


class PackageValuator:
    """
    `price_lookup(class_type, duration, package)` returns the price-rule value
    or None when the table has no matching row.
    """

    def __init__(self, price_lookup):
        self.price_lookup = price_lookup

    def package_price(self, class_type, duration, label: PackageLabel) -> float:
        price = self.price_lookup(class_type, duration, label)
        if price is not None:
            return float(price)

        fallback = FALLBACK_PACKAGE_PRICES.get((ClassType(class_type), LessonDuration(int(duration))))
        logger.bind(log_type="payment").warning(
            f"No price rule for {ClassType(class_type).value}/{int(duration)}min/{label.value}, "
            f"using fallback {fallback}"
        )
        return fallback

    def evaluate(self, student_id, class_type, duration, prior_count: int,
                 price: Optional[float] = None) -> PackageValuation:
        size = package_size(class_type, duration)
        label = PACKAGE_LABELS[size]

        if not completes_package(prior_count, size):
            return PackageValuation(
                price=price,
                package_note=None,
                package_size=size,
                completes_package=False,
                package_label=label,
            )

        package_price = self.package_price(class_type, duration, label)

        # A caller-supplied price is kept as is; the package rule only fills
        # in when the request carries no price.
        final_price = price if price is not None else package_price

        logger.bind(log_type="payment").info(
            f"Package completed | Student={student_id} | {ClassType(class_type).value} "
            f"{int(duration)}min | Lesson #{prior_count + 1} | Price={final_price} | PackageRule={package_price}"
        )

        return PackageValuation(
            price=final_price,
            package_note=last_booking_note(size),
            package_size=size,
            completes_package=True,
            package_label=label,
        )

    def annotate_prior(self, prior_bookings, valuation: PackageValuation) -> list:
        """
        Note the size-1 most recent earlier lessons of the completed package.
        Returns the bookings that were annotated; prices are left as they are.
        """
        if not valuation.completes_package:
            return []

        eligible = [
            b for b in prior_bookings
            if BookingStatus(b.status) != BookingStatus.CANCELLED
        ]
        members = sort_lessons(eligible)[-(valuation.package_size - 1):]

        note = part_of_package_note(valuation.package_size)
        for booking in members:
            booking.notes = note
        return members
