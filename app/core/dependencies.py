from fastapi import Depends

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.scheduling.lifecycle import BookingLifecycleManager
from app.scheduling.reschedule import RescheduleCoordinator


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_lifecycle_manager(settings: Settings = Depends(get_settings)) -> BookingLifecycleManager:
    return BookingLifecycleManager.from_settings(settings)


def get_reschedule_coordinator(settings: Settings = Depends(get_settings)) -> RescheduleCoordinator:
    return RescheduleCoordinator.from_settings(settings)
