import os
import sys

from loguru import logger

from app.core.config import settings

LOG_DIR = settings.log_dir

# Create folder if missing
if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR)

# Remove default handler
logger.remove()

# Console
logger.add(
    sys.stderr,
    level=settings.log_level,
    format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
)

# General application log
logger.add(
    f"{LOG_DIR}/app.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    format="{time} | {level} | {message}"
)

# Booking logs (create / transition / reschedule)
logger.add(
    f"{LOG_DIR}/bookings.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("log_type") == "booking",
    format="{time} | {level} | {message}"
)

# Payment status + package pricing logs
logger.add(
    f"{LOG_DIR}/payments.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("log_type") == "payment",
    format="{time} | {level} | {message}"
)

# Expiry sweep runs
logger.add(
    f"{LOG_DIR}/sweeps.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("log_type") == "sweep",
    format="{time} | {level} | {message}"
)

# Error logs
logger.add(
    f"{LOG_DIR}/errors.log",
    rotation="1 week",
    retention="8 weeks",
    level="ERROR",
    enqueue=True,
)


def get_logger():
    return logger
