import json
import os

from dotenv import load_dotenv

load_dotenv()


# Travel time between teaching locations, in minutes.
# Keys are unordered pairs; lookups try both directions.
DEFAULT_TRAVEL_MINUTES = {
    ("Burnaby", "Surrey"): 30,
    ("North Vancouver", "Burnaby"): 45,
    ("North Vancouver", "Surrey"): 45,
}


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def _travel_matrix_env(name: str):
    """
    LOCATION_TRAVEL_MINUTES='{"Burnaby|Surrey": 30, "Langley|Surrey": 25}'
    """
    raw = os.getenv(name)
    if not raw:
        return dict(DEFAULT_TRAVEL_MINUTES)

    matrix = {}
    for pair, minutes in json.loads(raw).items():
        a, b = pair.split("|")
        matrix[(a.strip(), b.strip())] = int(minutes)
    return matrix


class Settings:
    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")
        self.redis_url = os.getenv("REDIS_URL")

        # -------- SCHEDULING --------
        self.booking_buffer_minutes = _int_env("BOOKING_BUFFER_MINUTES", 15)
        self.same_location_buffer_minutes = _int_env("SAME_LOCATION_BUFFER_MINUTES", 15)
        self.default_travel_buffer_minutes = _int_env("DEFAULT_TRAVEL_BUFFER_MINUTES", 30)
        self.use_location_buffers = os.getenv("USE_LOCATION_BUFFERS", "true").lower() == "true"
        self.travel_minutes = _travel_matrix_env("LOCATION_TRAVEL_MINUTES")

        # -------- LIFECYCLE --------
        self.pending_expiry_hours = _int_env("PENDING_EXPIRY_HOURS", 24)
        self.booking_max_retries = _int_env("BOOKING_MAX_RETRIES", 3)

        # -------- CACHE / LOGS --------
        self.price_cache_ttl = _int_env("PRICE_CACHE_TTL", 300)
        self.log_dir = os.getenv("LOG_DIR", "logs")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def buffer_policy(self):
        """Buffer handed to the conflict checker: a location policy or a flat margin."""
        from app.scheduling.conflicts import BufferPolicy

        if not self.use_location_buffers:
            return self.booking_buffer_minutes

        return BufferPolicy(
            same_location=self.same_location_buffer_minutes,
            default=self.default_travel_buffer_minutes,
            travel_minutes=self.travel_minutes,
        )


settings = Settings()


def get_settings() -> Settings:
    return settings
