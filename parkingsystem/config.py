# File: parkingsystem/config.py
"""
Configuration for Parking System

Settings come from environment variables (PARKING_*) with defaults suited
to a local SQLite install; command line flags override them in main.
"""

from dataclasses import dataclass
from typing import Optional, Mapping
import os


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


@dataclass
class ParkingConfig:
    """Runtime settings"""
    database_url: str = "sqlite:///./parking.db"
    redis_url: Optional[str] = None
    event_channel: str = "parking-events"
    log_level: str = "INFO"
    log_dir: str = "logs"
    car_spots: int = 3
    bike_spots: int = 2
    recurring_threshold: int = 1

    def __post_init__(self):
        if self.car_spots < 0 or self.bike_spots < 0:
            raise ValueError("Spot counts cannot be negative")
        if self.recurring_threshold < 0:
            raise ValueError("Recurring threshold cannot be negative")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ParkingConfig':
        """Build configuration from environment variables"""
        env = os.environ if env is None else env
        return cls(
            database_url=env.get("PARKING_DATABASE_URL", cls.database_url),
            redis_url=env.get("PARKING_REDIS_URL") or None,
            event_channel=env.get("PARKING_EVENT_CHANNEL", cls.event_channel),
            log_level=env.get("PARKING_LOG_LEVEL", cls.log_level).upper(),
            log_dir=env.get("PARKING_LOG_DIR", cls.log_dir),
            car_spots=_get_int(env, "PARKING_CAR_SPOTS", cls.car_spots),
            bike_spots=_get_int(env, "PARKING_BIKE_SPOTS", cls.bike_spots),
            recurring_threshold=_get_int(env, "PARKING_RECURRING_THRESHOLD", cls.recurring_threshold),
        )
