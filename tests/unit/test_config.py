"""
Configuration Unit Tests
"""

import unittest

from parkingsystem.config import ParkingConfig
from parkingsystem.main import parse_args, build_config


class TestParkingConfig(unittest.TestCase):
    """Unit tests for ParkingConfig"""

    def test_defaults(self):
        config = ParkingConfig.from_env({})

        self.assertEqual(config.database_url, "sqlite:///./parking.db")
        self.assertIsNone(config.redis_url)
        self.assertEqual(config.event_channel, "parking-events")
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.car_spots, 3)
        self.assertEqual(config.bike_spots, 2)
        self.assertEqual(config.recurring_threshold, 1)

    def test_from_env(self):
        config = ParkingConfig.from_env({
            "PARKING_DATABASE_URL": "postgresql://parking@db/parking",
            "PARKING_REDIS_URL": "redis://cache:6379",
            "PARKING_EVENT_CHANNEL": "lot-7",
            "PARKING_LOG_LEVEL": "debug",
            "PARKING_LOG_DIR": "/var/log/parking",
            "PARKING_CAR_SPOTS": "10",
            "PARKING_BIKE_SPOTS": "4",
            "PARKING_RECURRING_THRESHOLD": "3",
        })

        self.assertEqual(config.database_url, "postgresql://parking@db/parking")
        self.assertEqual(config.redis_url, "redis://cache:6379")
        self.assertEqual(config.event_channel, "lot-7")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.log_dir, "/var/log/parking")
        self.assertEqual(config.car_spots, 10)
        self.assertEqual(config.bike_spots, 4)
        self.assertEqual(config.recurring_threshold, 3)

    def test_empty_values_use_defaults(self):
        config = ParkingConfig.from_env({"PARKING_REDIS_URL": "", "PARKING_CAR_SPOTS": " "})

        self.assertIsNone(config.redis_url)
        self.assertEqual(config.car_spots, 3)

    def test_invalid_integer(self):
        with self.assertRaises(ValueError) as context:
            ParkingConfig.from_env({"PARKING_BIKE_SPOTS": "two"})
        self.assertIn("PARKING_BIKE_SPOTS", str(context.exception))

    def test_negative_values_rejected(self):
        for kwargs in ({"car_spots": -1}, {"bike_spots": -2}, {"recurring_threshold": -1}):
            with self.assertRaises(ValueError, msg=f"Failed for {kwargs}"):
                ParkingConfig(**kwargs)


class TestCommandLine(unittest.TestCase):
    """Command line flags override the environment"""

    def test_flags_override_environment(self):
        args = parse_args([
            "--database-url", "sqlite://",
            "--log-level", "WARNING",
            "--recurring-threshold", "2",
            "--reset-db",
        ])

        config = build_config(args, env={
            "PARKING_DATABASE_URL": "sqlite:///other.db",
            "PARKING_RECURRING_THRESHOLD": "5",
            "PARKING_CAR_SPOTS": "8",
        })

        self.assertTrue(args.reset_db)
        self.assertEqual(config.database_url, "sqlite://")
        self.assertEqual(config.log_level, "WARNING")
        self.assertEqual(config.recurring_threshold, 2)
        self.assertEqual(config.car_spots, 8)

    def test_no_flags_keeps_environment(self):
        config = build_config(parse_args([]), env={"PARKING_REDIS_URL": "redis://cache:6379"})

        self.assertEqual(config.redis_url, "redis://cache:6379")
        self.assertEqual(config.database_url, "sqlite:///./parking.db")

    def test_invalid_log_level_flag(self):
        with self.assertRaises(SystemExit):
            parse_args(["--log-level", "LOUD"])


if __name__ == "__main__":
    unittest.main()
