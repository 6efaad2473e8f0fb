# File: parkingsystem/main.py
"""
Main application entry point for Parking System
Wires configuration, persistence, messaging and the operator console
"""

from typing import Optional, List, TextIO
from dataclasses import replace
import argparse
import logging
import sys
import os

from .config import ParkingConfig
from .domain.strategies import FareCalculatorService
from .application.parking_service import ParkingService, IEventPublisher
from .infrastructure.repositories import RepositoryFactory, default_spots, reset_database
from .infrastructure.messaging import EventBus, RedisEventPublisher, CompositeEventPublisher
from .presentation.console import InputReader, VehicleInputReader, InteractiveShell


def setup_logging(log_level: str = "INFO", log_dir: str = "logs") -> logging.Logger:
    """Setup application logging configuration"""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(log_dir, 'parking_app.log')),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Parking System operator console')
    parser.add_argument('--database-url', help='SQLAlchemy database URL (env: PARKING_DATABASE_URL)')
    parser.add_argument('--redis-url', help='Redis URL for publishing parking events (env: PARKING_REDIS_URL)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (env: PARKING_LOG_LEVEL)')
    parser.add_argument('--recurring-threshold', type=int,
                        help='Completed stays needed for the recurring discount (env: PARKING_RECURRING_THRESHOLD)')
    parser.add_argument('--reset-db', action='store_true',
                        help='Free all spots and delete all tickets before starting')
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, env=None) -> ParkingConfig:
    """Environment configuration overridden by command line flags"""
    config = ParkingConfig.from_env(env)
    overrides = {
        "database_url": args.database_url,
        "redis_url": args.redis_url,
        "log_level": args.log_level,
        "recurring_threshold": args.recurring_threshold,
    }
    return replace(config, **{key: value for key, value in overrides.items() if value is not None})


class ParkingApplication:
    """Main application controller that sets up all components"""

    def __init__(
        self,
        config: ParkingConfig,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
        reset_db: bool = False
    ):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout
        self.setup_components(reset_db)

    def setup_components(self, reset_db: bool = False) -> None:
        """Initialize all application components with dependency injection"""
        # 1. Repositories (Data Access Layer)
        self.session_factory = RepositoryFactory.create_session_factory(
            self.config.database_url,
            default_spots(self.config.car_spots, self.config.bike_spots)
        )
        if reset_db:
            reset_database(self.session_factory)
            self.logger.info("Database entries cleared")
        self.parking_spot_repository, self.ticket_repository = (
            RepositoryFactory.create_sqlalchemy_repositories(self.session_factory)
        )
        self.logger.info("Repositories initialized")

        # 2. Messaging
        self.event_bus = EventBus()
        self.redis_publisher = None
        if self.config.redis_url:
            self.redis_publisher = RedisEventPublisher(
                self.config.redis_url, channel=self.config.event_channel
            )
            self.logger.info(f"Publishing parking events to Redis channel {self.config.event_channel}")
        self.event_publisher: IEventPublisher = (
            CompositeEventPublisher([self.event_bus, self.redis_publisher])
            if self.redis_publisher else self.event_bus
        )

        # 3. Application Service
        self.parking_service = ParkingService(
            VehicleInputReader(self.input_stream, self.output_stream),
            self.parking_spot_repository,
            self.ticket_repository,
            fare_calculator=FareCalculatorService(),
            event_publisher=self.event_publisher,
            recurring_threshold=self.config.recurring_threshold
        )
        self.logger.info("Parking service initialized")

        # 4. Presentation
        self.shell = InteractiveShell(
            self.parking_service,
            InputReader(self.input_stream, self.output_stream),
            self.output_stream
        )

    def run(self) -> None:
        try:
            self.shell.load_interface()
        finally:
            if self.redis_publisher:
                self.redis_publisher.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    config = build_config(args)
    logger = setup_logging(config.log_level, config.log_dir)
    logger.info("Starting Parking System...")

    app = ParkingApplication(config, reset_db=args.reset_db)
    app.run()

    logger.info("Parking System stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
