# File: parkingsystem/infrastructure/repositories.py
"""
Repository Pattern Implementation for Parking System

Repositories give the parking service a narrow, collection-like view of the
facility's spots and tickets while hiding how they are stored.

Repository Types:
1. ParkingSpotRepository - next free spot lookup, availability updates
2. TicketRepository - ticket storage and per-vehicle history

Storage Implementations:
- InMemory*Repository - For testing and development
- SQLAlchemy*Repository - For relational databases (one session per call)

Mutating calls report failure by returning False; queries that cannot be
answered raise RepositoryError.
"""

from abc import ABC, abstractmethod
from typing import (
    TypeVar, Generic, Optional, List, Dict, Iterable, Iterator, Tuple, Callable
)
from dataclasses import replace
from contextlib import contextmanager
import logging

from sqlalchemy import (
    create_engine, Column, Integer, String, Boolean, Float, DateTime,
    ForeignKey, func
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session, relationship
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import ParkingSpot, ParkingType, Ticket, RepositoryError

T = TypeVar('T')  # Entity type


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class ParkingSpotRepository(ABC):
    """Spot repository interface"""

    @abstractmethod
    def get_next_available_slot(self, parking_type: ParkingType) -> int:
        """Lowest available spot number of the type, 0 if none"""
        pass

    @abstractmethod
    def update_parking(self, parking_spot: ParkingSpot) -> bool:
        """Store the spot's availability"""
        pass


class TicketRepository(ABC):
    """Ticket repository interface"""

    @abstractmethod
    def get_ticket(self, vehicle_reg_number: str) -> Optional[Ticket]:
        """Most recent ticket for a vehicle"""
        pass

    @abstractmethod
    def save_ticket(self, ticket: Ticket) -> bool:
        """Store a new ticket and assign its id"""
        pass

    @abstractmethod
    def update_ticket(self, ticket: Ticket) -> bool:
        """Store the ticket's times and price"""
        pass

    @abstractmethod
    def get_nb_ticket(self, vehicle_reg_number: str) -> int:
        """Number of completed tickets for a vehicle"""
        pass


# ============================================================================
# SQLALCHEMY ORM MODELS
# ============================================================================

Base = declarative_base()


class ParkingSpotModel(Base):
    """SQLAlchemy model for ParkingSpot"""
    __tablename__ = 'parking'

    parking_number = Column(Integer, primary_key=True, autoincrement=False)
    type = Column(String(10), nullable=False, index=True)
    available = Column(Boolean, nullable=False, default=True)

    tickets = relationship('TicketModel', back_populates='parking_spot')


class TicketModel(Base):
    """SQLAlchemy model for Ticket"""
    __tablename__ = 'ticket'

    id = Column(Integer, primary_key=True, autoincrement=True)
    parking_number = Column(Integer, ForeignKey('parking.parking_number'), nullable=False)
    vehicle_reg_number = Column(String(10), nullable=False, index=True)
    price = Column(Float, nullable=False, default=0.0)
    in_time = Column(DateTime, nullable=False)
    out_time = Column(DateTime, nullable=True)

    parking_spot = relationship('ParkingSpotModel', back_populates='tickets')


# ============================================================================
# DOMAIN <-> ORM MAPPING
# ============================================================================

class Mapper:
    """Maps between domain models and ORM models"""

    @staticmethod
    def parking_spot_to_orm(spot: ParkingSpot) -> ParkingSpotModel:
        return ParkingSpotModel(
            parking_number=spot.id,
            type=spot.parking_type.value,
            available=spot.is_available
        )

    @staticmethod
    def parking_spot_to_domain(model: ParkingSpotModel) -> ParkingSpot:
        return ParkingSpot(
            id=model.parking_number,
            parking_type=ParkingType(model.type),
            is_available=model.available
        )

    @staticmethod
    def ticket_to_orm(ticket: Ticket) -> TicketModel:
        return TicketModel(
            parking_number=ticket.parking_spot.id,
            vehicle_reg_number=ticket.vehicle_reg_number,
            price=ticket.price,
            in_time=ticket.in_time,
            out_time=ticket.out_time
        )

    @staticmethod
    def ticket_to_domain(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            vehicle_reg_number=model.vehicle_reg_number,
            parking_spot=Mapper.parking_spot_to_domain(model.parking_spot),
            in_time=model.in_time,
            out_time=model.out_time,
            price=model.price
        )


# ============================================================================
# IN-MEMORY REPOSITORIES (For Testing)
# ============================================================================

class InMemoryRepository(Generic[T]):
    """In-memory storage keyed by integer id; entities are stored as copies"""

    def __init__(self):
        self._storage: Dict[int, T] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_all(self) -> List[T]:
        return [replace(entity) for entity in self._storage.values()]

    def count(self) -> int:
        return len(self._storage)

    def clear(self):
        """Clear all data (for testing)"""
        self._storage.clear()


class InMemoryParkingSpotRepository(InMemoryRepository[ParkingSpot], ParkingSpotRepository):
    """In-memory repository for parking spots"""

    def __init__(self, spots: Iterable[ParkingSpot] = ()):
        super().__init__()
        for spot in spots:
            self.add_spot(spot)

    def add_spot(self, spot: ParkingSpot) -> None:
        self._storage[spot.id] = replace(spot)
        self._logger.debug(f"Added parking spot {spot.id}")

    def get_spot(self, parking_number: int) -> Optional[ParkingSpot]:
        spot = self._storage.get(parking_number)
        return replace(spot) if spot else None

    def get_next_available_slot(self, parking_type: ParkingType) -> int:
        free = [
            spot.id for spot in self._storage.values()
            if spot.parking_type is parking_type and spot.is_available
        ]
        return min(free) if free else 0

    def update_parking(self, parking_spot: ParkingSpot) -> bool:
        if parking_spot.id not in self._storage:
            self._logger.error(f"Parking spot {parking_spot.id} not found")
            return False
        self._storage[parking_spot.id] = replace(parking_spot)
        self._logger.debug(
            f"Parking spot {parking_spot.id} available={parking_spot.is_available}"
        )
        return True


class InMemoryTicketRepository(InMemoryRepository[Ticket], TicketRepository):
    """In-memory repository for tickets"""

    def __init__(self):
        super().__init__()
        self._next_id = 1

    def get_ticket(self, vehicle_reg_number: str) -> Optional[Ticket]:
        tickets = [
            ticket for ticket in self._storage.values()
            if ticket.vehicle_reg_number == vehicle_reg_number
        ]
        if not tickets:
            return None
        latest = max(tickets, key=lambda ticket: (ticket.in_time, ticket.id))
        return self._copy(latest)

    def save_ticket(self, ticket: Ticket) -> bool:
        ticket.id = self._next_id
        self._next_id += 1
        self._storage[ticket.id] = self._copy(ticket)
        self._logger.debug(f"Saved ticket {ticket.id} for {ticket.vehicle_reg_number}")
        return True

    def update_ticket(self, ticket: Ticket) -> bool:
        if ticket.id is None or ticket.id not in self._storage:
            self._logger.error(f"Ticket {ticket.id} not found")
            return False
        self._storage[ticket.id] = self._copy(ticket)
        return True

    def get_nb_ticket(self, vehicle_reg_number: str) -> int:
        return sum(
            1 for ticket in self._storage.values()
            if ticket.vehicle_reg_number == vehicle_reg_number and not ticket.is_open
        )

    @staticmethod
    def _copy(ticket: Ticket) -> Ticket:
        spot = replace(ticket.parking_spot) if ticket.parking_spot else None
        return replace(ticket, parking_spot=spot)


# ============================================================================
# SQLALCHEMY REPOSITORIES
# ============================================================================

class SQLAlchemyRepository(ABC):
    """Base SQLAlchemy repository, one session per operation"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session committed on success, rolled back on error"""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class SQLAlchemyParkingSpotRepository(SQLAlchemyRepository, ParkingSpotRepository):
    """Parking spot repository over the 'parking' table"""

    def get_next_available_slot(self, parking_type: ParkingType) -> int:
        try:
            with self.session_scope() as session:
                parking_number = session.query(
                    func.min(ParkingSpotModel.parking_number)
                ).filter(
                    ParkingSpotModel.type == parking_type.value,
                    ParkingSpotModel.available == True  # noqa: E712
                ).scalar()
                return parking_number or 0
        except SQLAlchemyError as e:
            self._logger.error(f"Error fetching next available slot: {e}")
            raise RepositoryError(f"Unable to fetch next available {parking_type} slot") from e

    def update_parking(self, parking_spot: ParkingSpot) -> bool:
        try:
            with self.session_scope() as session:
                result = session.query(ParkingSpotModel).filter(
                    ParkingSpotModel.parking_number == parking_spot.id
                ).update({'available': parking_spot.is_available})
            if result == 0:
                self._logger.error(f"Parking spot {parking_spot.id} not found")
            return result > 0
        except SQLAlchemyError as e:
            self._logger.error(f"Error updating parking spot {parking_spot.id}: {e}")
            return False

    def get_spot(self, parking_number: int) -> Optional[ParkingSpot]:
        try:
            with self.session_scope() as session:
                model = session.get(ParkingSpotModel, parking_number)
                return Mapper.parking_spot_to_domain(model) if model else None
        except SQLAlchemyError as e:
            self._logger.error(f"Error getting parking spot {parking_number}: {e}")
            raise RepositoryError(f"Unable to fetch parking spot {parking_number}") from e


class SQLAlchemyTicketRepository(SQLAlchemyRepository, TicketRepository):
    """Ticket repository over the 'ticket' table"""

    def get_ticket(self, vehicle_reg_number: str) -> Optional[Ticket]:
        try:
            with self.session_scope() as session:
                model = session.query(TicketModel).filter(
                    TicketModel.vehicle_reg_number == vehicle_reg_number
                ).order_by(
                    TicketModel.in_time.desc(), TicketModel.id.desc()
                ).first()
                return Mapper.ticket_to_domain(model) if model else None
        except SQLAlchemyError as e:
            self._logger.error(f"Error getting ticket for {vehicle_reg_number}: {e}")
            raise RepositoryError(f"Unable to fetch ticket for {vehicle_reg_number}") from e

    def save_ticket(self, ticket: Ticket) -> bool:
        try:
            with self.session_scope() as session:
                model = Mapper.ticket_to_orm(ticket)
                session.add(model)
                session.flush()
                ticket.id = model.id
            self._logger.debug(f"Saved ticket {ticket.id} for {ticket.vehicle_reg_number}")
            return True
        except SQLAlchemyError as e:
            self._logger.error(f"Error saving ticket for {ticket.vehicle_reg_number}: {e}")
            return False

    def update_ticket(self, ticket: Ticket) -> bool:
        if ticket.id is None:
            self._logger.error(f"Cannot update unsaved ticket for {ticket.vehicle_reg_number}")
            return False
        try:
            with self.session_scope() as session:
                result = session.query(TicketModel).filter(
                    TicketModel.id == ticket.id
                ).update({
                    'price': ticket.price,
                    'in_time': ticket.in_time,
                    'out_time': ticket.out_time
                })
            if result == 0:
                self._logger.error(f"Ticket {ticket.id} not found")
            return result > 0
        except SQLAlchemyError as e:
            self._logger.error(f"Error updating ticket {ticket.id}: {e}")
            return False

    def get_nb_ticket(self, vehicle_reg_number: str) -> int:
        try:
            with self.session_scope() as session:
                return session.query(TicketModel).filter(
                    TicketModel.vehicle_reg_number == vehicle_reg_number,
                    TicketModel.out_time.isnot(None)
                ).count()
        except SQLAlchemyError as e:
            self._logger.error(f"Error counting tickets for {vehicle_reg_number}: {e}")
            raise RepositoryError(f"Unable to count tickets for {vehicle_reg_number}") from e


# ============================================================================
# DATABASE SETUP
# ============================================================================

def default_spots(car_spots: int, bike_spots: int) -> List[ParkingSpot]:
    """Facility layout: car spots numbered first, then bike spots"""
    if car_spots < 0 or bike_spots < 0:
        raise ValueError("Spot counts cannot be negative")
    spots = [ParkingSpot(number, ParkingType.CAR, True) for number in range(1, car_spots + 1)]
    spots.extend(
        ParkingSpot(car_spots + number, ParkingType.BIKE, True)
        for number in range(1, bike_spots + 1)
    )
    return spots


def initialize_database(engine: Engine, spots: Iterable[ParkingSpot]) -> None:
    """Create tables and seed the spots when the parking table is empty"""
    logger = logging.getLogger(__name__)
    Base.metadata.create_all(bind=engine)

    SessionLocal = sessionmaker(bind=engine)
    with SessionLocal() as session:
        if session.query(ParkingSpotModel).count() == 0:
            session.add_all(Mapper.parking_spot_to_orm(spot) for spot in spots)
            session.commit()
            logger.info("Parking spots seeded")
        else:
            logger.info("Parking spots already exist, skipping seeding")


def reset_database(session_factory: Callable[[], Session]) -> None:
    """Free every spot and delete all tickets"""
    with session_factory() as session:
        session.query(ParkingSpotModel).update({'available': True})
        session.query(TicketModel).delete()
        session.commit()


# ============================================================================
# REPOSITORY FACTORY
# ============================================================================

class RepositoryFactory:
    """Factory for creating repositories"""

    @staticmethod
    def create_engine(database_url: str, echo: bool = False) -> Engine:
        """Create an engine; in-memory SQLite shares one connection"""
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        return create_engine(database_url, echo=echo)

    @staticmethod
    def create_session_factory(
        database_url: str,
        spots: Iterable[ParkingSpot] = ()
    ) -> sessionmaker:
        """Create engine, schema and seed data, and return a session factory"""
        engine = RepositoryFactory.create_engine(database_url)
        initialize_database(engine, spots)
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @staticmethod
    def create_sqlalchemy_repositories(
        session_factory: Callable[[], Session]
    ) -> Tuple[SQLAlchemyParkingSpotRepository, SQLAlchemyTicketRepository]:
        return (
            SQLAlchemyParkingSpotRepository(session_factory),
            SQLAlchemyTicketRepository(session_factory),
        )

    @staticmethod
    def create_in_memory_repositories(
        spots: Iterable[ParkingSpot] = ()
    ) -> Tuple[InMemoryParkingSpotRepository, InMemoryTicketRepository]:
        """Create in-memory repositories for testing"""
        return InMemoryParkingSpotRepository(spots), InMemoryTicketRepository()
