# File: parkingsystem/domain/models.py
"""
Domain Models for Parking System

This module contains:
1. Enums: the closed set of parking types
2. Constants: hourly fares and discount rate
3. Entities: ParkingSpot and Ticket, with identity and lifecycle
4. Exceptions: errors raised by domain rules
5. Domain Events: vehicles entering and leaving

Tickets are mutated in place by the fare calculator and the parking service;
spots flip availability when a vehicle enters or leaves.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum
import uuid


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class ParkingType(Enum):
    """
    Enumeration of parking types
    Each type has its own hourly rate and its own pool of spots
    """
    CAR = "CAR"
    BIKE = "BIKE"

    @classmethod
    def from_selection(cls, selection: int) -> Optional['ParkingType']:
        """Map an operator menu selection to a parking type, None if unknown"""
        selections = {
            1: cls.CAR,
            2: cls.BIKE,
        }
        return selections.get(selection)

    def __str__(self) -> str:
        return self.value


# ============================================================================
# FARES
# ============================================================================

class Fare:
    """Hourly rates and fare rules"""
    CAR_RATE_PER_HOUR = 1.5
    BIKE_RATE_PER_HOUR = 1.0

    # Multiplier applied to recurring customers (5% off)
    DISCOUNT_RATE = 0.95

    # Stays shorter than this are free
    FREE_PERIOD_HOURS = 0.5


# ============================================================================
# DOMAIN EXCEPTIONS
# ============================================================================

class FareCalculationError(ValueError):
    """Base exception for fare calculation errors"""
    pass


class InvalidTimeRangeError(FareCalculationError):
    """Out time is missing or earlier than in time"""
    pass


class UnsupportedVehicleTypeError(FareCalculationError):
    """Parking type has no known rate"""
    pass


class RepositoryError(Exception):
    """Persistence layer could not answer a query"""
    pass


# ============================================================================
# ENTITIES
# ============================================================================

@dataclass
class ParkingSpot:
    """
    Entity: a single allocatable parking location

    Identity is the spot number: two spots with the same id are the same
    spot, whatever their availability.
    """
    id: int
    parking_type: ParkingType
    is_available: bool = True

    def __post_init__(self):
        if self.id <= 0:
            raise ValueError(f"Parking spot number must be positive, got: {self.id}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParkingSpot):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def occupy(self) -> None:
        """Mark spot as taken"""
        self.is_available = False

    def release(self) -> None:
        """Mark spot as free"""
        self.is_available = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parking_type": self.parking_type.value,
            "is_available": self.is_available,
        }


@dataclass
class Ticket:
    """
    Entity: one parking session for a vehicle

    Created on entry with no out time and a zero price; the exit flow sets
    the out time and the fare calculator sets the price.
    """
    vehicle_reg_number: str
    parking_spot: Optional[ParkingSpot]
    in_time: datetime
    out_time: Optional[datetime] = None
    price: float = 0.0
    id: Optional[int] = field(default=None, compare=False)

    @property
    def is_open(self) -> bool:
        """True while the vehicle is still parked"""
        return self.out_time is None

    @property
    def parking_type(self) -> Optional[ParkingType]:
        if self.parking_spot is None:
            return None
        return self.parking_spot.parking_type

    def close(self, out_time: datetime) -> None:
        """Record the exit time"""
        self.out_time = out_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "vehicle_reg_number": self.vehicle_reg_number,
            "parking_spot": self.parking_spot.to_dict() if self.parking_spot else None,
            "in_time": self.in_time.isoformat(),
            "out_time": self.out_time.isoformat() if self.out_time else None,
            "price": self.price,
        }


# ============================================================================
# DOMAIN EVENTS (for event-driven architecture)
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the domain
    """
    event_type = "domain.event"

    def __init__(self, timestamp: Optional[datetime] = None):
        self.event_id = str(uuid.uuid4())
        self.timestamp = timestamp or datetime.now()
        self.version = "1.0"

    @abstractmethod
    def get_data(self) -> Dict[str, Any]:
        """Event payload"""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization"""
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": self.get_data(),
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class VehicleEnteredEvent(DomainEvent):
    """Event raised when a vehicle is given a spot and a ticket"""
    event_type = "vehicle.entered"

    def __init__(self, ticket: Ticket):
        super().__init__(ticket.in_time)
        self.ticket = ticket

    def get_data(self) -> Dict[str, Any]:
        return {
            "vehicle_reg_number": self.ticket.vehicle_reg_number,
            "parking_number": self.ticket.parking_spot.id,
            "parking_type": self.ticket.parking_spot.parking_type.value,
            "in_time": self.ticket.in_time.isoformat(),
        }


class VehicleExitedEvent(DomainEvent):
    """Event raised when a ticket is closed and its spot released"""
    event_type = "vehicle.exited"

    def __init__(self, ticket: Ticket, discount: bool = False):
        super().__init__(ticket.out_time)
        self.ticket = ticket
        self.discount = discount

    def get_data(self) -> Dict[str, Any]:
        return {
            "vehicle_reg_number": self.ticket.vehicle_reg_number,
            "parking_number": self.ticket.parking_spot.id,
            "in_time": self.ticket.in_time.isoformat(),
            "out_time": self.ticket.out_time.isoformat(),
            "price": self.ticket.price,
            "discount": self.discount,
        }
