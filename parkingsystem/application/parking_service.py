# File: parkingsystem/application/parking_service.py
"""
Parking Application Service

This module implements the application service layer for the parking system.
It orchestrates the domain logic and the persistence collaborators for the two
use cases of the facility:

1. Vehicle entry: allocate a spot, occupy it, open a ticket
2. Vehicle exit: close the ticket, price it, release the spot

Key Principles:
- Dependency Injection: input reader, repositories and event publisher are
  narrow interfaces passed in by the caller
- A spot is released only once its ticket has been committed
- Failures are logged and reported in the result, never retried
"""

from typing import Optional, Callable, Protocol, runtime_checkable
from datetime import datetime
import logging

from pydantic import BaseModel, ConfigDict

from ..domain.models import (
    ParkingSpot, ParkingType, Ticket,
    FareCalculationError, RepositoryError, DomainEvent,
    VehicleEnteredEvent, VehicleExitedEvent
)
from ..domain.strategies import FareCalculatorService


DEFAULT_RECURRING_THRESHOLD = 1


# ============================================================================
# DATA TRANSFER OBJECTS (DTOs)
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(frozen=True)

    def to_dict(self, exclude_none: bool = False) -> dict:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none)


class IncomingVehicleResult(BaseDTO):
    """Outcome of a vehicle entry"""
    success: bool
    vehicle_reg_number: Optional[str] = None
    parking_number: Optional[int] = None
    parking_type: Optional[ParkingType] = None
    in_time: Optional[datetime] = None
    recurring_customer: bool = False
    message: Optional[str] = None


class ExitingVehicleResult(BaseDTO):
    """Outcome of a vehicle exit"""
    success: bool
    vehicle_reg_number: Optional[str] = None
    parking_number: Optional[int] = None
    in_time: Optional[datetime] = None
    out_time: Optional[datetime] = None
    price: Optional[float] = None
    discount: bool = False
    spot_released: bool = False
    message: Optional[str] = None


# ============================================================================
# COLLABORATOR INTERFACES
# ============================================================================

@runtime_checkable
class IInputReader(Protocol):
    """Operator input"""

    def read_selection(self) -> int:
        ...

    def read_vehicle_registration_number(self) -> str:
        ...


@runtime_checkable
class IParkingSpotRepository(Protocol):
    """Spot persistence as seen by the service"""

    def get_next_available_slot(self, parking_type: ParkingType) -> int:
        """Lowest free spot number for the type, 0 if none"""
        ...

    def update_parking(self, parking_spot: ParkingSpot) -> bool:
        """Persist spot availability"""
        ...


@runtime_checkable
class ITicketRepository(Protocol):
    """Ticket persistence as seen by the service"""

    def get_ticket(self, vehicle_reg_number: str) -> Optional[Ticket]:
        ...

    def save_ticket(self, ticket: Ticket) -> bool:
        ...

    def update_ticket(self, ticket: Ticket) -> bool:
        ...

    def get_nb_ticket(self, vehicle_reg_number: str) -> int:
        """Number of completed tickets for the vehicle"""
        ...


@runtime_checkable
class IEventPublisher(Protocol):
    """Publishes domain events, returns False instead of raising"""

    def publish(self, event: DomainEvent) -> bool:
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ParkingServiceError(Exception):
    """Base exception for parking service errors"""
    pass


class InvalidInputError(ParkingServiceError, ValueError):
    """Operator input could not be used"""
    pass


# ============================================================================
# MAIN PARKING SERVICE
# ============================================================================

class ParkingService:
    """
    Main application service for the parking facility

    Allocation picks the next free spot of the selected type; entry occupies
    it and opens a ticket; exit prices the ticket (5% off for recurring
    customers) and frees the spot once the ticket is stored.
    """

    def __init__(
        self,
        input_reader: IInputReader,
        parking_spot_repository: IParkingSpotRepository,
        ticket_repository: ITicketRepository,
        fare_calculator: Optional[FareCalculatorService] = None,
        event_publisher: Optional[IEventPublisher] = None,
        recurring_threshold: int = DEFAULT_RECURRING_THRESHOLD,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the parking service

        Args:
            input_reader: source of vehicle type selections and registrations
            parking_spot_repository: spot lookup and availability updates
            ticket_repository: ticket storage and history
            fare_calculator: pricing, defaults to standard fares
            event_publisher: optional sink for entry/exit events
            recurring_threshold: completed tickets needed for the discount
            clock: current time provider
        """
        if recurring_threshold < 0:
            raise ValueError(f"Recurring threshold cannot be negative: {recurring_threshold}")

        self.logger = logging.getLogger(self.__class__.__name__)
        self.input_reader = input_reader
        self.parking_spot_repository = parking_spot_repository
        self.ticket_repository = ticket_repository
        self.fare_calculator = fare_calculator or FareCalculatorService()
        self.event_publisher = event_publisher
        self.recurring_threshold = recurring_threshold
        self.clock = clock

    # ------------------------------------------------------------------
    # Vehicle entry
    # ------------------------------------------------------------------

    def process_incoming_vehicle(self) -> IncomingVehicleResult:
        """
        Use Case: Vehicle Entry
        1. Allocate the next free spot of the selected type
        2. Read the registration number
        3. Occupy the spot
        4. Open and save the ticket
        """
        try:
            parking_spot = self.get_next_parking_number_if_available()
            if parking_spot is None:
                return IncomingVehicleResult(
                    success=False,
                    message="No parking spot available for the selected vehicle type"
                )

            vehicle_reg_number = self.input_reader.read_vehicle_registration_number()

            parking_spot.occupy()
            if not self.parking_spot_repository.update_parking(parking_spot):
                self.logger.error(f"Unable to occupy parking spot {parking_spot.id}")
                return IncomingVehicleResult(
                    success=False,
                    vehicle_reg_number=vehicle_reg_number,
                    parking_number=parking_spot.id,
                    message=f"Unable to update parking spot {parking_spot.id}. Error occurred"
                )

            ticket = Ticket(
                vehicle_reg_number=vehicle_reg_number,
                parking_spot=parking_spot,
                in_time=self.clock(),
                out_time=None,
                price=0.0
            )
            if not self.ticket_repository.save_ticket(ticket):
                self.logger.error(f"Unable to save ticket for {vehicle_reg_number}")
                return IncomingVehicleResult(
                    success=False,
                    vehicle_reg_number=vehicle_reg_number,
                    parking_number=parking_spot.id,
                    message="Unable to save ticket information. Error occurred"
                )

            try:
                recurring = self.is_recurring_customer(vehicle_reg_number)
            except RepositoryError as e:
                self.logger.warning(f"Unable to check visit history for {vehicle_reg_number}: {e}")
                recurring = False
            self.logger.info(
                f"Vehicle {vehicle_reg_number} parked in spot {parking_spot.id} "
                f"at {ticket.in_time}"
            )
            self._publish(VehicleEnteredEvent(ticket))

            message = f"Please park your vehicle in spot number: {parking_spot.id}"
            if recurring:
                message = (
                    "Welcome back! As a recurring user of our parking lot, "
                    "you'll benefit from a 5% discount. " + message
                )

            return IncomingVehicleResult(
                success=True,
                vehicle_reg_number=vehicle_reg_number,
                parking_number=parking_spot.id,
                parking_type=parking_spot.parking_type,
                in_time=ticket.in_time,
                recurring_customer=recurring,
                message=message
            )

        except (ParkingServiceError, RepositoryError) as e:
            self.logger.error(f"Unable to process incoming vehicle: {e}")
            return IncomingVehicleResult(success=False, message=str(e))

    def get_next_parking_number_if_available(
        self,
        selection: Optional[int] = None
    ) -> Optional[ParkingSpot]:
        """
        Find a free spot for a vehicle type selection

        Reads the selection from the input reader when none is given.
        Returns None for an unknown selection (without asking the
        repository) and when the facility has no free spot of that type.
        """
        if selection is None:
            selection = self.input_reader.read_selection()

        parking_type = self.get_vehicle_type(selection)
        if parking_type is None:
            return None

        try:
            parking_number = self.parking_spot_repository.get_next_available_slot(parking_type)
        except RepositoryError as e:
            self.logger.error(f"Error fetching next available parking slot: {e}")
            return None

        if parking_number <= 0:
            self.logger.error(
                f"Error fetching parking number from DB. {parking_type} slots might be full"
            )
            return None

        return ParkingSpot(parking_number, parking_type, True)

    def get_vehicle_type(self, selection: int) -> Optional[ParkingType]:
        """Map a selection code to a parking type"""
        parking_type = ParkingType.from_selection(selection)
        if parking_type is None:
            self.logger.error(f"Incorrect input provided: {selection}")
        return parking_type

    # ------------------------------------------------------------------
    # Vehicle exit
    # ------------------------------------------------------------------

    def process_exiting_vehicle(self) -> ExitingVehicleResult:
        """
        Use Case: Vehicle Exit
        1. Find the vehicle's ticket
        2. Close it and compute the fare
        3. Save the ticket
        4. Release the spot, only if step 3 succeeded
        """
        vehicle_reg_number = None
        try:
            vehicle_reg_number = self.input_reader.read_vehicle_registration_number()

            ticket = self.ticket_repository.get_ticket(vehicle_reg_number)
            if ticket is None:
                self.logger.error(f"No ticket found for vehicle {vehicle_reg_number}")
                return ExitingVehicleResult(
                    success=False,
                    vehicle_reg_number=vehicle_reg_number,
                    message=f"No ticket found for vehicle {vehicle_reg_number}"
                )
            if not ticket.is_open:
                self.logger.error(f"Vehicle {vehicle_reg_number} has already exited")
                return ExitingVehicleResult(
                    success=False,
                    vehicle_reg_number=vehicle_reg_number,
                    message=f"Vehicle {vehicle_reg_number} has no open ticket"
                )

            ticket.close(self.clock())
            discount = self.is_recurring_customer(vehicle_reg_number)
            self.fare_calculator.calculate_fare(ticket, discount=discount)

            if not self.ticket_repository.update_ticket(ticket):
                self.logger.error("Unable to update ticket information. Error occurred")
                return ExitingVehicleResult(
                    success=False,
                    vehicle_reg_number=vehicle_reg_number,
                    parking_number=ticket.parking_spot.id,
                    price=ticket.price,
                    discount=discount,
                    message="Unable to update ticket information. Error occurred"
                )

            parking_spot = ticket.parking_spot
            parking_spot.release()
            spot_released = self.parking_spot_repository.update_parking(parking_spot)
            if not spot_released:
                self.logger.error(f"Ticket saved but parking spot {parking_spot.id} was not released")

            self.logger.info(
                f"Vehicle {vehicle_reg_number} left spot {parking_spot.id} "
                f"at {ticket.out_time}, fare {ticket.price:.2f}"
            )
            if spot_released:
                self._publish(VehicleExitedEvent(ticket, discount=discount))

            return ExitingVehicleResult(
                success=spot_released,
                vehicle_reg_number=vehicle_reg_number,
                parking_number=parking_spot.id,
                in_time=ticket.in_time,
                out_time=ticket.out_time,
                price=ticket.price,
                discount=discount,
                spot_released=spot_released,
                message=(
                    f"Please pay the parking fare: {ticket.price:.2f}"
                    if spot_released
                    else f"Unable to release parking spot {parking_spot.id}. Error occurred"
                )
            )

        except FareCalculationError as e:
            self.logger.error(f"Unable to calculate fare for {vehicle_reg_number}: {e}")
            return ExitingVehicleResult(
                success=False,
                vehicle_reg_number=vehicle_reg_number,
                message=f"Unable to calculate fare: {e}"
            )
        except (ParkingServiceError, RepositoryError) as e:
            self.logger.error(f"Unable to process exiting vehicle: {e}")
            return ExitingVehicleResult(
                success=False,
                vehicle_reg_number=vehicle_reg_number,
                message=str(e)
            )

    def is_recurring_customer(self, vehicle_reg_number: str) -> bool:
        """True when the vehicle has enough completed stays for the discount"""
        return self.ticket_repository.get_nb_ticket(vehicle_reg_number) >= self.recurring_threshold

    def _publish(self, event: DomainEvent) -> None:
        if self.event_publisher is None:
            return
        if not self.event_publisher.publish(event):
            self.logger.warning(f"Event {event.event_type} was not published")
