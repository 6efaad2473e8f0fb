# File: parkingsystem/domain/strategies.py
"""
Pricing Strategy for Parking System

The fare calculator turns a closed ticket into a price:
- the first half hour is free
- past that, every hour (fractions kept) is charged at the rate of the
  ticket's parking type
- recurring customers get 5% off the computed price

The calculator is stateless apart from its rate table and can be shared.
"""

from typing import Optional, Dict
from datetime import timedelta
import logging

from .models import (
    Ticket, ParkingType, Fare,
    InvalidTimeRangeError, UnsupportedVehicleTypeError
)


MILLIS_PER_HOUR = 60 * 60 * 1000


class FareCalculatorService:
    """
    Computes and stores the price of a ticket

    Rates default to the Fare constants; a custom table can be passed for a
    facility with different prices.
    """

    def __init__(self, rates: Optional[Dict[ParkingType, float]] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.rates = dict(rates) if rates is not None else {
            ParkingType.CAR: Fare.CAR_RATE_PER_HOUR,
            ParkingType.BIKE: Fare.BIKE_RATE_PER_HOUR,
        }

    def calculate_fare(self, ticket: Ticket, discount: bool = False) -> None:
        """
        Set ticket.price from its in/out times and parking type

        Raises:
            InvalidTimeRangeError: out time missing or before in time
            UnsupportedVehicleTypeError: no rate for the ticket's parking type
        """
        if ticket.out_time is None or ticket.out_time < ticket.in_time:
            raise InvalidTimeRangeError(f"Out time provided is incorrect: {ticket.out_time}")

        duration_millis = (ticket.out_time - ticket.in_time) // timedelta(milliseconds=1)
        duration_hours = duration_millis / MILLIS_PER_HOUR

        if duration_hours < Fare.FREE_PERIOD_HOURS:
            ticket.price = 0.0
            self.logger.debug(
                f"Free period for {ticket.vehicle_reg_number} ({duration_hours:.2f}h)"
            )
            return

        price = duration_hours * self.get_rate(ticket.parking_type)

        if discount:
            price = price * Fare.DISCOUNT_RATE

        ticket.price = price
        self.logger.debug(
            f"Fare for {ticket.vehicle_reg_number}: {duration_hours:.2f}h, "
            f"discount={discount}, price={price:.2f}"
        )

    def get_rate(self, parking_type: Optional[ParkingType]) -> float:
        """Hourly rate for a parking type"""
        if parking_type is ParkingType.CAR:
            rate = self.rates.get(ParkingType.CAR)
        elif parking_type is ParkingType.BIKE:
            rate = self.rates.get(ParkingType.BIKE)
        else:
            raise UnsupportedVehicleTypeError(f"Unknown Parking Type: {parking_type}")

        if rate is None:
            raise UnsupportedVehicleTypeError(f"No rate configured for {parking_type}")
        return rate
