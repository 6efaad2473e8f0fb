# File: parkingsystem/presentation/console.py
"""
Operator Console for Parking System

Text front-end for the parking attendant:
- InputReader reads menu selections and registration numbers from a stream
- VehicleInputReader prompts for the vehicle type and plate before reading;
  it is the reader handed to the parking service
- InteractiveShell shows the main menu and dispatches to the parking service

Readers and shell use injectable streams so the console can be driven from
tests.
"""

from typing import TextIO, Optional
import logging
import sys

from ..application.parking_service import (
    ParkingService, InvalidInputError,
    IncomingVehicleResult, ExitingVehicleResult
)


READ_ERROR_MESSAGE = "Error while reading user input from Shell"


class InputReader:
    """Reads operator input line by line"""

    def __init__(self, input_stream: Optional[TextIO] = None, output_stream: Optional[TextIO] = None):
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout
        self.at_eof = False
        self.logger = logging.getLogger(self.__class__.__name__)

    def read_selection(self) -> int:
        """Read an integer choice, -1 when the line is not a number"""
        line = self._read_line()
        try:
            return int(line.strip())
        except ValueError:
            self.logger.error(f"Error while reading user input from Shell: {line!r}")
            self._tell(f"{READ_ERROR_MESSAGE}. Please enter valid number for proceeding further")
            return -1

    def read_vehicle_registration_number(self) -> str:
        """Read a registration number; empty input is rejected"""
        vehicle_reg_number = self._read_line().strip()
        if not vehicle_reg_number:
            self.logger.error("Error while reading user input from Shell: empty registration number")
            self._tell(f"{READ_ERROR_MESSAGE}. Please enter a valid string for vehicle registration number")
            raise InvalidInputError("Invalid input provided")
        return vehicle_reg_number

    def _read_line(self) -> str:
        line = self.input_stream.readline()
        if line == "":
            self.at_eof = True
        return line

    def _tell(self, message: str) -> None:
        print(message, file=self.output_stream)


class VehicleInputReader(InputReader):
    """InputReader that prompts for the vehicle type and plate"""

    def read_selection(self) -> int:
        self._tell("Please select vehicle type from menu")
        self._tell("1 CAR")
        self._tell("2 BIKE")
        return super().read_selection()

    def read_vehicle_registration_number(self) -> str:
        self._tell("Please type the vehicle registration number and press enter key")
        return super().read_vehicle_registration_number()


class InteractiveShell:
    """Main menu loop"""

    MENU = (
        "Please select an option. Simply enter the number to choose an action\n"
        "1 New Vehicle Entering - Allocate Parking Space\n"
        "2 Vehicle Exiting - Generate Ticket Price\n"
        "3 Shutdown System"
    )

    def __init__(
        self,
        parking_service: ParkingService,
        input_reader: InputReader,
        output_stream: Optional[TextIO] = None
    ):
        self.parking_service = parking_service
        self.input_reader = input_reader
        self.output_stream = output_stream or sys.stdout
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_interface(self) -> None:
        """Run the menu until the operator shuts the system down or input ends"""
        self.logger.info("App initialized!!!")
        self._tell("Welcome to Parking System!")

        continue_app = True
        while continue_app:
            self._tell(self.MENU)
            option = self.input_reader.read_selection()
            if option == 1:
                self._run_option("vehicle entry", self._incoming)
            elif option == 2:
                self._run_option("vehicle exit", self._exiting)
            elif option == 3:
                self._tell("Exiting from the system!")
                continue_app = False
            elif self.input_reader.at_eof:
                self.logger.info("Input closed, shutting down")
                continue_app = False
            else:
                self._tell("Unsupported option. Please enter a number corresponding to the provided menu")

    def _incoming(self) -> None:
        self.show_incoming(self.parking_service.process_incoming_vehicle())

    def _exiting(self) -> None:
        self.show_exiting(self.parking_service.process_exiting_vehicle())

    def _run_option(self, action: str, handler) -> None:
        try:
            handler()
        except Exception as e:
            self.logger.error(f"Error during {action}: {e}", exc_info=True)
            self._tell(f"Unable to process {action}. Error occurred: {e}")

    def show_incoming(self, result: IncomingVehicleResult) -> None:
        if not result.success:
            self._tell(result.message)
            return
        self._tell("Generated Ticket and saved in DB")
        self._tell(result.message)
        self._tell(
            f"Recorded in-time for vehicle number: {result.vehicle_reg_number} "
            f"is: {result.in_time}"
        )

    def show_exiting(self, result: ExitingVehicleResult) -> None:
        if not result.success:
            self._tell(result.message)
            return
        self._tell(result.message)
        self._tell(
            f"Recorded out-time for vehicle number: {result.vehicle_reg_number} "
            f"is: {result.out_time}"
        )

    def _tell(self, message: str) -> None:
        print(message, file=self.output_stream)
