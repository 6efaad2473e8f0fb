"""
In-Memory Repository Unit Tests
"""

import unittest
from datetime import datetime, timedelta

from parkingsystem.domain.models import ParkingSpot, ParkingType, Ticket
from parkingsystem.infrastructure.repositories import (
    InMemoryParkingSpotRepository, InMemoryTicketRepository,
    RepositoryFactory, default_spots
)


IN_TIME = datetime(2024, 3, 15, 8, 0, 0)


class TestDefaultSpots(unittest.TestCase):

    def test_cars_numbered_before_bikes(self):
        spots = default_spots(3, 2)

        self.assertEqual([spot.id for spot in spots], [1, 2, 3, 4, 5])
        self.assertEqual(
            [spot.parking_type for spot in spots],
            [ParkingType.CAR] * 3 + [ParkingType.BIKE] * 2
        )
        self.assertTrue(all(spot.is_available for spot in spots))

    def test_negative_counts_rejected(self):
        with self.assertRaises(ValueError):
            default_spots(-1, 2)


class TestInMemoryParkingSpotRepository(unittest.TestCase):
    """Unit tests for in-memory spot repository"""

    def setUp(self):
        self.repository, _ = RepositoryFactory.create_in_memory_repositories(default_spots(3, 2))

    def test_next_available_slot_is_lowest_free(self):
        self.assertEqual(self.repository.get_next_available_slot(ParkingType.CAR), 1)
        self.assertEqual(self.repository.get_next_available_slot(ParkingType.BIKE), 4)

        self.repository.update_parking(ParkingSpot(1, ParkingType.CAR, False))

        self.assertEqual(self.repository.get_next_available_slot(ParkingType.CAR), 2)

    def test_no_free_slot(self):
        self.repository.update_parking(ParkingSpot(4, ParkingType.BIKE, False))
        self.repository.update_parking(ParkingSpot(5, ParkingType.BIKE, False))

        self.assertEqual(self.repository.get_next_available_slot(ParkingType.BIKE), 0)

    def test_update_unknown_spot(self):
        self.assertFalse(self.repository.update_parking(ParkingSpot(99, ParkingType.CAR, False)))

    def test_stored_spots_are_copies(self):
        spot = self.repository.get_spot(2)
        spot.occupy()

        self.assertTrue(self.repository.get_spot(2).is_available)
        self.assertIsNone(self.repository.get_spot(42))

    def test_count_and_clear(self):
        self.assertEqual(self.repository.count(), 5)
        self.assertEqual(len(self.repository.get_all()), 5)

        self.repository.clear()

        self.assertEqual(self.repository.count(), 0)
        self.assertEqual(self.repository.get_next_available_slot(ParkingType.CAR), 0)


class TestInMemoryTicketRepository(unittest.TestCase):
    """Unit tests for in-memory ticket repository"""

    def setUp(self):
        self.repository = InMemoryTicketRepository()

    def make_ticket(self, reg="ABCDEF", in_time=IN_TIME, parking_number=1):
        return Ticket(
            vehicle_reg_number=reg,
            parking_spot=ParkingSpot(parking_number, ParkingType.CAR, False),
            in_time=in_time
        )

    def test_save_assigns_ids(self):
        first = self.make_ticket()
        second = self.make_ticket("OTHER")

        self.assertTrue(self.repository.save_ticket(first))
        self.assertTrue(self.repository.save_ticket(second))

        self.assertEqual(first.id, 1)
        self.assertEqual(second.id, 2)

    def test_get_ticket_unknown_vehicle(self):
        self.assertIsNone(self.repository.get_ticket("NOPE"))

    def test_get_ticket_returns_latest(self):
        older = self.make_ticket(in_time=IN_TIME)
        newer = self.make_ticket(in_time=IN_TIME + timedelta(days=1), parking_number=2)
        self.repository.save_ticket(newer)
        self.repository.save_ticket(older)

        ticket = self.repository.get_ticket("ABCDEF")

        self.assertEqual(ticket.id, newer.id)
        self.assertEqual(ticket.parking_spot.id, 2)

    def test_update_ticket(self):
        ticket = self.make_ticket()
        self.repository.save_ticket(ticket)
        ticket.close(IN_TIME + timedelta(hours=1))
        ticket.price = 1.5

        self.assertTrue(self.repository.update_ticket(ticket))

        stored = self.repository.get_ticket("ABCDEF")
        self.assertEqual(stored.price, 1.5)
        self.assertEqual(stored.out_time, IN_TIME + timedelta(hours=1))

    def test_update_unsaved_ticket(self):
        self.assertFalse(self.repository.update_ticket(self.make_ticket()))

    def test_get_nb_ticket_counts_completed_stays(self):
        open_ticket = self.make_ticket(in_time=IN_TIME + timedelta(days=2))
        for day in range(2):
            ticket = self.make_ticket(in_time=IN_TIME + timedelta(days=day))
            ticket.close(ticket.in_time + timedelta(hours=1))
            self.repository.save_ticket(ticket)
        self.repository.save_ticket(open_ticket)
        self.repository.save_ticket(self.make_ticket("OTHER"))

        self.assertEqual(self.repository.get_nb_ticket("ABCDEF"), 2)
        self.assertEqual(self.repository.get_nb_ticket("OTHER"), 0)
        self.assertEqual(self.repository.get_nb_ticket("NOPE"), 0)

    def test_returned_tickets_are_copies(self):
        ticket = self.make_ticket()
        self.repository.save_ticket(ticket)

        fetched = self.repository.get_ticket("ABCDEF")
        fetched.price = 99.0
        fetched.parking_spot.release()

        stored = self.repository.get_ticket("ABCDEF")
        self.assertEqual(stored.price, 0.0)
        self.assertFalse(stored.parking_spot.is_available)


if __name__ == "__main__":
    unittest.main()
