"""
Booking Manager
===============

Handles the creation and lookup of bookings.

A booking reserves the studio for a user between two unix timestamps.
Bookings are half-open windows ``[start, end)``: a booking ending at
``200`` does not conflict with one starting at ``200``. A user may only
open the door while one of their active bookings covers the current time.

Creating a booking checks for conflicts and then inserts it. Both steps
run while holding a lock for the user (or for the whole facility when
bookings are exclusive), so two requests racing for the same slot cannot
both pass the check. A lock is dropped once nobody holds or waits for it.

Responsibilities
----------------

- create a booking, rejecting invalid and overlapping windows
- get the booking covering a point in time
- list a user's bookings
"""
from asyncio import Lock
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

from tortoise.transactions import in_transaction

from doorctl import logger
from doorctl.models import Booking, User
from doorctl.service.access.bookings import get_bookings, get_active_booking, has_conflict, create_booking

FACILITY = "facility"
"""The lock key used when bookings are exclusive across all users."""


class BookingError(Exception):
    pass


class InvalidRangeError(BookingError):
    pass


class BookingConflictError(BookingError):
    pass


def now_timestamp() -> int:
    return int(datetime.now(timezone.utc).timestamp())


class BookingManager:
    """
    :param facility_exclusive: Check for conflicts against every user's bookings
        instead of just those of the booking user.
    """

    def __init__(self, facility_exclusive=False):
        self.facility_exclusive = facility_exclusive
        self._locks: Dict[object, Lock] = {}
        self._lock_users: Counter = Counter()

    async def create(self, user: User, start: int, end: int) -> Booking:
        """
        Books the studio for the user.

        :raises InvalidRangeError: If the booking doesn't end after it starts.
        :raises BookingConflictError: If the booking overlaps an existing active booking.
        """
        if start >= end:
            raise InvalidRangeError("A booking must end after it starts.")

        async with self._locked(user):
            async with in_transaction():
                if await has_conflict(None if self.facility_exclusive else user, start, end):
                    raise BookingConflictError("This time slot conflicts with an existing booking.")
                booking = await create_booking(user, start, end)

        logger.info("Created booking %s for %s", booking.id, user)
        return booking

    async def active_booking(self, user: User, now: Optional[int] = None) -> Optional[Booking]:
        """Gets the user's active booking covering ``now``, which defaults to the current time."""
        if now is None:
            now = now_timestamp()
        return await get_active_booking(user, now)

    async def bookings(self, user: User) -> List[Booking]:
        return await get_bookings(user)

    @asynccontextmanager
    async def _locked(self, user: User):
        key = FACILITY if self.facility_exclusive else user.id
        lock = self._locks.setdefault(key, Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
