"""
Door Manager
============

Decides whether to open the front door.

An unlock request is checked in a fixed order, stopping at the first
check that fails:

1. the session must be logged in
2. the user must have an active booking covering the current time
3. the user must be within the geofence around the door

The location is only looked at once the first two checks pass, so a
user without a booking is never told where the studio is.

The outcome is returned as one of the decision classes below rather than
raised, as a denied unlock is an expected result and not an error. Opening
the physical door is left to whatever subscribes to
:meth:`DoorEvent.door_unlocked`.
"""
from dataclasses import dataclass
from typing import Optional, Union

from shapely.geometry import Point

from doorctl import logger
from doorctl.events import EventHub, EventList
from doorctl.models import Booking
from doorctl.service.geofence import Geofence
from doorctl.service.manager.booking_manager import BookingManager
from doorctl.service.sessions import SessionState

NO_BOOKING_MESSAGE = "No active booking found. Please book a time slot first."
TOO_FAR_MESSAGE = "Please go to the front door for the door to open."
UNLOCKED_MESSAGE = "Door unlocked! Welcome to Waterhouse Studios."


class Unauthorized:
    """The session is not logged in."""


class NoActiveBooking:
    """The user has no booking covering the current time."""


@dataclass(frozen=True)
class TooFar:
    distance: float
    """The distance to the door, in kilometers."""
    site: Point


@dataclass(frozen=True)
class Granted:
    booking: Booking


UnlockDecision = Union[Unauthorized, NoActiveBooking, TooFar, Granted]


class DoorEvent(EventList):

    def door_unlocked(self, user_id: int, booking: Booking):
        """The door was unlocked for a user."""


class DoorManager:

    def __init__(self, booking_manager: BookingManager, geofence: Geofence):
        self.booking_manager = booking_manager
        self.geofence = geofence
        self.hub = EventHub(DoorEvent)

    async def unlock(
        self, session: SessionState, latitude: float, longitude: float, now: Optional[int] = None
    ) -> UnlockDecision:
        """
        Attempts to unlock the door for the session's user at the given location.

        :param now: The unix timestamp to check the booking against, defaulting to the current time.
        """
        if not session.is_authenticated:
            return Unauthorized()

        booking = await self.booking_manager.active_booking(session.user_id, now)
        if booking is None:
            return NoActiveBooking()

        result = self.geofence.authorize(latitude, longitude)
        if not result.granted:
            logger.info("Denied unlock for user %s, %.3f km from the door", session.user_id, result.distance)
            return TooFar(result.distance, result.site)

        logger.info("Door unlocked for user %d, booking %s", session.user_id, booking.id)
        self.hub.emit(DoorEvent.door_unlocked, session.user_id, booking)
        return Granted(booking)
