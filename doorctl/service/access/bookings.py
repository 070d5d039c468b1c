"""
Bookings
========
"""

from typing import List, Optional, Union

from doorctl.models import Booking, BookingStatus, User


def _user_id(user: Union[User, int]) -> int:
    return user.id if isinstance(user, User) else user


async def get_bookings(user: Union[User, int]) -> List[Booking]:
    """Gets all the bookings of a user, latest first."""
    return await Booking.filter(user_id=_user_id(user)).order_by("-start_time", "-id")


async def get_active_booking(user: Union[User, int], now: int) -> Optional[Booking]:
    """
    Gets the active booking of the user whose window contains
    the given unix timestamp (inclusive on both ends).
    """
    return await Booking.filter(
        user_id=_user_id(user),
        status=BookingStatus.ACTIVE,
        start_time__lte=now,
        end_time__gte=now,
    ).order_by("start_time").first()


async def has_conflict(user: Optional[Union[User, int]], start: int, end: int) -> bool:
    """
    Checks if [start, end) overlaps an existing active booking. Two
    half-open windows overlap iff each starts before the other ends.

    :param user: The user whose bookings to check, or None to check every booking.
    """
    query = Booking.filter(status=BookingStatus.ACTIVE, start_time__lt=end, end_time__gt=start)
    if user is not None:
        query = query.filter(user_id=_user_id(user))
    return await query.exists()


async def create_booking(user: Union[User, int], start: int, end: int) -> Booking:
    return await Booking.create(user_id=_user_id(user), start_time=start, end_time=end, status=BookingStatus.ACTIVE)
