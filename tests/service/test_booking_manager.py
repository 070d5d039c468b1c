import asyncio

import pytest

from doorctl.models import Booking, BookingStatus
from doorctl.service.manager.booking_manager import BookingManager, InvalidRangeError, BookingConflictError, now_timestamp


class TestBookingManager:

    async def test_create(self, booking_manager, random_user):
        booking = await booking_manager.create(random_user, 100, 200)
        assert booking.user_id == random_user.id
        assert booking.status is BookingStatus.ACTIVE
        assert (booking.start_time, booking.end_time) == (100, 200)

    async def test_active_within_window(self, booking_manager, random_user):
        """Assert that a booking is active at every instant of its window, ends included."""
        booking = await booking_manager.create(random_user, 100, 200)
        for now in (100, 150, 200):
            assert (await booking_manager.active_booking(random_user, now)).id == booking.id

    async def test_not_active_outside_window(self, booking_manager, random_user):
        await booking_manager.create(random_user, 100, 200)
        assert await booking_manager.active_booking(random_user, 99) is None
        assert await booking_manager.active_booking(random_user, 201) is None

    async def test_active_now(self, booking_manager, random_user):
        now = now_timestamp()
        booking = await booking_manager.create(random_user, now - 60, now + 60)
        assert (await booking_manager.active_booking(random_user)).id == booking.id

    async def test_cancelled_not_active(self, booking_manager, random_user):
        booking = await booking_manager.create(random_user, 100, 200)
        await Booking.filter(id=booking.id).update(status=BookingStatus.CANCELLED)
        assert await booking_manager.active_booking(random_user, 150) is None

    @pytest.mark.parametrize("start,end", [(200, 100), (100, 100)])
    async def test_invalid_range(self, booking_manager, random_user, start, end):
        with pytest.raises(InvalidRangeError):
            await booking_manager.create(random_user, start, end)
        assert await Booking.all().count() == 0

    @pytest.mark.parametrize("start,end,conflicts", [
        (150, 250, True),
        (50, 150, True),
        (120, 180, True),
        (50, 250, True),
        (200, 300, False),
        (50, 100, False),
    ])
    async def test_overlap(self, booking_manager, random_user, start, end, conflicts):
        """Assert that bookings are half open windows when checking for overlaps."""
        await booking_manager.create(random_user, 100, 200)

        if conflicts:
            with pytest.raises(BookingConflictError):
                await booking_manager.create(random_user, start, end)
        else:
            await booking_manager.create(random_user, start, end)

    async def test_cancelled_does_not_conflict(self, booking_manager, random_user):
        booking = await booking_manager.create(random_user, 100, 200)
        await Booking.filter(id=booking.id).update(status=BookingStatus.CANCELLED)
        await booking_manager.create(random_user, 150, 250)

    async def test_other_users_do_not_conflict(self, booking_manager, random_user_factory):
        first, second = await random_user_factory(), await random_user_factory()
        await booking_manager.create(first, 100, 200)
        await booking_manager.create(second, 100, 200)

    async def test_facility_exclusive(self, database, random_user_factory):
        manager = BookingManager(facility_exclusive=True)
        first, second = await random_user_factory(), await random_user_factory()
        await manager.create(first, 100, 200)
        with pytest.raises(BookingConflictError):
            await manager.create(second, 150, 250)

    async def test_concurrent_creation(self, booking_manager, random_user):
        """Assert that only one of two racing requests for the same slot succeeds."""
        results = await asyncio.gather(
            booking_manager.create(random_user, 100, 200),
            booking_manager.create(random_user, 100, 200),
            return_exceptions=True,
        )

        assert sum(isinstance(result, Booking) for result in results) == 1
        assert sum(isinstance(result, BookingConflictError) for result in results) == 1
        assert await Booking.filter(user_id=random_user.id).count() == 1
        assert not booking_manager._locks

    async def test_bookings_latest_first(self, booking_manager, random_user):
        await booking_manager.create(random_user, 100, 200)
        await booking_manager.create(random_user, 300, 400)
        await booking_manager.create(random_user, 200, 300)

        bookings = await booking_manager.bookings(random_user)
        assert [booking.start_time for booking in bookings] == [300, 200, 100]

    async def test_locks_released(self, booking_manager, random_user_factory):
        """Assert that no lock outlives the bookings it guarded, even when creation fails."""
        for _ in range(3):
            user = await random_user_factory()
            await booking_manager.create(user, 100, 200)
            with pytest.raises(BookingConflictError):
                await booking_manager.create(user, 150, 250)

        assert not booking_manager._locks
        assert not booking_manager._lock_users

    async def test_lock_kept_while_waiting(self, booking_manager, random_user):
        """Assert that a waiting request keeps the lock alive and is served once it is released."""
        async with booking_manager._locked(random_user):
            waiting = asyncio.ensure_future(booking_manager.create(random_user, 100, 200))
            await asyncio.sleep(0)
            assert booking_manager._lock_users[random_user.id] == 2

        booking = await waiting
        assert booking.user_id == random_user.id
        assert not booking_manager._locks
