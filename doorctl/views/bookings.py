"""
Booking Related Views
---------------------

Handles booking the studio and listing the logged in user's bookings.
Booking times are unix timestamps in seconds.
"""
from http import HTTPStatus

from marshmallow.fields import Integer

from doorctl.permissions import requires, UserIsAuthenticated
from doorctl.serializer import JSendSchema, JSendStatus, Many, expects, returns
from doorctl.serializer.models import BookingSchema, BookingRequestSchema
from doorctl.service.manager.booking_manager import InvalidRangeError, BookingConflictError
from doorctl.views.base import BaseView


class BookingsView(BaseView):
    """
    Gets the user's bookings or creates a new one.
    """
    url = "/bookings"
    name = "bookings"

    @requires(UserIsAuthenticated())
    @returns(JSendSchema.of(bookings=Many(BookingSchema())))
    async def get(self):
        bookings = await self.booking_manager.bookings(self.request["user"])
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"bookings": [booking.serialize() for booking in bookings]}
        }

    @requires(UserIsAuthenticated())
    @expects(BookingRequestSchema())
    @returns(
        invalid_range=(JSendSchema(), HTTPStatus.BAD_REQUEST),
        conflict=(JSendSchema(), HTTPStatus.CONFLICT),
        created=(JSendSchema.of(booking_id=Integer(), booking=BookingSchema()), HTTPStatus.CREATED),
    )
    async def post(self):
        data = self.request["data"]

        try:
            booking = await self.booking_manager.create(self.request["user"], data["start_time"], data["end_time"])
        except InvalidRangeError as error:
            return "invalid_range", {
                "status": JSendStatus.FAIL,
                "data": {"message": str(error)}
            }
        except BookingConflictError as error:
            return "conflict", {
                "status": JSendStatus.FAIL,
                "data": {"message": str(error)}
            }

        return "created", {
            "status": JSendStatus.SUCCESS,
            "data": {"booking_id": booking.id, "booking": booking.serialize()}
        }


class CurrentBookingView(BaseView):
    """
    Gets the booking that currently grants the user access, if any.
    """
    url = "/bookings/current"

    @requires(UserIsAuthenticated())
    @returns(
        no_booking=(JSendSchema(), HTTPStatus.NOT_FOUND),
        booking=JSendSchema.of(booking=BookingSchema()),
    )
    async def get(self):
        booking = await self.booking_manager.active_booking(self.request["user"])
        if booking is None:
            return "no_booking", {
                "status": JSendStatus.FAIL,
                "data": {"message": "You have no active booking right now."}
            }

        return "booking", {
            "status": JSendStatus.SUCCESS,
            "data": {"booking": booking.serialize()}
        }
