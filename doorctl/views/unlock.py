"""
Door Related Views
------------------

Handles requests to open the front door. The client sends its
location along with the request, and the door only opens for a
user with an active booking who is standing near it.

A denied unlock is not an error, so it is answered with a 200 and
a JSend ``fail`` explaining why. A user who is too far away also
gets the location of the door so the client can offer directions.
A client that is not logged in is turned away with a 401 before the
door is consulted.
"""
from marshmallow.fields import Boolean, Float, String
from shapely.geometry import mapping

from doorctl.permissions import requires, UserIsAuthenticated
from doorctl.serializer import JSendSchema, JSendStatus, Geometry, expects, returns
from doorctl.serializer.models import UnlockRequestSchema
from doorctl.service.manager.door_manager import (
    Granted, TooFar, NO_BOOKING_MESSAGE, TOO_FAR_MESSAGE, UNLOCKED_MESSAGE,
)
from doorctl.views.base import BaseView


class UnlockView(BaseView):
    url = "/unlock"

    @requires(UserIsAuthenticated())
    @expects(UnlockRequestSchema())
    @returns(
        no_booking=JSendSchema(),
        too_far=JSendSchema.of(
            message=String(), distance=Float(), show_navigate=Boolean(),
            studio_lat=Float(), studio_lon=Float(), studio_location=Geometry(),
        ),
        unlocked=JSendSchema(),
    )
    async def post(self):
        data = self.request["data"]
        decision = await self.door_manager.unlock(self.session, data["latitude"], data["longitude"])

        if isinstance(decision, Granted):
            return "unlocked", {
                "status": JSendStatus.SUCCESS,
                "data": {"message": UNLOCKED_MESSAGE}
            }
        elif isinstance(decision, TooFar):
            return "too_far", {
                "status": JSendStatus.FAIL,
                "data": {
                    "message": TOO_FAR_MESSAGE,
                    "distance": decision.distance,
                    "show_navigate": True,
                    "studio_lat": decision.site.y,
                    "studio_lon": decision.site.x,
                    "studio_location": mapping(decision.site),
                }
            }
        else:
            return "no_booking", {
                "status": JSendStatus.FAIL,
                "data": {"message": NO_BOOKING_MESSAGE}
            }
