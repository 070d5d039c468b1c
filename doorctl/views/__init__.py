"""
.. autoclasstree:: doorctl.views

This package contains the server API for registering, logging in,
booking the studio, and opening the front door.

API Conventions
---------------

The API accepts and returns JSON with snake_case key naming, except
where the WebAuthn JSON serialization dictates otherwise. Every route
responds with JSend formatted JSON.

Sessions are kept in an http-only cookie, so clients on another origin
must send credentials with their requests. Only the relying party's
origins are allowed to do so.
"""
from typing import List

import aiohttp_cors
from aiohttp.abc import Application

from doorctl import logger
from .auth import RegisterBeginView, RegisterFinishView, LoginBeginView, LoginFinishView, LogoutView, MeView
from .bookings import BookingsView, CurrentBookingView
from .unlock import UnlockView

views = [
    RegisterBeginView, RegisterFinishView, LoginBeginView, LoginFinishView, LogoutView, MeView,
    BookingsView, CurrentBookingView,
    UnlockView,
]


def register_views(app: Application, base: str, origins: List[str]):
    """
    Registers all the API views onto the given router at a specific root url.

    :param app: The app to register the views to.
    :param base: The base URL.
    :param origins: The origins allowed to make credentialed cross-origin requests.
    """
    cors = aiohttp_cors.setup(app, defaults={
        origin: aiohttp_cors.ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*",
        ) for origin in origins
    })

    for view in views:
        logger.info("Registered %s at %s", view.__name__, base + view.url)
        view.register_route(app, base)
        view.enable_cors(cors)
