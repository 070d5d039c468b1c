"""
Base
----

The base view for the API. This view contains functionality
required in all other views.
"""

from typing import Optional

from aiohttp.abc import Application
from aiohttp.web import View, AbstractRoute
from aiohttp_cors import CorsConfig, CorsViewMixin

from doorctl.service.manager.booking_manager import BookingManager
from doorctl.service.manager.ceremony_manager import CeremonyManager
from doorctl.service.manager.door_manager import DoorManager
from doorctl.service.rate_limiter import RateLimiter
from doorctl.service.sessions import SessionState


class ViewConfigurationError(Exception):
    """
    Raised if the view doesn't provide a URL.
    """


class BaseView(View, CorsViewMixin):
    """
    The base view that all other views extend. The services
    are taken from the app when the route is registered.
    """

    url: str
    name: Optional[str]
    route: AbstractRoute
    ceremony_manager: CeremonyManager
    booking_manager: BookingManager
    door_manager: DoorManager
    rate_limiter: RateLimiter
    trust_forwarded_for: bool

    @classmethod
    def register_route(cls, app: Application, base: Optional[str] = None):
        """
        Registers the view with the given router.

        :raises ViewConfigurationError: If the URL hasn't been set on the given view.
        """
        try:
            url = base + cls.url if base is not None else cls.url
        except AttributeError:
            raise ViewConfigurationError("No URL provided!")

        kwargs = {}
        name = getattr(cls, "name", None)
        if name is not None:
            kwargs["name"] = name

        cls.route = app.router.add_view(url, cls, **kwargs)
        cls.ceremony_manager = app["ceremony_manager"]
        cls.booking_manager = app["booking_manager"]
        cls.door_manager = app["door_manager"]
        cls.rate_limiter = app["rate_limiter"]
        cls.trust_forwarded_for = app["trust_forwarded_for"]

    @classmethod
    def enable_cors(cls, cors: CorsConfig):
        """Enables CORS on the view."""
        try:
            cors.add(cls.route)
        except AttributeError as error:
            raise ViewConfigurationError("No route assigned. Please register the route first.") from error

    @property
    def session(self) -> SessionState:
        """The client's session, loaded by the session middleware."""
        return self.request["session"]
