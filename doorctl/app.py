"""
App
---
"""

from datetime import timedelta

import sentry_sdk
from aiohttp import web
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from shapely.geometry import Point

from doorctl import config, logger
from doorctl.middleware import error_middleware, session_middleware
from doorctl.service.geofence import Geofence
from doorctl.service.manager.booking_manager import BookingManager
from doorctl.service.manager.ceremony_manager import CeremonyManager
from doorctl.service.manager.door_manager import DoorManager
from doorctl.service.rate_limiter import RateLimiter
from doorctl.service.sessions import SessionManager
from doorctl.service.verify_ceremony import CeremonyVerifier, RelyingParty, WebAuthnVerifier
from doorctl.signals import register_signals
from doorctl.version import __version__, name
from doorctl.views import register_views

DEVELOPMENT_SECRET = "development-only-session-secret"


class ConfigurationError(Exception):
    pass


def build_app(db_uri=None, verifier: CeremonyVerifier = None):
    """
    Sets up the app and its services.

    :param db_uri: The database to connect to, defaulting to the configured one.
    :param verifier: The ceremony verifier, defaulting to py_webauthn for the configured relying party.
    :raises ConfigurationError: If no session secret is configured outside development.
    """
    session_secret = config.session_secret
    if not session_secret:
        if config.server_mode not in ("development", "testing"):
            raise ConfigurationError("SESSION_SECRET must be set outside development.")
        logger.warning("No SESSION_SECRET set, using an insecure development secret")
        session_secret = DEVELOPMENT_SECRET

    app = web.Application(middlewares=[error_middleware, session_middleware])

    if verifier is None:
        verifier = WebAuthnVerifier(RelyingParty(config.rp_id, config.rp_name, config.rp_origins))

    app['database_uri'] = db_uri if db_uri is not None else config.database_url
    app['session_manager'] = SessionManager(
        session_secret, timedelta(seconds=config.session_max_age), secure=config.session_cookie_secure
    )
    app['rate_limiter'] = RateLimiter(config.rate_limit_rate, config.rate_limit_burst)
    app['rate_limit_sweep_period'] = config.rate_limit_sweep_period
    app['trust_forwarded_for'] = config.trust_forwarded_for
    app['ceremony_manager'] = CeremonyManager(
        verifier, timedelta(seconds=config.ceremony_ttl), reject_clones=config.reject_cloned_credentials
    )
    app['booking_manager'] = BookingManager(facility_exclusive=config.facility_exclusive_bookings)
    app['door_manager'] = DoorManager(
        app['booking_manager'],
        Geofence(Point(config.studio_longitude, config.studio_latitude), config.unlock_radius_km)
    )

    # set up the database and background tasks
    register_signals(app)

    # register views
    register_views(app, config.api_root, config.rp_origins)

    # set up sentry exception tracking
    if config.sentry_dsn and config.server_mode != "development":
        logger.info("Starting Sentry Logging")
        sentry_sdk.init(
            dsn=config.sentry_dsn,
            environment=config.server_mode,
            release=f"{name}@{__version__}",
            integrations=[AioHttpIntegration()],
        )

    return app
