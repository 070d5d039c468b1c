import os


def _flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


server_mode = os.getenv("SERVER_MODE", "development")
"""The operational mode of the server."""

api_root = "/api/v1"
"""The base url for the api."""

database_url = os.getenv("DATABASE_URL", "sqlite://door-control.sqlite3")
"""The tortoise database url."""

sentry_dsn = os.getenv("SENTRY_DSN")
"""The sentry DSN. Exception tracking is disabled when unset."""

session_secret = os.getenv("SESSION_SECRET")
"""The secret used to sign the session cookie. Required outside development."""

session_max_age = int(os.getenv("SESSION_MAX_AGE_SECONDS", 60 * 60 * 24))
"""How long a session cookie stays valid, in seconds."""

session_cookie_secure = server_mode not in ("development", "testing")
"""Only send the session cookie over https."""

rp_id = os.getenv("RP_ID", "localhost")
"""The WebAuthn relying party id (the domain the credentials are bound to)."""

rp_name = os.getenv("RP_NAME", "Door Control")
"""The human readable relying party name."""

rp_origins = [origin.strip() for origin in os.getenv("RP_ORIGINS", "http://localhost:8080").split(",") if origin.strip()]
"""The origins the ceremony responses may come from."""

ceremony_ttl = int(os.getenv("CEREMONY_TTL_SECONDS", 300))
"""How long an issued challenge stays valid, in seconds."""

reject_cloned_credentials = _flag("REJECT_CLONED_CREDENTIALS", False)
"""Fail logins whose sign counter did not increase instead of only warning."""

rate_limit_rate = float(os.getenv("RATE_LIMIT_RATE", 1.0))
"""Tokens refilled per second for each client on the ceremony endpoints."""

rate_limit_burst = int(os.getenv("RATE_LIMIT_BURST", 5))
"""The bucket capacity for each client on the ceremony endpoints."""

rate_limit_sweep_period = int(os.getenv("RATE_LIMIT_SWEEP_SECONDS", 5 * 60))
"""How often idle rate limit buckets are removed, in seconds."""

trust_forwarded_for = _flag("TRUST_FORWARDED_FOR", True)
"""
Use the X-Forwarded-For header as the client address. Only safe
behind a proxy that overwrites the header, as clients can spoof it.
"""

studio_latitude = float(os.getenv("STUDIO_LATITUDE", 0.0))
"""The latitude of the front door."""

studio_longitude = float(os.getenv("STUDIO_LONGITUDE", 0.0))
"""The longitude of the front door."""

unlock_radius_km = float(os.getenv("UNLOCK_RADIUS_KM", 0.05))
"""How close to the front door a user must be to unlock it, in kilometers."""

facility_exclusive_bookings = _flag("FACILITY_EXCLUSIVE_BOOKINGS", False)
"""Check booking conflicts across all users rather than per user."""
