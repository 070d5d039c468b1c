"""
Sessions
--------

The session is held by the client as a cookie containing a signed JWT.
The server can read it back on every request without storing anything,
and the signature prevents the client from tampering with it.

Inside the token is a :class:`SessionState`. It is validated once when
it is loaded; a token that is missing, expired, forged or malformed
simply results in a fresh, unauthenticated session.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from aiohttp.web_response import StreamResponse
from jose import jwt, JWTError
from marshmallow import Schema, ValidationError, post_load
from marshmallow.fields import Boolean, Integer, String, DateTime, Nested, List as ListField

from doorctl import logger
from doorctl.models import User
from doorctl.serializer.fields import Bytes, EnumField

SESSION_COOKIE = "webauthn-session"
"""The name of the cookie the session is stored in."""

ALGORITHM = "HS256"


class CeremonyKind(str, Enum):
    REGISTRATION = "registration"
    LOGIN = "login"


@dataclass
class PendingCeremony:
    """The challenge issued to a client that has begun, but not finished, a ceremony."""

    kind: CeremonyKind
    challenge: bytes
    user_id: int
    username: str
    expires_at: datetime
    credential_ids: List[bytes] = field(default_factory=list)
    """The credentials that may answer a login challenge."""

    def is_expired(self, now: datetime = None) -> bool:
        if now is None:
            now = datetime.now(timezone.utc)
        return now >= self.expires_at


@dataclass
class SessionState:
    authenticated: bool = False
    user_id: Optional[int] = None
    username: Optional[str] = None
    pending: Optional[PendingCeremony] = None

    @property
    def is_authenticated(self) -> bool:
        return self.authenticated and self.user_id is not None

    def authenticate(self, user: User):
        self.authenticated = True
        self.user_id = user.id
        self.username = user.username

    def clear_identity(self):
        self.authenticated = False
        self.user_id = None
        self.username = None

    def copy(self) -> 'SessionState':
        return deepcopy(self)


class PendingCeremonySchema(Schema):
    kind = EnumField(CeremonyKind, required=True)
    challenge = Bytes(required=True)
    user_id = Integer(required=True)
    username = String(required=True)
    expires_at = DateTime(required=True)
    credential_ids = ListField(Bytes(), load_default=list)

    @post_load
    def make_pending_ceremony(self, data, **kwargs):
        return PendingCeremony(**data)


class SessionStateSchema(Schema):
    authenticated = Boolean(required=True)
    user_id = Integer(allow_none=True, load_default=None)
    username = String(allow_none=True, load_default=None)
    pending = Nested(PendingCeremonySchema, allow_none=True, load_default=None)

    @post_load
    def make_session_state(self, data, **kwargs):
        return SessionState(**data)


class SessionManager:
    """
    Reads and writes the session cookie.

    :param secret: The key the session tokens are signed with.
    :param max_age: How long an issued session token stays valid.
    :param secure: Whether the cookie may only be sent over https.
    """

    cookie_name = SESSION_COOKIE

    def __init__(self, secret: str, max_age: timedelta = timedelta(days=1), *, secure=True):
        if not secret:
            raise ValueError("The session manager needs a secret to sign sessions with.")
        self._secret = secret
        self.max_age = max_age
        self.secure = secure
        self._schema = SessionStateSchema()

    def load(self, token: Optional[str]) -> SessionState:
        """Gets the session stored in the token, or a fresh session if the token isn't valid."""
        if not token:
            return SessionState()

        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
            return self._schema.load(claims["session"])
        except (JWTError, ValidationError, KeyError, TypeError) as error:
            logger.debug("Discarding invalid session token: %s", error)
            return SessionState()

    def dump(self, state: SessionState) -> str:
        """Serializes and signs the session state into a token."""
        expiry = datetime.now(timezone.utc) + self.max_age
        claims = {
            "session": self._schema.dump(state),
            "exp": int(expiry.timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def save(self, response: StreamResponse, state: SessionState):
        """Stores the session on the client by setting the cookie on the response."""
        response.set_cookie(
            self.cookie_name, self.dump(state),
            max_age=int(self.max_age.total_seconds()),
            path="/", httponly=True, secure=self.secure, samesite="Lax",
        )

    @staticmethod
    def destroy(state: SessionState):
        """Logs the session out. Any pending ceremony is left to the ceremony manager."""
        state.clear_identity()
