"""
Ceremony Manager
================

Handles passwordless registration and login with WebAuthn.

Both ceremonies take two requests. The *begin* request issues a fresh
challenge and stores it in the client's session, and the *finish* request
checks the authenticator's signed response against that challenge. The
challenge is only valid for a limited time and is removed from the
session once the ceremony succeeds.

Responsibilities
----------------

- register a user and bind their first credential
- log a user in with one of their credentials
- track sign counters and report possibly cloned authenticators
- log a user out
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from nacl.utils import random

from doorctl import logger
from doorctl.events import EventHub, EventList
from doorctl.models import User, Credential
from doorctl.service.access.credentials import (
    get_credentials, get_credential, create_credential, update_sign_count, CredentialExistsError,
)
from doorctl.service.access.users import get_user, create_user, UserExistsError
from doorctl.service.sessions import SessionState, SessionManager, PendingCeremony, CeremonyKind
from doorctl.service.verify_ceremony import CeremonyVerifier, VerificationError

CHALLENGE_SIZE = 32
"""The number of random bytes in a challenge."""

CEREMONY_TTL = timedelta(minutes=5)
"""How long a client has to finish a ceremony."""


class CeremonyError(Exception):
    """The base class for everything that can go wrong during a ceremony."""


class UserNotFoundError(CeremonyError):
    pass


class NoCeremonyInProgressError(CeremonyError):
    pass


class CeremonyExpiredError(CeremonyError):
    pass


class VerificationFailedError(CeremonyError):
    pass


class ClonedCredentialError(VerificationFailedError):
    """Raised when a credential's sign counter went backwards and clones are rejected."""


@dataclass(frozen=True)
class LoginResult:
    user: User
    credential: Credential
    clone_warning: bool


class CeremonyEvent(EventList):

    def user_registered(self, user: User, credential: Credential):
        """A user finished registering their first credential."""

    def user_logged_in(self, user: User, credential: Credential):
        """A user logged in."""

    def clone_warning(self, user: User, credential: Credential, stored_count: int, reported_count: int):
        """A credential reported a sign count that did not increase."""


def is_possible_clone(stored_count: int, reported_count: int) -> bool:
    """
    Checks a reported sign counter against the stored one. Authenticators that
    do not implement the counter always report zero and are never flagged.
    """
    return (reported_count > 0 or stored_count > 0) and reported_count <= stored_count


class CeremonyManager:
    """
    Runs the registration and login ceremonies, keeping the in-flight
    challenge in the client's :class:`~doorctl.service.sessions.SessionState`.

    :param verifier: The strategy used to build options and check responses.
    :param ttl: How long a challenge is valid for.
    :param reject_clones: Fail logins whose sign counter did not increase instead of just warning.
    """

    def __init__(self, verifier: CeremonyVerifier, ttl: timedelta = CEREMONY_TTL, *, reject_clones=False):
        self.verifier = verifier
        self.ttl = ttl
        self.reject_clones = reject_clones
        self.hub = EventHub(CeremonyEvent)

    async def begin_registration(self, session: SessionState, username: str, display_name: str) -> Dict[str, Any]:
        """
        Creates the user and issues a registration challenge.

        :raises UserExistsError: If the username is taken.
        """
        if await get_user(username=username) is not None:
            raise UserExistsError(username)

        user = await create_user(username, display_name)
        logger.info("Created user %s", user)

        challenge = random(CHALLENGE_SIZE)
        options = self.verifier.registration_options(user, challenge, [], self._timeout)
        session.pending = self._pending(CeremonyKind.REGISTRATION, challenge, user)
        return options

    async def finish_registration(self, session: SessionState, response: Dict[str, Any]) -> User:
        """
        Verifies the new credential and binds it to the user, logging them in.

        :raises NoCeremonyInProgressError: If no registration was begun.
        :raises CeremonyExpiredError: If the challenge timed out.
        :raises VerificationFailedError: If the response doesn't verify.
        """
        pending = self._take_pending(session, CeremonyKind.REGISTRATION)

        user = await get_user(user_id=pending.user_id)
        if user is None:
            raise NoCeremonyInProgressError("The user for this registration no longer exists.")

        try:
            verified = self.verifier.verify_registration(response, pending.challenge)
        except VerificationError as error:
            logger.info("Registration failed for %s: %s", user, error)
            raise VerificationFailedError("Could not verify the credential.") from error

        try:
            credential = await create_credential(
                user, verified.credential_id, verified.public_key,
                backup_eligible=verified.backup_eligible, backup_state=verified.backup_state,
            )
        except CredentialExistsError as error:
            raise VerificationFailedError("Could not verify the credential.") from error

        session.pending = None
        session.authenticate(user)
        logger.info("Registration completed for %s", user)
        self.hub.emit(CeremonyEvent.user_registered, user, credential)
        return user

    async def begin_login(self, session: SessionState, username: str) -> Dict[str, Any]:
        """
        Issues a login challenge that any of the user's credentials may answer.

        :raises UserNotFoundError: If the user doesn't exist or has no credentials.
        """
        user = await get_user(username=username)
        if user is None:
            raise UserNotFoundError(f"User {username} not found.")

        credentials = await get_credentials(user)
        if not credentials:
            raise UserNotFoundError(f"User {username} has no registered credentials.")

        credential_ids = [credential.credential_id for credential in credentials]
        challenge = random(CHALLENGE_SIZE)
        options = self.verifier.authentication_options(challenge, credential_ids, self._timeout)
        session.pending = self._pending(CeremonyKind.LOGIN, challenge, user, credential_ids)
        return options

    async def finish_login(self, session: SessionState, response: Dict[str, Any]) -> LoginResult:
        """
        Verifies the login signature and logs the user in.

        If the sign counter did not increase the credential may have been
        cloned. This is logged and emitted as :meth:`CeremonyEvent.clone_warning`,
        and the login fails only if the manager rejects clones.

        :raises NoCeremonyInProgressError: If no login was begun.
        :raises CeremonyExpiredError: If the challenge timed out.
        :raises VerificationFailedError: If the response doesn't verify.
        :raises ClonedCredentialError: If the counter did not increase and clones are rejected.
        """
        pending = self._take_pending(session, CeremonyKind.LOGIN)

        try:
            credential_id = self.verifier.credential_id(response)
        except VerificationError as error:
            raise VerificationFailedError("Could not verify the credential.") from error

        credential = await get_credential(credential_id)
        if credential_id not in pending.credential_ids or credential is None or credential.user_id != pending.user_id:
            logger.info("Login for %s answered with an unexpected credential", pending.username)
            raise VerificationFailedError("Could not verify the credential.")

        try:
            verified = self.verifier.verify_authentication(response, pending.challenge, credential.public_key)
        except VerificationError as error:
            logger.info("Login failed for %s: %s", pending.username, error)
            raise VerificationFailedError("Could not verify the credential.") from error

        user = await get_user(user_id=pending.user_id)
        if user is None:
            raise VerificationFailedError("Could not verify the credential.")

        stored_count = credential.sign_count
        clone_warning = is_possible_clone(stored_count, verified.sign_count)
        if clone_warning:
            logger.warning(
                "Clone warning for credential %s of %s: sign count %s after %s",
                credential.credential_id_hex, user, verified.sign_count, stored_count
            )
            self.hub.emit(CeremonyEvent.clone_warning, user, credential, stored_count, verified.sign_count)
            if self.reject_clones:
                raise ClonedCredentialError("The credential may have been cloned.")

        await update_sign_count(credential, verified.sign_count)

        session.pending = None
        session.authenticate(user)
        self.hub.emit(CeremonyEvent.user_logged_in, user, credential)
        return LoginResult(user, credential, clone_warning)

    @staticmethod
    def logout(session: SessionState):
        """Logs the session out. Logging out twice is harmless."""
        SessionManager.destroy(session)

    @property
    def _timeout(self) -> int:
        return int(self.ttl.total_seconds())

    def _pending(self, kind: CeremonyKind, challenge: bytes, user: User, credential_ids=None) -> PendingCeremony:
        return PendingCeremony(
            kind=kind,
            challenge=challenge,
            user_id=user.id,
            username=user.username,
            expires_at=datetime.now(timezone.utc) + self.ttl,
            credential_ids=credential_ids or [],
        )

    @staticmethod
    def _take_pending(session: SessionState, kind: CeremonyKind) -> PendingCeremony:
        """
        Gets the pending ceremony of the given kind from the session.
        An expired ceremony is removed from the session.
        """
        pending = session.pending
        if pending is None or pending.kind is not kind:
            raise NoCeremonyInProgressError(f"No {kind.value} in progress.")

        if pending.is_expired():
            session.pending = None
            raise CeremonyExpiredError(f"The {kind.value} challenge has expired.")

        return pending
