"""
Verify Ceremony
---------------

The WebAuthn challenge / response strategies. The verifier builds
the options the browser needs to create or use a credential, and
checks the signed responses the browser sends back.

The cryptography itself is handled by py_webauthn.
"""
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Dict, Any

from webauthn import (
    generate_registration_options, generate_authentication_options,
    verify_registration_response, verify_authentication_response,
)
from webauthn.helpers import base64url_to_bytes, options_to_json
from webauthn.helpers.exceptions import WebAuthnException
from webauthn.helpers.structs import (
    AuthenticatorSelectionCriteria, CredentialDeviceType, PublicKeyCredentialDescriptor,
    ResidentKeyRequirement, UserVerificationRequirement,
)

from doorctl.models import User


class VerificationError(Exception):
    pass


@dataclass(frozen=True)
class RelyingParty:
    """The identity the credentials are bound to."""

    id: str
    name: str
    origins: List[str]


@dataclass(frozen=True)
class VerifiedCredential:
    """A newly attested credential."""

    credential_id: bytes
    public_key: bytes
    sign_count: int
    backup_eligible: bool
    backup_state: bool


@dataclass(frozen=True)
class VerifiedAssertion:
    """A verified login signature."""

    credential_id: bytes
    sign_count: int


class CeremonyVerifier(ABC):

    @abstractmethod
    def registration_options(
        self, user: User, challenge: bytes, exclude: List[bytes], timeout: int
    ) -> Dict[str, Any]:
        """
        Builds the ``PublicKeyCredentialCreationOptions`` for a user.

        :param exclude: The ids of credentials the user has already registered.
        :param timeout: How long the client has to respond, in seconds.
        """

    @abstractmethod
    def authentication_options(
        self, challenge: bytes, credential_ids: List[bytes], timeout: int
    ) -> Dict[str, Any]:
        """Builds the ``PublicKeyCredentialRequestOptions`` for the given credentials."""

    @abstractmethod
    def verify_registration(self, response: Dict[str, Any], challenge: bytes) -> VerifiedCredential:
        """
        Verifies the attestation in a registration response against the challenge.

        :raises VerificationError: When the response is invalid.
        """

    @abstractmethod
    def verify_authentication(
        self, response: Dict[str, Any], challenge: bytes, public_key: bytes
    ) -> VerifiedAssertion:
        """
        Verifies the signature in a login response against the challenge and the
        credential's public key. The sign counter is returned, not checked.

        :raises VerificationError: When the response is invalid.
        """

    @staticmethod
    def credential_id(response: Dict[str, Any]) -> bytes:
        """
        Gets the raw id of the credential that produced a response.

        :raises VerificationError: When the id is missing or malformed.
        """
        try:
            return base64url_to_bytes(response.get("rawId") or response["id"])
        except (KeyError, TypeError, ValueError) as error:
            raise VerificationError("Malformed credential id.") from error


class WebAuthnVerifier(CeremonyVerifier):
    """
    Verifies ceremonies with py_webauthn.
    """

    def __init__(self, relying_party: RelyingParty):
        self.relying_party = relying_party

    def registration_options(self, user, challenge, exclude, timeout):
        options = generate_registration_options(
            rp_id=self.relying_party.id,
            rp_name=self.relying_party.name,
            user_id=user.user_handle,
            user_name=user.username,
            user_display_name=user.display_name,
            challenge=challenge,
            timeout=timeout * 1000,
            exclude_credentials=[PublicKeyCredentialDescriptor(id=cid) for cid in exclude],
            authenticator_selection=AuthenticatorSelectionCriteria(
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
        )
        return json.loads(options_to_json(options))

    def authentication_options(self, challenge, credential_ids, timeout):
        options = generate_authentication_options(
            rp_id=self.relying_party.id,
            challenge=challenge,
            timeout=timeout * 1000,
            allow_credentials=[PublicKeyCredentialDescriptor(id=cid) for cid in credential_ids],
            user_verification=UserVerificationRequirement.PREFERRED,
        )
        return json.loads(options_to_json(options))

    def verify_registration(self, response, challenge):
        try:
            verification = verify_registration_response(
                credential=response,
                expected_challenge=challenge,
                expected_rp_id=self.relying_party.id,
                expected_origin=self.relying_party.origins,
            )
        except (WebAuthnException, KeyError, TypeError, ValueError) as error:
            raise VerificationError("Registration response is invalid.") from error

        return VerifiedCredential(
            credential_id=verification.credential_id,
            public_key=verification.credential_public_key,
            sign_count=verification.sign_count,
            backup_eligible=verification.credential_device_type == CredentialDeviceType.MULTI_DEVICE,
            backup_state=verification.credential_backed_up,
        )

    def verify_authentication(self, response, challenge, public_key):
        try:
            verification = verify_authentication_response(
                credential=response,
                expected_challenge=challenge,
                expected_rp_id=self.relying_party.id,
                expected_origin=self.relying_party.origins,
                credential_public_key=public_key,
                # the counter is compared by the ceremony manager, which decides on clones
                credential_current_sign_count=0,
            )
        except (WebAuthnException, KeyError, TypeError, ValueError) as error:
            raise VerificationError("Authentication response is invalid.") from error

        return VerifiedAssertion(
            credential_id=verification.credential_id,
            sign_count=verification.new_sign_count,
        )
