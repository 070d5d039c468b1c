from random import getrandbits

from webauthn.helpers import bytes_to_base64url, base64url_to_bytes

from doorctl.service.verify_ceremony import (
    CeremonyVerifier, VerificationError, VerifiedCredential, VerifiedAssertion,
)

STUDIO_LATITUDE = 55.9533
STUDIO_LONGITUDE = -3.1883


def random_key(size) -> bytes:
    return bytes(getrandbits(8) for _ in range(size))


class FrozenClock:
    """A monotonic clock that only moves when told to."""

    def __init__(self, now=0.0):
        self.now = now

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


class DummyCeremonyVerifier(CeremonyVerifier):
    """
    Stands in for the authenticator and py_webauthn. A response is valid when it
    echoes the challenge it answers, and a login response is "signed" with a
    public key by including that key.
    """

    def registration_options(self, user, challenge, exclude, timeout):
        return {
            "challenge": bytes_to_base64url(challenge),
            "rp": {"id": "localhost", "name": "Door Control"},
            "user": {"id": bytes_to_base64url(user.user_handle), "name": user.username, "displayName": user.display_name},
            "excludeCredentials": [{"id": bytes_to_base64url(cid), "type": "public-key"} for cid in exclude],
            "timeout": timeout * 1000,
        }

    def authentication_options(self, challenge, credential_ids, timeout):
        return {
            "challenge": bytes_to_base64url(challenge),
            "rpId": "localhost",
            "allowCredentials": [{"id": bytes_to_base64url(cid), "type": "public-key"} for cid in credential_ids],
            "timeout": timeout * 1000,
        }

    def verify_registration(self, response, challenge):
        self._check_challenge(response, challenge)
        return VerifiedCredential(
            credential_id=self.credential_id(response),
            public_key=base64url_to_bytes(response["response"]["publicKey"]),
            sign_count=response["response"].get("signCount", 0),
            backup_eligible=False,
            backup_state=False,
        )

    def verify_authentication(self, response, challenge, public_key):
        self._check_challenge(response, challenge)
        if response["response"].get("signature") != bytes_to_base64url(public_key):
            raise VerificationError("Signature does not match the public key.")
        return VerifiedAssertion(
            credential_id=self.credential_id(response),
            sign_count=response["response"].get("signCount", 0),
        )

    @staticmethod
    def _check_challenge(response, challenge):
        try:
            answered = response["response"]["challenge"]
        except (KeyError, TypeError) as error:
            raise VerificationError("Missing challenge.") from error
        if answered != bytes_to_base64url(challenge):
            raise VerificationError("Challenge does not match.")


def registration_response(options, credential_id: bytes, public_key: bytes, challenge=None):
    """Builds the credential a browser would send to finish a registration."""
    encoded_id = bytes_to_base64url(credential_id)
    return {
        "id": encoded_id,
        "rawId": encoded_id,
        "type": "public-key",
        "response": {
            "challenge": challenge if challenge is not None else options["challenge"],
            "publicKey": bytes_to_base64url(public_key),
        },
        "clientExtensionResults": {},
    }


def login_response(options, credential_id: bytes, public_key: bytes, sign_count=0, challenge=None):
    """Builds the credential a browser would send to finish a login."""
    encoded_id = bytes_to_base64url(credential_id)
    return {
        "id": encoded_id,
        "rawId": encoded_id,
        "type": "public-key",
        "response": {
            "challenge": challenge if challenge is not None else options["challenge"],
            "signature": bytes_to_base64url(public_key),
            "signCount": sign_count,
        },
        "clientExtensionResults": {},
    }
