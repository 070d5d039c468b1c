from unittest.mock import patch

import pytest
from webauthn import verify_authentication_response
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url

from doorctl.service.manager.ceremony_manager import is_possible_clone
from doorctl.service.verify_ceremony import WebAuthnVerifier, RelyingParty, VerificationError

ORIGIN = "http://localhost:5000"

# a "none" attestation made by a security key for localhost
registration = {
    "id": "9y1xA8Tmg1FEmT-c7_fvWZ_uoTuoih3OvR45_oAK-cwHWhAbXrl2q62iLVTjiyEZ7O7n-CROOY494k7Q3xrs_w",
    "rawId": "9y1xA8Tmg1FEmT-c7_fvWZ_uoTuoih3OvR45_oAK-cwHWhAbXrl2q62iLVTjiyEZ7O7n-CROOY494k7Q3xrs_w",
    "response": {
        "attestationObject": "o2NmbXRkbm9uZWdhdHRTdG10oGhhdXRoRGF0YVjESZYN5YgOjGh0NBcPZHZgW4_krrmihjLHmVzzuoMdl2NFAAAAFwAAAAAAAAAAAAAAAAAAAAAAQPctcQPE5oNRRJk_nO_371mf7qE7qIodzr0eOf6ACvnMB1oQG165dqutoi1U44shGezu5_gkTjmOPeJO0N8a7P-lAQIDJiABIVggSFbUJF-42Ug3pdM8rDRFu_N5oiVEysPDB6n66r_7dZAiWCDUVnB39FlGypL-qAoIO9xWHtJygo2jfDmHl-_eKFRLDA",
        "clientDataJSON": "eyJ0eXBlIjoid2ViYXV0aG4uY3JlYXRlIiwiY2hhbGxlbmdlIjoiVHdON240V1R5R0tMYzRaWS1xR3NGcUtuSE00bmdscXN5VjBJQ0psTjJUTzlYaVJ5RnRya2FEd1V2c3FsLWdrTEpYUDZmbkYxTWxyWjUzTW00UjdDdnciLCJvcmlnaW4iOiJodHRwOi8vbG9jYWxob3N0OjUwMDAiLCJjcm9zc09yaWdpbiI6ZmFsc2V9"
    },
    "type": "public-key",
    "clientExtensionResults": {},
    "transports": ["nfc", "usb"]
}
registration_challenge = base64url_to_bytes(
    "TwN7n4WTyGKLc4ZY-qGsFqKnHM4nglqsyV0ICJlN2TO9XiRyFtrkaDwUvsql-gkLJXP6fnF1MlrZ53Mm4R7Cvw"
)
registration_public_key = base64url_to_bytes(
    "pQECAyYgASFYIEhW1CRfuNlIN6XTPKw0RbvzeaIlRMrDwwep-uq_-3WQIlgg1FZwd_RZRsqS_qgKCDvcVh7ScoKNo3w5h5fv3ihUSww"
)

# a login signed with an EC2 key, reporting a sign count of 78
assertion = {
    "id": "EDx9FfAbp4obx6oll2oC4-CZuDidRVV4gZhxC529ytlnqHyqCStDUwfNdm1SNHAe3X5KvueWQdAX3x9R1a2b9Q",
    "rawId": "EDx9FfAbp4obx6oll2oC4-CZuDidRVV4gZhxC529ytlnqHyqCStDUwfNdm1SNHAe3X5KvueWQdAX3x9R1a2b9Q",
    "response": {
        "authenticatorData": "SZYN5YgOjGh0NBcPZHZgW4_krrmihjLHmVzzuoMdl2MBAAAATg",
        "clientDataJSON": "eyJjaGFsbGVuZ2UiOiJ4aTMwR1BHQUZZUnhWRHBZMXNNMTBEYUx6VlFHNjZudi1fN1JVYXpIMHZJMll2RzhMWWdERW52TjVmWlpOVnV2RUR1TWk5dGUzVkxxYjQyTjBma0xHQSIsImNsaWVudEV4dGVuc2lvbnMiOnt9LCJoYXNoQWxnb3JpdGhtIjoiU0hBLTI1NiIsIm9yaWdpbiI6Imh0dHA6Ly9sb2NhbGhvc3Q6NTAwMCIsInR5cGUiOiJ3ZWJhdXRobi5nZXQifQ",
        "signature": "MEUCIGisVZOBapCWbnJJvjelIzwpixxIwkjCCb5aCHafQu68AiEA88v-2pJNNApPFwAKFiNuf82-2hBxYW5kGwVweeoxCwo"
    },
    "type": "public-key",
    "clientExtensionResults": {}
}
assertion_challenge = base64url_to_bytes(
    "xi30GPGAFYRxVDpY1sM10DaLzVQG66nv-_7RUazH0vI2YvG8LYgDEnvN5fZZNVuvEDuMi9te3VLqb42N0fkLGA"
)
assertion_public_key = base64url_to_bytes(
    "pQECAyYgASFYIIeDTe-gN8A-zQclHoRnGFWN8ehM1b7yAsa8I8KIvmplIlgg4nFGT5px8o6gpPZZhO01wdy9crDSA_Ngtkx0vGpvPHI"
)

# a login whose signature was not made by the key it is checked against
forged_assertion = {
    "id": "FviUBZA3FGMxEm3A1K2T8MhuEBLp4qQsV9ScAKYrpdw2kbGnqx24tF4ev6PEHEYC3g8z6HMJh7dYHe3Uuq7_8Q",
    "rawId": "FviUBZA3FGMxEm3A1K2T8MhuEBLp4qQsV9ScAKYrpdw2kbGnqx24tF4ev6PEHEYC3g8z6HMJh7dYHe3Uuq7_8Q",
    "response": {
        "authenticatorData": "SZYN5YgOjGh0NBcPZHZgW4_krrmihjLHmVzzuoMdl2MFAAAAJA",
        "clientDataJSON": "eyJ0eXBlIjoid2ViYXV0aG4uZ2V0IiwiY2hhbGxlbmdlIjoienNmaU1aajE2VFVWQ3JUNXREUllYZFlsVXJKcDd6bl9VTmQ1Tm1Cb2NQYzRJMmRLWmJlRVdwd0JBd0E0czZvSGtWWDZfbHlfamdwNzQzZHlpV0hZWXciLCJvcmlnaW4iOiJodHRwOi8vbG9jYWxob3N0OjUwMDAiLCJjcm9zc09yaWdpbiI6ZmFsc2V9",
        "signature": "MEQCIBX9B1LaLaQ0LYJsRv7cOyMS-Do1rJfFJoF9oO1tHMA4AiBRKdNneMKPlN53i8uoTZ5y9Gj4ORZySmiercS38655_g"
    },
    "type": "public-key",
    "clientExtensionResults": {}
}
forged_assertion_challenge = base64url_to_bytes(
    "zsfiMZj16TUVCrT5tDRYXdYlUrJp7zn_UNd5NmBocPc4I2dKZbeEWpwBAwA4s6oHkVX6_ly_jgp743dyiWHYYw"
)
forged_assertion_public_key = base64url_to_bytes(
    "pAEDAzkBACBZAQDfV20epzvQP-HtcdDpX-cGzdOxy73WQEvsU7Dnr9UWJophEfpngouvgnRLXaEUn_d8HGkp_HIx8rrpkx4BVs6X_B6ZjhLlezjIdJbLbVeb92BaEsmNn1HW2N9Xj2QM8cH-yx28_vCjf82ahQ9gyAr552Bn96G22n8jqFRQKdVpO-f-bvpvaP3IQ9F5LCX7CUaxptgbog1SFO6FI6ob5SlVVB00lVXsaYg8cIDZxCkkENkGiFPgwEaZ7995SCbiyCpUJbMqToLMgojPkAhWeyktu7TlK6UBWdJMHc3FPAIs0lH_2_2hKS-mGI1uZAFVAfW1X-mzKL0czUm2P1UlUox7IUMBAAE"
)


@pytest.fixture
def webauthn_verifier():
    return WebAuthnVerifier(RelyingParty("localhost", "Door Control", ["https://door.example", ORIGIN]))


class TestOptions:

    async def test_registration_options(self, webauthn_verifier, random_user):
        existing = b"\x01\x02\x03"
        options = webauthn_verifier.registration_options(random_user, b"challenge", [existing], 300)

        assert options["rp"] == {"id": "localhost", "name": "Door Control"}
        assert options["user"]["id"] == bytes_to_base64url(random_user.user_handle)
        assert options["user"]["name"] == random_user.username
        assert options["user"]["displayName"] == random_user.display_name
        assert options["challenge"] == bytes_to_base64url(b"challenge")
        assert options["timeout"] == 300000
        assert options["excludeCredentials"] == [{"id": bytes_to_base64url(existing), "type": "public-key"}]
        assert options["authenticatorSelection"]["residentKey"] == "preferred"
        assert options["pubKeyCredParams"]

    def test_authentication_options(self, webauthn_verifier):
        credential_ids = [b"\x01\x02\x03", b"\x04\x05\x06"]
        options = webauthn_verifier.authentication_options(b"challenge", credential_ids, 300)

        assert options["challenge"] == bytes_to_base64url(b"challenge")
        assert options["timeout"] == 300000
        assert options["rpId"] == "localhost"
        assert options["allowCredentials"] == [
            {"id": bytes_to_base64url(cid), "type": "public-key"} for cid in credential_ids
        ]


class TestVerifyRegistration:

    def test_verify(self, webauthn_verifier):
        verified = webauthn_verifier.verify_registration(registration, registration_challenge)

        assert verified.credential_id == base64url_to_bytes(registration["rawId"])
        assert verified.public_key == registration_public_key
        assert verified.sign_count == 23
        assert verified.backup_eligible is False
        assert verified.backup_state is False

    def test_wrong_challenge(self, webauthn_verifier):
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_registration(registration, assertion_challenge)

    @pytest.mark.parametrize("relying_party", [
        RelyingParty("localhost", "Door Control", ["https://door.example"]),
        RelyingParty("door.example", "Door Control", [ORIGIN]),
    ])
    def test_wrong_relying_party(self, relying_party):
        with pytest.raises(VerificationError):
            WebAuthnVerifier(relying_party).verify_registration(registration, registration_challenge)

    @pytest.mark.parametrize("response", [
        {},
        {"id": registration["id"], "rawId": registration["rawId"], "type": "public-key", "response": {}},
        {**registration, "response": {**registration["response"], "attestationObject": "o2NmbXRkbm9uZQ"}},
        "not a credential",
    ])
    def test_malformed(self, webauthn_verifier, response):
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_registration(response, registration_challenge)


class TestVerifyAuthentication:

    def test_verify(self, webauthn_verifier):
        verified = webauthn_verifier.verify_authentication(assertion, assertion_challenge, assertion_public_key)

        assert verified.credential_id == base64url_to_bytes(assertion["rawId"])
        assert verified.sign_count == 78

    def test_counter_left_to_caller(self, webauthn_verifier):
        """
        Assert that the sign count is returned without being compared, so a
        count that didn't increase is reported as a clone instead of failing.
        """
        with patch(
            "doorctl.service.verify_ceremony.verify_authentication_response", wraps=verify_authentication_response
        ) as verify:
            verified = webauthn_verifier.verify_authentication(assertion, assertion_challenge, assertion_public_key)

        assert verify.call_args.kwargs["credential_current_sign_count"] == 0
        assert is_possible_clone(78, verified.sign_count)
        assert is_possible_clone(100, verified.sign_count)

    def test_wrong_public_key(self, webauthn_verifier):
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_authentication(
                forged_assertion, forged_assertion_challenge, forged_assertion_public_key
            )

    def test_wrong_challenge(self, webauthn_verifier):
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_authentication(assertion, registration_challenge, assertion_public_key)

    def test_wrong_relying_party(self):
        verifier = WebAuthnVerifier(RelyingParty("door.example", "Door Control", [ORIGIN]))
        with pytest.raises(VerificationError):
            verifier.verify_authentication(assertion, assertion_challenge, assertion_public_key)

    def test_tampered_signature(self, webauthn_verifier):
        tampered = {**assertion, "response": {**assertion["response"], "signature": forged_assertion["response"]["signature"]}}
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_authentication(tampered, assertion_challenge, assertion_public_key)

    @pytest.mark.parametrize("response", [
        {},
        {"id": assertion["id"], "rawId": assertion["rawId"], "type": "public-key", "response": {}},
        "not a credential",
    ])
    def test_malformed(self, webauthn_verifier, response):
        with pytest.raises(VerificationError):
            webauthn_verifier.verify_authentication(response, assertion_challenge, assertion_public_key)
