"""
Credentials
-----------
"""
from typing import List, Optional, Union

from tortoise.exceptions import IntegrityError

from doorctl.models import Credential, User


class CredentialExistsError(Exception):
    """Raised when a credential id is already bound to a user."""


async def get_credentials(user: Union[User, int]) -> List[Credential]:
    """Gets all the credentials bound to a user."""
    uid = user.id if isinstance(user, User) else user
    return await Credential.filter(user_id=uid).order_by("id")


async def get_credential(credential_id: bytes) -> Optional[Credential]:
    """Gets the credential with the given (raw) credential id."""
    return await Credential.filter(credential_id_hex=credential_id.hex()).first()


async def create_credential(
    user: User, credential_id: bytes, public_key: bytes, *,
    sign_count=0, backup_eligible=False, backup_state=False
) -> Credential:
    """
    Binds a new credential to the user.

    :raises CredentialExistsError: If the credential id is already registered.
    """
    try:
        return await Credential.create(
            user=user,
            credential_id_hex=credential_id.hex(),
            public_key=public_key,
            sign_count=sign_count,
            backup_eligible=backup_eligible,
            backup_state=backup_state,
        )
    except IntegrityError as error:
        raise CredentialExistsError(credential_id.hex()) from error


async def update_sign_count(credential: Credential, sign_count: int) -> Credential:
    """Stores the sign count most recently reported by the authenticator."""
    await Credential.filter(id=credential.id).update(sign_count=sign_count)
    credential.sign_count = sign_count
    return credential
