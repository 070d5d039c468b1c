"""
Users
-----
"""
from typing import Optional

from tortoise.exceptions import IntegrityError

from doorctl.models import User


class UserExistsError(Exception):
    """Raised when a username is already taken."""

    def __init__(self, username):
        super().__init__(f"User {username} already exists.")
        self.username = username


async def get_user(*, username: str = None, user_id: int = None) -> Optional[User]:
    """
    :param username: The username of the user to get.
    :param user_id: The id of the user to get.
    :return: The matching user, or None.
    """

    kwargs = {}
    if username is not None:
        kwargs["username"] = username

    if user_id is not None:
        kwargs["id"] = user_id

    if not kwargs:
        return None

    return await User.filter(**kwargs).first()


async def create_user(username: str, display_name: str) -> User:
    """
    Creates a new user.

    :raises UserExistsError: When a user with the given username already exists.
    """
    try:
        return await User.create(username=username, display_name=display_name)
    except IntegrityError as error:
        raise UserExistsError(username) from error
