"""
User
---------------------------
"""

from nacl.utils import random
from tortoise import Model, fields

USER_HANDLE_SIZE = 64
"""The number of random bytes in a user handle, the most WebAuthn allows."""


def generate_user_handle() -> bytes:
    return random(USER_HANDLE_SIZE)


class User(Model):
    """
    Represents a User in the system. Users are created when they
    begin registering and are identified by their unique username.

    Authenticators know the user by their ``user_handle`` instead, an
    opaque random value that reveals nothing about them.
    """

    id = fields.IntField(pk=True)
    username = fields.CharField(max_length=64, unique=True)
    display_name = fields.CharField(max_length=255)
    user_handle = fields.BinaryField(default=generate_user_handle)
    created_at = fields.DatetimeField(auto_now_add=True)

    def serialize(self):
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
        }

    def __str__(self):
        return f"[{self.id}] {self.display_name} ({self.username})"
