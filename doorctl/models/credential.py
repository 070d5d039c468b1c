"""
Credential
-------------------------

A public key credential bound to a user during registration. The private
half never leaves the user's authenticator; the server only stores what
it needs to verify the authenticator's signatures on later logins.
"""

from tortoise import Model, fields


class Credential(Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="credentials")
    credential_id_hex: str = fields.CharField(max_length=2048, unique=True)
    public_key = fields.BinaryField()
    sign_count = fields.BigIntField(default=0)
    backup_eligible = fields.BooleanField(default=False)
    backup_state = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    @property
    def credential_id(self) -> bytes:
        return bytes.fromhex(self.credential_id_hex)

    def __str__(self):
        return f"[{self.id}] {self.credential_id_hex[:16]}… (user {self.user_id})"
