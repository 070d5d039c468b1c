"""
Model Serializers
-----------------

Defines serializers for the various models in the system,
as well as the request bodies the api accepts.
"""

from marshmallow import Schema, INCLUDE
from marshmallow.fields import Integer, String, DateTime, Float, Dict
from marshmallow.validate import Length, Range

from doorctl.models.booking import BookingStatus
from .fields import EnumField


class UserSchema(Schema):
    """The schema corresponding to the :class:`~doorctl.models.user.User` model."""

    id = Integer()
    username = String(required=True, validate=Length(min=1, max=64))
    display_name = String(required=True, validate=Length(min=1, max=255))


class RegistrationRequestSchema(Schema):
    username = String(required=True, validate=Length(min=1, max=64))
    display_name = String(required=True, data_key="displayName", validate=Length(min=1, max=255))


class LoginRequestSchema(Schema):
    username = String(required=True, validate=Length(min=1, max=64))


class CeremonyResponseSchema(Schema):
    """
    The public key credential produced by the browser's
    ``navigator.credentials.create()`` or ``navigator.credentials.get()``,
    encoded with base64url fields as the WebAuthn JSON serialization.
    """

    class Meta:
        unknown = INCLUDE

    id = String(required=True, validate=Length(min=1))
    rawId = String()
    type = String()
    response = Dict(required=True)
    clientExtensionResults = Dict()
    authenticatorAttachment = String(allow_none=True)


class BookingRequestSchema(Schema):
    start_time = Integer(required=True, strict=True, validate=Range(min=1))
    end_time = Integer(required=True, strict=True, validate=Range(min=1))


class BookingSchema(Schema):
    """The schema corresponding to the :class:`~doorctl.models.booking.Booking` model."""

    id = Integer(required=True)
    user_id = Integer()
    start_time = Integer(required=True)
    end_time = Integer(required=True)
    status = EnumField(BookingStatus, required=True)
    created_at = DateTime()


class UnlockRequestSchema(Schema):
    latitude = Float(required=True, validate=Range(min=-90, max=90))
    longitude = Float(required=True, validate=Range(min=-180, max=180))
