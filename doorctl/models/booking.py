"""
Booking
-------

A reservation of the facility for a time window. The window is
stored as a pair of unix timestamps and is treated as half-open
when checking for overlaps.
"""

from enum import Enum

from tortoise import Model, fields


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="bookings")
    start_time = fields.BigIntField()
    end_time = fields.BigIntField()
    status = fields.CharEnumField(BookingStatus, default=BookingStatus.ACTIVE)
    created_at = fields.DatetimeField(auto_now_add=True)

    def serialize(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status,
            "created_at": self.created_at,
        }

    def __str__(self):
        return f"[{self.id}] {self.start_time}-{self.end_time} ({self.status.value})"
