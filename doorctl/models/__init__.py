"""
The models package contains all the models used on the server.

.. autoclasstree:: doorctl.models
"""

from .booking import Booking, BookingStatus
from .credential import Credential
from .user import User
