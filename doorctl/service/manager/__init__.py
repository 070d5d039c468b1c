"""
The managers hold the business logic of the system, combining the
access functions with the rules around ceremonies, bookings and the door.
"""
