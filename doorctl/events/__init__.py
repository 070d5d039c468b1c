"""
.. autoclasstree:: doorctl.events

This module provides a simple event system. It is centered around the use of hubs.
A hub is created by passing a number of event lists in. These event lists provide
typed callback signatures which subscribers can use to implement their handlers.

>>> class DoorEvents(EventList):
>>>     @staticmethod
>>>     def opened(name: str):
>>>         "Somebody opened the door."
>>>
>>> def door_handler(name):
>>>     print(f"Door opened by {name}")
>>>
>>> hub = EventHub(DoorEvents)
>>> hub.subscribe(DoorEvents.opened, door_handler)
>>> hub.emit(DoorEvents.opened, "alex")
Door opened by alex
"""

from .event_hub import EventHub
from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError
