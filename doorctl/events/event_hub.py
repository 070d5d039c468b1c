"""
Event Hub
---------

A hub collects the events of one or more :class:`~doorctl.events.EventList`
and dispatches emitted events to the handlers subscribed to them.
"""

from collections import defaultdict
from inspect import signature
from typing import Callable, List, Type, Union

from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError


class BoundEvent:
    """
    An event accessed through a hub. Supports the
    ``hub.event += handler`` and ``hub.event(*args)`` syntax.
    """

    def __init__(self, hub: 'EventHub', event: Callable):
        self.hub = hub
        self.event = event

    def __iadd__(self, handler):
        self.hub.subscribe(self.event, handler)
        return self

    def __isub__(self, handler):
        self.hub.unsubscribe(self.event, handler)
        return self

    def __call__(self, *args, **kwargs):
        self.hub.emit(self.event, *args, **kwargs)


class EventHub:

    def __init__(self, *event_lists: Type[EventList]):
        object.__setattr__(self, "_event_lists", set())
        object.__setattr__(self, "_events", {})
        object.__setattr__(self, "_listeners", defaultdict(list))
        self.add_events(*event_lists)

    def add_events(self, *event_lists: Type[EventList]):
        """Registers the events of the given event lists on the hub."""
        for event_list in event_lists:
            self._event_lists.add(event_list)
            for name in dir(event_list):
                if not name.startswith("_") and callable(getattr(event_list, name)):
                    self._events[name] = getattr(event_list, name)

    def subscribe(self, event: Union[Callable, BoundEvent], handler: Callable):
        """
        Subscribes a handler to an event.

        :raises NoSuchEventError: If the event is not on this hub.
        :raises InvalidHandlerError: If the handler can't accept the event's arguments.
        """
        event = self._resolve(event)
        arguments = _event_arguments(event)
        try:
            signature(handler).bind(*arguments)
        except TypeError as error:
            raise InvalidHandlerError(f"{handler} does not match the signature of {event.__name__}.") from error
        self._listeners[event.__name__].append(handler)

    def unsubscribe(self, event: Union[Callable, BoundEvent], handler: Callable):
        """
        Removes a handler from an event.

        :raises NoSuchListenerError: If the handler was never subscribed.
        """
        if isinstance(event, BoundEvent):
            event = event.event
        try:
            self._listeners[event.__name__].remove(handler)
        except ValueError as error:
            raise NoSuchListenerError(f"{handler} is not subscribed to {event.__name__}.") from error

    def emit(self, event: Union[Callable, BoundEvent], *args, **kwargs):
        """Calls every handler subscribed to the event with the given arguments."""
        event = self._resolve(event)
        for handler in list(self._listeners[event.__name__]):
            handler(*args, **kwargs)

    def _resolve(self, event: Union[Callable, BoundEvent]) -> Callable:
        if isinstance(event, BoundEvent):
            event = event.event
        if event not in self:
            raise NoSuchEventError(f"No such event {getattr(event, '__name__', event)} on this hub.")
        return self._events[event.__name__]

    def __contains__(self, item):
        if isinstance(item, type) and issubclass(item, EventList):
            return item in self._event_lists
        name = getattr(item, "__name__", None)
        return name in self._events and self._events[name] is item

    def __getattr__(self, name) -> BoundEvent:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return BoundEvent(self, self._events[name])
        except KeyError:
            raise NoSuchEventError(f"No such event {name} on this hub.")

    def __setattr__(self, name, value):
        # ``hub.event += handler`` assigns the bound event back to the hub
        if isinstance(value, BoundEvent) and name in self._events:
            return
        object.__setattr__(self, name, value)


def _event_arguments(event: Callable) -> List[str]:
    """Placeholder positional arguments matching the event's declared parameters."""
    parameters = list(signature(event).parameters)
    if parameters and parameters[0] == "self":
        parameters = parameters[1:]
    return parameters

