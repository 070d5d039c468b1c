"""
Permission
----------
"""

from abc import ABC, abstractmethod
from itertools import chain
from typing import List

from aiohttp.web_urldispatcher import View


class RoutePermissionError(Exception):

    def __init__(self, *messages, qualifier=None, sub_errors: List['RoutePermissionError'] = None):
        """
        :param sub_errors: Any additional sub-errors encountered.
        """

        if messages and (qualifier is not None or sub_errors is not None):
            raise ValueError("RoutePermissionError may either return a message or sub errors.")

        self.messages = messages
        self.sub_errors = sub_errors if sub_errors is not None else []
        self.qualifier = qualifier

    def __str__(self):
        """A friendly description of the error."""
        friendly_errors = [str(error) for error in self.sub_errors]
        if len(friendly_errors) > 1:
            friendly_errors[-1] = f"{self.qualifier} {friendly_errors[-1]}"

        messages = [m.lower().strip(".") for m in self.messages]
        return ", ".join(messages + friendly_errors)

    def serialize(self):
        """The messages of the error followed by those of its sub-errors."""
        return list(self.messages) + list(chain.from_iterable(err.serialize() for err in self.sub_errors))


class Permission(ABC):
    """
    The base class for permissions. Permissions can be combined
    with the ``&`` operator, which requires all of them to pass.
    """

    def __and__(self, other):
        permissions = []
        for elem in (self, other):
            if isinstance(elem, AndPermission):
                permissions += elem.permissions
            else:
                permissions.append(elem)
        return AndPermission(*permissions)

    @abstractmethod
    async def __call__(self, view: View, **kwargs) -> None:
        """
        Evaluates the permission.

        :raises RoutePermissionError: If the permission failed.
        """


class AndPermission(Permission):

    def __init__(self, *permissions):
        self.permissions = permissions

    async def __call__(self, view, **kwargs):
        errors = []

        for permission in self.permissions:
            try:
                await permission(view, **kwargs)
            except RoutePermissionError as error:
                errors.append(error)

        if errors:
            raise RoutePermissionError(qualifier="and", sub_errors=errors)

    def __repr__(self):
        return "(" + " & ".join(repr(p) for p in self.permissions) + ")"
