"""
This module contains the permission types. A permission is an
object that can be called asynchronously with the view and
raises a RoutePermissionError in the case of a failed permission.
"""

from doorctl.permissions.decorators import requires
from doorctl.permissions.permission import Permission, RoutePermissionError
from doorctl.permissions.users import UserIsAuthenticated
