from aiohttp.web_urldispatcher import View

from doorctl.permissions.permission import RoutePermissionError, Permission
from doorctl.service.access.users import get_user


class UserIsAuthenticated(Permission):
    """
    Asserts that the session is logged in as a user that still exists,
    and stores that user on the request as the "user".
    """

    async def __call__(self, view: View, **kwargs):
        session = view.request.get("session")
        if session is None or not session.is_authenticated:
            raise RoutePermissionError("You are not logged in.")

        user = await get_user(user_id=session.user_id)
        if user is None:
            raise RoutePermissionError("The logged in user no longer exists.")

        view.request["user"] = user

    def __repr__(self):
        return "UserIsAuthenticated()"
