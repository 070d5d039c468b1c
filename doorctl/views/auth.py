"""
Authentication Related Views
----------------------------

Handles passwordless registration and login. Each ceremony is two
requests: the *begin* route returns the options to pass to the
browser's credential api, and the *finish* route accepts the
credential the browser produced.

The ceremony routes are rate limited per client.
"""
from http import HTTPStatus

from marshmallow.fields import Boolean, Dict

from doorctl import logger
from doorctl.permissions import requires, UserIsAuthenticated
from doorctl.serializer import JSendSchema, JSendStatus, expects, returns
from doorctl.serializer.models import (
    UserSchema, RegistrationRequestSchema, LoginRequestSchema, CeremonyResponseSchema,
)
from doorctl.service.access.users import UserExistsError
from doorctl.service.manager.ceremony_manager import (
    UserNotFoundError, NoCeremonyInProgressError, CeremonyExpiredError, VerificationFailedError,
)
from doorctl.views.base import BaseView
from doorctl.views.decorators import rate_limited

OptionsSchema = JSendSchema.of(options=Dict())


def _fail(message: str):
    return {
        "status": JSendStatus.FAIL,
        "data": {"message": message}
    }


class RegisterBeginView(BaseView):
    """
    Creates a user and starts the registration of their first credential.
    """
    url = "/register/begin"

    @rate_limited
    @expects(RegistrationRequestSchema())
    @returns(
        user_exists=(JSendSchema(), HTTPStatus.CONFLICT),
        options=OptionsSchema,
    )
    async def post(self):
        username = self.request["data"]["username"]
        logger.info("Registration attempt for %s", username)

        try:
            options = await self.ceremony_manager.begin_registration(
                self.session, username, self.request["data"]["display_name"]
            )
        except UserExistsError as error:
            return "user_exists", _fail(str(error))

        return "options", {
            "status": JSendStatus.SUCCESS,
            "data": {"options": options}
        }


class RegisterFinishView(BaseView):
    """
    Binds the newly created credential to the user and logs them in.
    """
    url = "/register/finish"

    @rate_limited
    @expects(CeremonyResponseSchema())
    @returns(
        no_ceremony=(JSendSchema(), HTTPStatus.BAD_REQUEST),
        verification_failed=(JSendSchema(), HTTPStatus.UNAUTHORIZED),
        registered=JSendSchema.of(user=UserSchema()),
    )
    async def post(self):
        try:
            user = await self.ceremony_manager.finish_registration(self.session, self.request["data"])
        except (NoCeremonyInProgressError, CeremonyExpiredError) as error:
            return "no_ceremony", _fail(str(error))
        except VerificationFailedError as error:
            return "verification_failed", _fail(str(error))

        return "registered", {
            "status": JSendStatus.SUCCESS,
            "data": {"user": user.serialize()}
        }


class LoginBeginView(BaseView):
    """
    Starts a login with one of the user's credentials.
    """
    url = "/login/begin"

    @rate_limited
    @expects(LoginRequestSchema())
    @returns(
        not_found=(JSendSchema(), HTTPStatus.NOT_FOUND),
        options=OptionsSchema,
    )
    async def post(self):
        try:
            options = await self.ceremony_manager.begin_login(self.session, self.request["data"]["username"])
        except UserNotFoundError as error:
            return "not_found", _fail(str(error))

        return "options", {
            "status": JSendStatus.SUCCESS,
            "data": {"options": options}
        }


class LoginFinishView(BaseView):
    """
    Checks the login signature and logs the user in.
    """
    url = "/login/finish"

    @rate_limited
    @expects(CeremonyResponseSchema())
    @returns(
        no_ceremony=(JSendSchema(), HTTPStatus.BAD_REQUEST),
        verification_failed=(JSendSchema(), HTTPStatus.UNAUTHORIZED),
        logged_in=JSendSchema.of(user=UserSchema(), clone_warning=Boolean()),
    )
    async def post(self):
        try:
            result = await self.ceremony_manager.finish_login(self.session, self.request["data"])
        except (NoCeremonyInProgressError, CeremonyExpiredError) as error:
            return "no_ceremony", _fail(str(error))
        except VerificationFailedError as error:
            return "verification_failed", _fail(str(error))

        return "logged_in", {
            "status": JSendStatus.SUCCESS,
            "data": {"user": result.user.serialize(), "clone_warning": result.clone_warning}
        }


class LogoutView(BaseView):
    url = "/logout"

    @returns(JSendSchema())
    async def post(self):
        self.ceremony_manager.logout(self.session)
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"message": "Logged out."}
        }


class MeView(BaseView):
    """
    Gets the logged in user.
    """
    url = "/me"

    @requires(UserIsAuthenticated())
    @returns(JSendSchema.of(user=UserSchema()))
    async def get(self):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"user": self.request["user"].serialize()}
        }
