"""
Decorators
----------
"""
from functools import wraps
from http import HTTPStatus
from math import ceil

from aiohttp import web
from aiohttp.web_urldispatcher import View

from doorctl import logger
from doorctl.serializer import JSendSchema, JSendStatus
from doorctl.service.rate_limiter import client_key


def rate_limited(original_function):
    """
    Limits how often a client may call the route, using the view's rate limiter.
    A client that is over the limit gets a 429 with a ``Retry-After`` header.
    """

    @wraps(original_function)
    async def new_func(self: View, **kwargs):
        key = client_key(self.request, self.trust_forwarded_for)
        if not self.rate_limiter.allow(key):
            logger.warning("Rate limited %s on %s", key, self.request.path)
            retry_after = max(1, ceil(self.rate_limiter.retry_after(key)))
            return web.json_response(JSendSchema().dump({
                "status": JSendStatus.FAIL,
                "data": {"message": "Too many requests. Please try again later."}
            }), status=HTTPStatus.TOO_MANY_REQUESTS, headers={"Retry-After": str(retry_after)})

        return await original_function(self, **kwargs)

    return new_func
