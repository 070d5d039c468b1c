"""
Middleware
----------
"""

from http import HTTPStatus

from aiohttp import web
from aiohttp.abc import Request
from aiohttp.web_middlewares import middleware

from doorctl import logger
from doorctl.serializer import JSendStatus, JSendSchema

response_schema = JSendSchema()


@middleware
async def error_middleware(request: Request, handler):
    """
    Turns any unhandled exception into a JSend error response so
    that a failing request never takes down the server.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.rel_url)
        return web.json_response(response_schema.dump({
            "status": JSendStatus.ERROR,
            "message": "Something went wrong on our end. Please try again later.",
        }), status=HTTPStatus.INTERNAL_SERVER_ERROR)


@middleware
async def session_middleware(request: Request, handler):
    """
    Loads the client's session from its cookie and stores it on the request as
    the "session". When the handler changes the session, the cookie is updated.
    """
    session_manager = request.app["session_manager"]
    session = session_manager.load(request.cookies.get(session_manager.cookie_name))
    original = session.copy()
    request["session"] = session

    response = await handler(request)

    if session != original and isinstance(response, web.StreamResponse) and not response.prepared:
        session_manager.save(response, session)

    return response
