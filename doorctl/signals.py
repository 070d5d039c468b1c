"""
Signals
-------

Defines the signals that the aiohttp server uses to set up
and tear down the database and the background tasks.

Each signal must accept an the ``app`` argument.
"""
import asyncio
from asyncio import CancelledError
from contextlib import suppress
from datetime import timedelta

from aiohttp.abc import Application
from tortoise import Tortoise

from doorctl import logger


async def initialize_database(app: Application):
    """
    Initializes and generates the schema for our database. Any failure
    propagates out of the startup hook and the server does not start.
    """
    logger.info("Connecting to %s", app['database_uri'])
    await Tortoise.init(
        db_url=app['database_uri'],
        modules={'models': ['doorctl.models']},
        _enable_global_fallback=True,  # requests run in tasks outside the startup hook
    )
    await Tortoise.generate_schemas(safe=True)


async def close_database_connections(app: Application):
    """Closes the open database connections."""
    await Tortoise.close_connections()


async def start_background_tasks(app: Application):
    """Starts the background tasks."""
    logger.info("Starting Background Tasks")
    loop = asyncio.get_event_loop()

    interval = timedelta(seconds=app['rate_limit_sweep_period'])
    app['rate_limit_sweeper'] = loop.create_task(app['rate_limiter'].run_sweeper(interval))


async def stop_background_tasks(app: Application):
    """
    Stops the background tasks.

    .. note: We suppress CancelledError so that coroutines that do not handle it don't cause issues.
    """
    logger.info("Stopping Background Tasks")
    app['rate_limit_sweeper'].cancel()
    with suppress(CancelledError):
        await app['rate_limit_sweeper']


def register_signals(app: Application, init_database=True):
    """Registers all the signals at the appropriate hooks."""
    if init_database:
        app.on_startup.append(initialize_database)

    app.on_startup.append(start_background_tasks)

    app.on_cleanup.append(stop_background_tasks)
    if init_database:
        app.on_cleanup.append(close_database_connections)
