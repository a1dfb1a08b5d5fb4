"""Main application entrypoint for the datalake mediator."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from datalake_mediator.api.v1 import routes_health, routes_listeners
from datalake_mediator.core.config import settings
from datalake_mediator.core.logging import setup_logging
from datalake_mediator.lib import create_datalake_lib
from datalake_mediator.openhim.models import MediatorConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the datalake library, listen on configured buckets, tear down on exit."""
    datalake = create_datalake_lib(settings.lib_config())
    app.state.datalake = datalake

    if datalake.openhim:
        try:
            await datalake.openhim.setup_mediator(
                MediatorConfig(
                    urn=settings.OPENHIM_MEDIATOR_URN,
                    version=settings.SERVICE_VERSION,
                    name=settings.SERVICE_NAME,
                    description="Datalake bucket listener mediator",
                )
            )
        except Exception as e:
            logger.error(
                "OpenHIM mediator setup failed, continuing without heartbeat",
                extra={"error": str(e)},
                exc_info=True,
            )

    try:
        if settings.listen_buckets:
            await datalake.listeners.start_listening(settings.listen_buckets)
        yield
    finally:
        datalake.listeners.stop_listening()
        await datalake.listeners.wait_idle()
        await datalake.events.drain()
        if datalake.openhim:
            await datalake.openhim.stop_heartbeat()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_listeners.router, tags=["listeners"])

    return app


# Export app instance for ASGI servers
app = create_app()
