"""FastAPI application factory.

Routes get their services through ``guestlist.api.dependencies``; tests swap
the storage by overriding ``get_db``.
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from guestlist.api.dependencies import get_db
from guestlist.api.routes import (
    contact_router,
    health_router,
    invitation_router,
    party_router,
    public_router,
    user_router,
)
from guestlist.config import get_settings
from guestlist.container import get_container, reset_container
from guestlist.exceptions import GuestlistError
from guestlist.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = ["app", "create_app", "get_db"]

REQUEST_ID_HEADER = "X-Request-ID"

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and open storage before serving; release it after."""
    settings = get_settings()
    configure_logging(settings)

    container = get_container()
    container.database  # opens the connection and creates the schema
    logger.info(
        "guestlist_started",
        version=settings.app_version,
        environment=settings.environment.value,
        database_type=settings.database_type.value,
    )

    yield

    reset_container()
    logger.info("guestlist_stopped")


async def log_request_middleware(request: Request, call_next):
    """Bind a request id for every log line and report how the request went."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
    bind_context(request_id=request_id, path=request.url.path, method=request.method)
    started = time.perf_counter()

    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.debug(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response
    finally:
        clear_context()


async def exception_handler(request: Request, exc: GuestlistError) -> JSONResponse:
    """Render a domain error as ``{error, message, context}``."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "domain_exception",
        error_code=exc.error_code,
        status_code=exc.status_code,
        context=exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Contacts, parties, invitations and check-in for event organizers",
        version=settings.app_version,
        debug=bool(settings.debug),
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    app.middleware("http")(log_request_middleware)
    app.add_exception_handler(GuestlistError, exception_handler)

    for router in (
        health_router,
        user_router,
        contact_router,
        party_router,
        invitation_router,
        public_router,
    ):
        app.include_router(router)

    return app


# Module-level instance for ``uvicorn guestlist.api.app:app``
app = create_app()
