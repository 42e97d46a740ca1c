"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ticketboard import __version__
from ticketboard.api.models import APIResponse
from ticketboard.api.routes import attachments, maintenance, tickets, users
from ticketboard.config import Settings, load_settings
from ticketboard.logging import sanitize_for_log
from ticketboard.store import (
    AttachmentNotFoundError,
    StoreError,
    StoreUnavailableError,
    TicketNotFoundError,
    TicketStore,
    TicketVersionConflictError,
    UserExistsError,
    UserNotFoundError,
    connect_database,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from ticketboard.store import Database

logger = logging.getLogger("ticketboard.api")

API_PREFIX = "/api/v1"


def _error(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message, code=code).model_dump(),
    )


def database_error_code(exc: SQLAlchemyError) -> str | None:
    """Raw error code of the driver exception behind a SQLAlchemy error, if any."""
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode", "sqlite_errorname"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    return exc.code


def register_exception_handlers(app: FastAPI) -> None:
    """Map store errors onto HTTP status codes with an APIResponse body."""

    @app.exception_handler(TicketNotFoundError)
    async def ticket_not_found_handler(
        _request: Request, _exc: TicketNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Ticket not found")

    @app.exception_handler(UserNotFoundError)
    async def user_not_found_handler(_request: Request, _exc: UserNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "User not found")

    @app.exception_handler(AttachmentNotFoundError)
    async def attachment_not_found_handler(
        _request: Request, _exc: AttachmentNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Attachment not found")

    @app.exception_handler(UserExistsError)
    async def user_exists_handler(_request: Request, _exc: UserExistsError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "User with this email already exists")

    @app.exception_handler(TicketVersionConflictError)
    async def version_conflict_handler(
        _request: Request, exc: TicketVersionConflictError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        _request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(StoreError)
    async def store_error_handler(_request: Request, _exc: StoreError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error: %s", exc)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Database error",
            code=database_error_code(exc),
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Uses the Database injected into create_app, or connects one from the
    settings. With neither, or when the database cannot be reached at
    startup, the app serves 503 from every store-backed route.
    """
    # Startup
    database: Database | None = app.state.database
    owns_database = database is None
    if database is None:
        database = connect_database(app.state.settings)

    app.state.ticket_store = None
    if database is not None:
        try:
            app.state.ticket_store = TicketStore(database)
        except SQLAlchemyError as e:
            logger.error("Database unreachable at startup: %s", sanitize_for_log(str(e)))
            if owns_database:
                database.close()
            database = None
    if app.state.ticket_store is None:
        logger.warning("Starting without a database; clients will use their local fallback")

    yield
    # Shutdown
    if owns_database and database is not None:
        database.close()
    app.state.ticket_store = None


def create_app(
    database: Database | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database: Database to serve from; owned by the caller.
        settings: Settings used when no database is injected (defaults to the environment).
    """
    app = FastAPI(
        title="ticketboard API",
        description="REST API for the ticketboard ticket tracker",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.database = database
    app.state.settings = settings if settings is not None else load_settings()
    app.state.ticket_store = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(tickets.router, prefix=API_PREFIX)
    app.include_router(attachments.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(maintenance.router, prefix=API_PREFIX)

    return app
