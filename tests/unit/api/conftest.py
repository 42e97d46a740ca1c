"""Fixtures for route tests."""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ticketboard.api.app import API_PREFIX, register_exception_handlers
from ticketboard.api.routes import attachments, maintenance, tickets, users
from ticketboard.config import Settings
from ticketboard.store import TicketStore


@pytest.fixture
def app(store: TicketStore) -> FastAPI:
    """Create a test FastAPI app serving the in-memory store."""
    app = FastAPI()
    app.state.ticket_store = store
    app.state.settings = Settings()

    register_exception_handlers(app)

    app.include_router(tickets.router, prefix=API_PREFIX)
    app.include_router(attachments.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(maintenance.router, prefix=API_PREFIX)

    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
