"""FastAPI dependencies for dependency injection.

The TicketStore is owned by the application (built in the lifespan
handler from an injected Database) and handed to request handlers from
``app.state``; there is no module-level store.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from ticketboard.store import StoreUnavailableError, TicketStore


def get_optional_store(request: Request) -> TicketStore | None:
    """Dependency that provides the TicketStore, or None in fallback mode."""
    store: TicketStore | None = getattr(request.app.state, "ticket_store", None)
    return store


def get_ticket_store(request: Request) -> TicketStore:
    """Dependency that provides the TicketStore.

    Raises:
        StoreUnavailableError: If no database is configured (mapped to 503).
    """
    store = get_optional_store(request)
    if store is None:
        raise StoreUnavailableError("Database not available. Please set up DATABASE_URL.")
    return store


# Type aliases for dependency injection
TicketStoreDep = Annotated[TicketStore, Depends(get_ticket_store)]
OptionalStoreDep = Annotated[TicketStore | None, Depends(get_optional_store)]
