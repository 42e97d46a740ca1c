"""Operational endpoints: connection smoke test and schema bootstrap."""

import os

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ticketboard.api.dependencies import OptionalStoreDep, TicketStoreDep
from ticketboard.api.models import APIResponse, DatabaseStatusResponse, SetupResponse
from ticketboard.config import DATABASE_URL_VARIABLES
from ticketboard.store.seed import seed_demo_data

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("/status", response_model=APIResponse[DatabaseStatusResponse])
def database_status(store: OptionalStoreDep) -> JSONResponse:
    """Report which database variables are set and whether the database answers."""
    variables = {name: bool(os.environ.get(name)) for name in DATABASE_URL_VARIABLES}

    if store is None:
        body = DatabaseStatusResponse(configured=False, connected=False, variables=variables)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=APIResponse[DatabaseStatusResponse](
                data=body, error="Database not available. Please set up DATABASE_URL."
            ).model_dump(mode="json"),
        )

    if not store.database.ping():
        body = DatabaseStatusResponse(configured=True, connected=False, variables=variables)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[DatabaseStatusResponse](
                data=body, error="Database test failed"
            ).model_dump(mode="json"),
        )

    body = DatabaseStatusResponse(
        configured=True,
        connected=True,
        variables=variables,
        user_count=store.count_users(),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=APIResponse[DatabaseStatusResponse](data=body).model_dump(mode="json"),
    )


@router.post("/setup", response_model=APIResponse[SetupResponse])
def setup_database(store: TicketStoreDep) -> APIResponse[SetupResponse]:
    """Create tables and seed the demo users (and tickets when empty)."""
    store.database.create_tables()
    result = seed_demo_data(store)
    return APIResponse(
        data=SetupResponse(
            message="Database setup completed",
            users=result.users,
            tickets=result.tickets,
        )
    )
