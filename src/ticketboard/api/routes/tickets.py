"""Ticket CRUD endpoints."""

from fastapi import APIRouter, status

from ticketboard.api.dependencies import TicketStoreDep
from ticketboard.api.models import (
    APIResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
    ticket_to_response,
)
from ticketboard.store import UNSET

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=APIResponse[list[TicketResponse]])
def list_tickets(store: TicketStoreDep) -> APIResponse[list[TicketResponse]]:
    """List all tickets, newest first."""
    tickets = store.list_tickets()
    return APIResponse(data=[ticket_to_response(t) for t in tickets])


@router.post(
    "",
    response_model=APIResponse[TicketResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_ticket(ticket: TicketCreate, store: TicketStoreDep) -> APIResponse[TicketResponse]:
    """Create a new ticket."""
    created = store.create_ticket(
        title=ticket.title,
        description=ticket.description,
        priority=ticket.priority,
        type=ticket.type,
        assignee_id=ticket.assignee_id,
        due_date=ticket.due_date,
        labels=ticket.labels,
    )
    return APIResponse(data=ticket_to_response(created))


@router.get("/{ticket_id}", response_model=APIResponse[TicketResponse])
def get_ticket(ticket_id: str, store: TicketStoreDep) -> APIResponse[TicketResponse]:
    """Get a ticket by ID."""
    ticket = store.get_ticket(ticket_id)
    return APIResponse(data=ticket_to_response(ticket))


@router.put("/{ticket_id}", response_model=APIResponse[TicketResponse])
def update_ticket(
    ticket_id: str, ticket: TicketUpdate, store: TicketStoreDep
) -> APIResponse[TicketResponse]:
    """Update a ticket (partial update, labels replaced as a whole)."""
    assignee_id = ticket.assignee_id if "assignee_id" in ticket.model_fields_set else UNSET
    updated = store.update_ticket(
        ticket_id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        priority=ticket.priority,
        type=ticket.type,
        assignee_id=assignee_id,
        due_date=ticket.due_date,
        labels=ticket.labels,
        expected_version=ticket.version,
    )
    return APIResponse(data=ticket_to_response(updated))


@router.delete("/{ticket_id}", response_model=APIResponse[dict[str, bool]])
def delete_ticket(ticket_id: str, store: TicketStoreDep) -> APIResponse[dict[str, bool]]:
    """Delete a ticket with its labels and attachments."""
    store.delete_ticket(ticket_id)
    return APIResponse(data={"success": True})
