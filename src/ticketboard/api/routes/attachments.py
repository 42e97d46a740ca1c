"""Attachment endpoints (metadata only; files are stored elsewhere)."""

from fastapi import APIRouter, status

from ticketboard.api.dependencies import TicketStoreDep
from ticketboard.api.models import (
    APIResponse,
    AttachmentCreate,
    TicketResponse,
    ticket_to_response,
)

router = APIRouter(prefix="/tickets/{ticket_id}/attachments", tags=["attachments"])


@router.post(
    "",
    response_model=APIResponse[TicketResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_attachment(
    ticket_id: str, attachment: AttachmentCreate, store: TicketStoreDep
) -> APIResponse[TicketResponse]:
    """Record an attachment on a ticket and return the updated ticket."""
    ticket = store.add_attachment(
        ticket_id,
        name=attachment.name,
        size=attachment.size,
        type=attachment.type,
        url=attachment.url,
    )
    return APIResponse(data=ticket_to_response(ticket))


@router.delete("/{attachment_id}", response_model=APIResponse[TicketResponse])
def remove_attachment(
    ticket_id: str, attachment_id: str, store: TicketStoreDep
) -> APIResponse[TicketResponse]:
    """Remove an attachment from a ticket and return the updated ticket."""
    ticket = store.remove_attachment(ticket_id, attachment_id)
    return APIResponse(data=ticket_to_response(ticket))
