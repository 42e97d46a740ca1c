"""TicketApiClient - HTTP client for the ticketboard REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ticketboard.api.models import (
    AttachmentCreate,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
    UserResponse,
)
from ticketboard.client.exceptions import TicketApiError
from ticketboard.logging import truncate_output

logger = logging.getLogger("ticketboard.client.api")


class TicketApiClient:
    """Thin typed wrapper over the ticket endpoints.

    Raises TicketApiError on any non-2xx answer and lets httpx transport
    errors propagate; the caller decides how to fall back.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            base_url: API root, e.g. "http://localhost:8000/api/v1"
            timeout: Request timeout in seconds
            client: Pre-built httpx client (for testing / custom transports)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Send a request and unwrap the APIResponse envelope.

        Returns:
            The envelope's ``data`` member

        Raises:
            TicketApiError: If the response status is not 2xx
            httpx.HTTPError: On transport failures
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        response = self.client.request(method, url, json=json)

        if not response.is_success:
            message = truncate_output(response.text)
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            raise TicketApiError(response.status_code, message)

        if not response.content:
            return None
        body = response.json()
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    # --- Tickets ---

    def list_tickets(self) -> list[TicketResponse]:
        data = self._request("GET", "/tickets")
        return [TicketResponse.model_validate(item) for item in data or []]

    def get_ticket(self, ticket_id: str) -> TicketResponse:
        return TicketResponse.model_validate(self._request("GET", f"/tickets/{ticket_id}"))

    def create_ticket(self, data: TicketCreate) -> TicketResponse:
        payload = data.model_dump(mode="json")
        return TicketResponse.model_validate(self._request("POST", "/tickets", json=payload))

    def update_ticket(self, ticket_id: str, data: TicketUpdate) -> TicketResponse:
        # Only send what the caller set, so an explicit assignee_id=None clears
        payload = data.model_dump(mode="json", exclude_unset=True)
        return TicketResponse.model_validate(
            self._request("PUT", f"/tickets/{ticket_id}", json=payload)
        )

    def delete_ticket(self, ticket_id: str) -> None:
        self._request("DELETE", f"/tickets/{ticket_id}")

    # --- Attachments ---

    def add_attachment(self, ticket_id: str, data: AttachmentCreate) -> TicketResponse:
        payload = data.model_dump(mode="json")
        return TicketResponse.model_validate(
            self._request("POST", f"/tickets/{ticket_id}/attachments", json=payload)
        )

    def remove_attachment(self, ticket_id: str, attachment_id: str) -> TicketResponse:
        return TicketResponse.model_validate(
            self._request("DELETE", f"/tickets/{ticket_id}/attachments/{attachment_id}")
        )

    # --- Users ---

    def list_users(self) -> list[UserResponse]:
        data = self._request("GET", "/users")
        return [UserResponse.model_validate(item) for item in data or []]
