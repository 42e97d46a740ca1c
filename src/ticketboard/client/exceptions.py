"""Custom exceptions for the ticket client."""


class ClientError(Exception):
    """Base exception for ticket client errors."""


class TicketApiError(ClientError):
    """The ticket API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Ticket API request failed: {status_code} - {message}")
        self.status_code = status_code
        self.message = message
