"""LocalStore - file-backed key/value cache mirroring the remote entities.

Each key is one JSON file holding an array of records. The store is the
fallback when the API is unreachable and the cache that successful remote
calls refresh. Nothing synchronizes two processes sharing a directory.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ticketboard.api.models import TicketResponse, UserResponse
from ticketboard.store.seed import DEMO_USERS

logger = logging.getLogger("ticketboard.client.local_store")

TICKETS_KEY = "ticketboard-tickets"
USERS_KEY = "ticketboard-users"

DEFAULT_USERS: list[UserResponse] = [
    UserResponse(id=str(index), name=name, email=email)
    for index, (name, email) in enumerate(DEMO_USERS, start=1)
]


def parse_date(value: Any) -> datetime:
    """Parse a cached date, defaulting to now.

    Empty or unparseable values become the current time instead of raising.
    Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return datetime.now(UTC)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.error("Invalid date string %r in cache, using current date", value)
            return datetime.now(UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _normalize_ticket_dates(record: dict[str, Any]) -> dict[str, Any]:
    record = dict(record)
    record["created_at"] = parse_date(record.get("created_at"))
    record["updated_at"] = parse_date(record.get("updated_at"))
    record["due_date"] = parse_date(record["due_date"]) if record.get("due_date") else None
    record["attachments"] = [
        {**attachment, "uploaded_at": parse_date(attachment.get("uploaded_at"))}
        for attachment in record.get("attachments") or []
    ]
    return record


class LocalStore:
    """JSON-file key/value store for the ticket and user lists."""

    def __init__(self, directory: str | Path) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding one JSON file per key; created on first write
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read_raw(self, key: str) -> list[Any] | None:
        """Read the JSON array stored under a key.

        Returns:
            The decoded list, or None if the key is absent or its content is malformed
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading cached %s: %s", key, e)
            return None
        if not isinstance(data, list):
            logger.error("Cached %s is not a list, ignoring it", key)
            return None
        return data

    def replace_snapshot(self, key: str, records: list[Any]) -> None:
        """Replace everything stored under a key with a new snapshot.

        This is a full rewrite, never an incremental patch; cost grows with
        the size of the list.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        payload = [
            record.model_dump(mode="json") if hasattr(record, "model_dump") else record
            for record in records
        ]
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    # --- Tickets ---

    def load_tickets(self) -> list[TicketResponse]:
        """Load cached tickets, re-parsing their dates.

        Malformed records are skipped; a malformed file yields an empty list.
        """
        raw = self.read_raw(TICKETS_KEY)
        if raw is None:
            return []

        tickets: list[TicketResponse] = []
        for record in raw:
            if not isinstance(record, dict):
                logger.error("Skipping cached ticket that is not an object: %r", record)
                continue
            try:
                tickets.append(TicketResponse.model_validate(_normalize_ticket_dates(record)))
            except ValidationError as e:
                logger.error("Skipping malformed cached ticket %s: %s", record.get("id"), e)
        return tickets

    def save_tickets(self, tickets: list[TicketResponse]) -> None:
        """Replace the cached ticket list."""
        self.replace_snapshot(TICKETS_KEY, tickets)

    # --- Users ---

    def load_users(self) -> list[UserResponse]:
        """Load cached users; the demo users when none were ever cached."""
        raw = self.read_raw(USERS_KEY)
        if raw is None:
            return list(DEFAULT_USERS)

        users: list[UserResponse] = []
        for record in raw:
            try:
                users.append(UserResponse.model_validate(record))
            except ValidationError as e:
                logger.error("Skipping malformed cached user: %s", e)
        return users

    def save_users(self, users: list[UserResponse]) -> None:
        """Replace the cached user list."""
        self.replace_snapshot(USERS_KEY, users)
