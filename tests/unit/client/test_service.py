"""Unit tests for TicketService."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest

from ticketboard.api.models import TicketCreate, TicketResponse, TicketUpdate, UserResponse
from ticketboard.client import LocalStore, TicketApiClient, TicketService
from ticketboard.config import Settings
from ticketboard.store.models import SYSTEM_USER_EMAIL, TicketPriority, TicketStatus

JOHN = UserResponse(id="1", name="John Doe", email="john@example.com")
JANE = UserResponse(id="2", name="Jane Smith", email="jane@example.com")


def _ticket(ticket_id: str, **overrides: object) -> TicketResponse:
    fields: dict = {
        "id": ticket_id,
        "title": f"Ticket {ticket_id}",
        "description": "Description",
        "status": TicketStatus.TO_DO,
        "priority": TicketPriority.MEDIUM,
        "type": "Task",
        "reporter": JOHN,
        "created_at": datetime(2025, 1, 5, tzinfo=UTC),
        "updated_at": datetime(2025, 1, 5, tzinfo=UTC),
    }
    fields.update(overrides)
    return TicketResponse.model_validate(fields)


def _api(handler: Callable[[httpx.Request], httpx.Response]) -> TicketApiClient:
    transport = httpx.MockTransport(handler)
    return TicketApiClient("http://tickets.test/api/v1", client=httpx.Client(transport=transport))


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def _server_error(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, json={"data": None, "error": "Database error", "code": "e3q8"})


@pytest.fixture
def offline(local_store: LocalStore) -> TicketService:
    """Service whose API is unreachable."""
    return TicketService(local_store, _api(_unreachable))


@pytest.fixture
def local_only(local_store: LocalStore) -> TicketService:
    """Service without a remote API."""
    return TicketService(local_store)


@pytest.mark.unit
class TestFromSettings:
    """Tests for from_settings."""

    def test_remote_when_api_url_set(self, tmp_path: Path) -> None:
        service = TicketService.from_settings(
            Settings(api_url="http://tickets.test/api/v1", cache_dir=tmp_path)
        )

        assert service.is_remote
        assert service.local_store.directory == tmp_path
        service.close()

    def test_local_only_without_api_url(self, tmp_path: Path) -> None:
        service = TicketService.from_settings(Settings(api_url=None, cache_dir=tmp_path))

        assert not service.is_remote


@pytest.mark.unit
class TestListTickets:
    """Tests for list_tickets."""

    def test_remote_result_is_cached(self, local_store: LocalStore) -> None:
        remote = [_ticket("t1"), _ticket("t2")]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"data": [t.model_dump(mode="json") for t in remote]}
            )

        service = TicketService(local_store, _api(handler))

        assert [t.id for t in service.list_tickets()] == ["t1", "t2"]
        assert [t.id for t in local_store.load_tickets()] == ["t1", "t2"]

    def test_unreachable_api_returns_cached_list(
        self, offline: TicketService, local_store: LocalStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        local_store.save_tickets([_ticket("cached")])

        with caplog.at_level(logging.WARNING, logger="ticketboard.client.service"):
            tickets = offline.list_tickets()

        assert [t.id for t in tickets] == ["cached"]
        assert "falling back to local storage" in caplog.text

    def test_server_error_returns_cached_list(self, local_store: LocalStore) -> None:
        local_store.save_tickets([_ticket("cached")])
        service = TicketService(local_store, _api(_server_error))

        assert [t.id for t in service.list_tickets()] == ["cached"]

    def test_remote_called_once_per_operation(self, local_store: LocalStore) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return _server_error(request)

        TicketService(local_store, _api(handler)).list_tickets()

        assert len(calls) == 1

    def test_invalid_payload_returns_cached_list(self, local_store: LocalStore) -> None:
        """A 2xx body that fails response validation falls back."""
        local_store.save_tickets([_ticket("cached")])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"id": "incomplete"}]})

        service = TicketService(local_store, _api(handler))

        assert [t.id for t in service.list_tickets()] == ["cached"]

    def test_non_json_body_returns_cached_list(self, local_store: LocalStore) -> None:
        """An API URL pointing at an ordinary web page falls back."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>not the api</html>")

        service = TicketService(local_store, _api(handler))

        assert service.list_tickets() == []
        assert service.get_ticket("anything") is None


@pytest.mark.unit
class TestGetTicket:
    """Tests for get_ticket."""

    def test_get_from_cache_when_offline(
        self, offline: TicketService, local_store: LocalStore
    ) -> None:
        local_store.save_tickets([_ticket("t1"), _ticket("t2")])

        assert offline.get_ticket("t2").id == "t2"
        assert offline.get_ticket("missing") is None


@pytest.mark.unit
class TestCreateTicket:
    """Tests for create_ticket."""

    def test_local_create(self, local_only: TicketService, local_store: LocalStore) -> None:
        local_store.save_users([JOHN, JANE])

        ticket = local_only.create_ticket(
            TicketCreate(
                title="Offline ticket",
                description="Created without a server",
                priority=TicketPriority.HIGH,
                assignee_id=JANE.id,
                labels=["a", "a", "b"],
            )
        )

        assert ticket.id
        assert ticket.status == TicketStatus.TO_DO
        assert ticket.priority == TicketPriority.HIGH
        assert ticket.assignee == JANE
        assert ticket.reporter == JOHN
        assert ticket.labels == ["a", "b"]
        assert ticket.version == 1
        assert [t.id for t in local_store.load_tickets()] == [ticket.id]

    def test_local_create_strips_labels(self, local_only: TicketService) -> None:
        """Offline creates store the same label set the server would."""
        ticket = local_only.create_ticket(
            TicketCreate(title="T", description="D", labels=[" ui ", "ui", "  ", "api"])
        )

        assert ticket.labels == ["ui", "api"]

    def test_local_create_without_users_uses_system_reporter(
        self, offline: TicketService, local_store: LocalStore
    ) -> None:
        """The system user is persisted so later creates reuse it."""
        local_store.save_users([])

        first = offline.create_ticket(TicketCreate(title="A", description="D"))
        second = offline.create_ticket(TicketCreate(title="B", description="D"))

        assert first.reporter.email == SYSTEM_USER_EMAIL
        assert second.reporter.id == first.reporter.id
        assert [u.email for u in local_store.load_users()] == [SYSTEM_USER_EMAIL]

    def test_remote_create_is_cached(self, local_store: LocalStore) -> None:
        created = _ticket("server-id", title="From server")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={"data": created.model_dump(mode="json")})

        service = TicketService(local_store, _api(handler))
        ticket = service.create_ticket(TicketCreate(title="From server", description="D"))

        assert ticket.id == "server-id"
        assert [t.id for t in local_store.load_tickets()] == ["server-id"]


@pytest.mark.unit
class TestUpdateTicket:
    """Tests for update_ticket."""

    def test_local_update_merges_fields(
        self, offline: TicketService, local_store: LocalStore
    ) -> None:
        local_store.save_tickets([_ticket("t1", labels=["old"])])

        updated = offline.update_ticket(
            "t1",
            TicketUpdate(status=TicketStatus.DONE, title="", labels=[" new ", "new", ""]),
        )

        assert updated is not None
        assert updated.status == TicketStatus.DONE
        assert updated.title == "Ticket t1"
        assert updated.labels == ["new"]
        assert updated.version == 2
        assert updated.updated_at > datetime(2025, 1, 5, tzinfo=UTC)
        assert local_store.load_tickets()[0].status == TicketStatus.DONE

    def test_local_update_assignee(self, offline: TicketService, local_store: LocalStore) -> None:
        local_store.save_users([JOHN, JANE])
        local_store.save_tickets([_ticket("t1", assignee=JOHN)])

        reassigned = offline.update_ticket("t1", TicketUpdate(assignee_id=JANE.id))
        kept = offline.update_ticket("t1", TicketUpdate(priority=TicketPriority.LOW))
        cleared = offline.update_ticket("t1", TicketUpdate(assignee_id=None))

        assert reassigned is not None and reassigned.assignee == JANE
        assert kept is not None and kept.assignee == JANE
        assert cleared is not None and cleared.assignee is None

    def test_local_update_missing_ticket(self, offline: TicketService) -> None:
        assert offline.update_ticket("missing", TicketUpdate(title="X")) is None


@pytest.mark.unit
class TestDeleteTicket:
    """Tests for delete_ticket."""

    def test_local_delete(self, offline: TicketService, local_store: LocalStore) -> None:
        local_store.save_tickets([_ticket("t1"), _ticket("t2")])

        assert offline.delete_ticket("t1") is True
        assert [t.id for t in local_store.load_tickets()] == ["t2"]

    def test_local_delete_missing(self, offline: TicketService) -> None:
        assert offline.delete_ticket("missing") is False

    def test_remote_delete_removes_cached_copy(self, local_store: LocalStore) -> None:
        local_store.save_tickets([_ticket("t1")])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"success": True}})

        assert TicketService(local_store, _api(handler)).delete_ticket("t1") is True
        assert local_store.load_tickets() == []


@pytest.mark.unit
class TestDerivedQueries:
    """Tests for tickets_by_status, tickets_by_assignee and search_tickets."""

    @pytest.fixture(autouse=True)
    def tickets(self, local_store: LocalStore) -> None:
        local_store.save_tickets(
            [
                _ticket("t1", title="Login fails", assignee=JOHN),
                _ticket("t2", status=TicketStatus.DONE, labels=["Login"]),
                _ticket("t3", description="dark mode", assignee=JANE),
            ]
        )

    def test_by_status(self, local_only: TicketService) -> None:
        assert [t.id for t in local_only.tickets_by_status(TicketStatus.DONE)] == ["t2"]

    def test_by_assignee(self, local_only: TicketService) -> None:
        assert [t.id for t in local_only.tickets_by_assignee(JANE.id)] == ["t3"]

    def test_search_is_case_insensitive(self, local_only: TicketService) -> None:
        assert [t.id for t in local_only.search_tickets("LOGIN")] == ["t1", "t2"]
        assert [t.id for t in local_only.search_tickets("Dark")] == ["t3"]


@pytest.mark.unit
class TestAttachments:
    """Tests for add_attachment and remove_attachment."""

    def test_local_add_and_remove(
        self, offline: TicketService, local_store: LocalStore, tmp_path: Path
    ) -> None:
        local_store.save_tickets([_ticket("t1")])
        source = tmp_path / "notes.txt"
        source.write_text("hello")

        added = offline.add_attachment("t1", source)

        assert added is not None
        [attachment] = added.attachments
        assert attachment.name == "notes.txt"
        assert attachment.size == 5
        assert attachment.type == "text/plain"
        assert attachment.url == source.resolve().as_uri()
        assert added.version == 2

        removed = offline.remove_attachment("t1", attachment.id)

        assert removed is not None
        assert removed.attachments == []
        assert local_store.load_tickets()[0].attachments == []

    def test_local_add_missing_ticket(self, offline: TicketService, tmp_path: Path) -> None:
        source = tmp_path / "notes.txt"
        source.write_text("hello")

        assert offline.add_attachment("missing", source) is None


@pytest.mark.unit
class TestListUsers:
    """Tests for list_users."""

    def test_offline_returns_default_users(self, offline: TicketService) -> None:
        assert [u.name for u in offline.list_users()][:2] == ["John Doe", "Jane Smith"]

    def test_remote_users_cached(self, local_store: LocalStore) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [JANE.model_dump()]})

        assert TicketService(local_store, _api(handler)).list_users() == [JANE]
        assert local_store.load_users() == [JANE]
