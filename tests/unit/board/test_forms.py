"""Unit tests for TicketForm."""

from datetime import UTC, datetime

import pytest

from ticketboard.api.models import TicketResponse, UserResponse
from ticketboard.board import TicketForm, TicketFormError
from ticketboard.store.models import TicketPriority, TicketStatus, TicketType

JOHN = UserResponse(id="u1", name="John Doe", email="john@example.com")


@pytest.fixture
def ticket() -> TicketResponse:
    return TicketResponse(
        id="t1",
        title="Fix login bug",
        description="Users cannot log in",
        status=TicketStatus.IN_PROGRESS,
        priority=TicketPriority.HIGH,
        type=TicketType.BUG,
        assignee=JOHN,
        reporter=JOHN,
        created_at=datetime(2025, 1, 5, tzinfo=UTC),
        updated_at=datetime(2025, 1, 5, tzinfo=UTC),
        labels=["auth", "critical"],
        version=3,
    )


@pytest.mark.unit
class TestValidate:
    """Tests for validate."""

    def test_valid_form(self) -> None:
        assert TicketForm(title="T", description="D").validate() == {}

    def test_blank_fields_reported(self) -> None:
        errors = TicketForm(title=" ", description="").validate()

        assert errors == {
            "title": "Title is required",
            "description": "Description is required",
        }

    def test_to_create_raises_on_invalid(self) -> None:
        with pytest.raises(TicketFormError) as exc_info:
            TicketForm(title="", description="D").to_create()

        assert "title" in exc_info.value.errors


@pytest.mark.unit
class TestLabels:
    """Tests for add_label and remove_label."""

    def test_add_label_trims(self) -> None:
        form = TicketForm()

        assert form.add_label("  backend ") is True
        assert form.labels == ["backend"]

    def test_add_blank_or_duplicate_ignored(self) -> None:
        form = TicketForm(labels=["ui"])

        assert form.add_label("   ") is False
        assert form.add_label("ui") is False
        assert form.labels == ["ui"]

    def test_remove_label(self) -> None:
        form = TicketForm(labels=["ui", "bug"])

        form.remove_label("ui")

        assert form.labels == ["bug"]


@pytest.mark.unit
class TestPayloads:
    """Tests for to_create and to_update."""

    def test_to_create(self) -> None:
        form = TicketForm(
            title=" Dark mode ",
            description="Add a toggle",
            priority=TicketPriority.LOW,
            type=TicketType.FEATURE,
            labels=["ui"],
        )

        payload = form.to_create()

        assert payload.title == "Dark mode"
        assert payload.priority == TicketPriority.LOW
        assert payload.type == TicketType.FEATURE
        assert payload.assignee_id is None
        assert payload.labels == ["ui"]

    def test_from_ticket_round_trip(self, ticket: TicketResponse) -> None:
        form = TicketForm.from_ticket(ticket)

        assert form.title == "Fix login bug"
        assert form.status == TicketStatus.IN_PROGRESS
        assert form.assignee_id == "u1"
        assert form.labels == ["auth", "critical"]
        form.labels.append("x")
        assert ticket.labels == ["auth", "critical"]

    def test_to_update_always_sends_labels(self, ticket: TicketResponse) -> None:
        form = TicketForm.from_ticket(ticket)
        form.remove_label("auth")
        form.remove_label("critical")

        payload = form.to_update()

        assert "labels" in payload.model_fields_set
        assert payload.labels == []

    def test_to_update_unassign(self, ticket: TicketResponse) -> None:
        form = TicketForm.from_ticket(ticket)
        form.assignee_id = ""

        payload = form.to_update(version=ticket.version)

        assert "assignee_id" in payload.model_fields_set
        assert payload.assignee_id is None
        assert payload.version == 3
        assert payload.status == TicketStatus.IN_PROGRESS

    def test_to_update_without_due_date_leaves_it_unset(self, ticket: TicketResponse) -> None:
        payload = TicketForm.from_ticket(ticket).to_update()

        assert "due_date" not in payload.model_fields_set
        assert "version" not in payload.model_fields_set
