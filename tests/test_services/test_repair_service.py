"""
Tests for the repair ticket gateway.

The helpdesk is replaced by a fake client; the local row must only
appear after the helpdesk accepted the ticket.
"""

import pytest

from loanerdesk.errors import (
    SchoolNotFound,
    TicketSubmissionFailed,
    UpstreamError,
    ValidationError,
)
from loanerdesk.models import RepairTicket
from loanerdesk.services import repair_service


class FakeOperationsHeroClient:
    """Records submissions and answers like the helpdesk would."""

    def __init__(self, ticket_id="OH-1001", error=None, locations=None):
        self.ticket_id = ticket_id
        self.error = error
        self.locations = locations or {"kossman": "loc-kossman"}
        self.requests = []

    def location_for_school(self, school_id):
        if school_id not in self.locations:
            raise ValidationError(f"Invalid school location: {school_id}")
        return self.locations[school_id]

    def create_request(self, location_id, summary):
        self.requests.append((location_id, summary))
        if self.error is not None:
            raise self.error
        return {"id": self.ticket_id}


def _submit(client, **overrides):
    fields = {
        "school_id": "kossman",
        "device_type": "chromebook",
        "full_name": "Jane Doe",
        "issue_type": "broken-screen",
        "device_barcode": "CB-001",
        "notes": None,
        "is_staff": False,
    }
    fields.update(overrides)
    return repair_service.submit_repair_ticket(client=client, **fields)


class TestBuildSummary:
    """Tests for the helpdesk summary text."""

    def test_student_summary_without_notes(self):
        summary = repair_service.build_summary(
            "chromebook", "CB-001", "broken-screen", "Jane Doe", False
        )
        assert summary == (
            "Device Type: chromebook\n"
            "Serial/Asset Tag: CB-001\n"
            "Issue: broken-screen\n"
            "Submitted By: Jane Doe (Student)\n"
            "\n"
            "Submitted via Device Checkout Kiosk"
        )

    def test_staff_summary_with_notes(self):
        summary = repair_service.build_summary(
            "windows", "LT-9", "wifi-issue", "Mr. Park", True, notes="Drops daily"
        )
        lines = summary.split("\n")
        assert lines[3] == "Submitted By: Mr. Park (Staff)"
        assert lines[4] == "Additional Notes: Drops daily"
        assert lines[-1] == "Submitted via Device Checkout Kiosk"


class TestSubmitRepairTicket:
    """Tests for submit_repair_ticket."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, schools):
        pass

    def test_accepted_ticket_is_mirrored(self):
        client = FakeOperationsHeroClient(ticket_id="OH-42")

        ticket = _submit(client, notes="Cracked corner", is_staff=True)

        assert ticket.operations_hero_id == "OH-42"
        assert ticket.status == "open"
        assert ticket.is_staff is True
        assert RepairTicket.query.count() == 1

        location, summary = client.requests[0]
        assert location == "loc-kossman"
        assert "Additional Notes: Cracked corner" in summary

    def test_numeric_helpdesk_id_is_stored_as_text(self):
        ticket = _submit(FakeOperationsHeroClient(ticket_id=98765))
        assert ticket.operations_hero_id == "98765"

    def test_upstream_failure_leaves_no_row(self):
        """An HTTP 500 from the helpdesk surfaces as an upstream error."""
        client = FakeOperationsHeroClient(
            error=TicketSubmissionFailed("API Error: 500")
        )

        with pytest.raises(UpstreamError) as exc_info:
            _submit(client)

        assert exc_info.value.message == "API Error: 500"
        assert exc_info.value.status_code == 500
        assert RepairTicket.query.count() == 0

    def test_school_without_location_is_rejected_before_submission(self):
        client = FakeOperationsHeroClient()

        with pytest.raises(ValidationError, match="Invalid school location"):
            _submit(client, school_id="flocktown")

        assert client.requests == []
        assert RepairTicket.query.count() == 0

    def test_unknown_school(self):
        with pytest.raises(SchoolNotFound):
            _submit(FakeOperationsHeroClient(), school_id="atlantis")

    @pytest.mark.parametrize("field", ["full_name", "issue_type", "device_barcode"])
    def test_blank_required_field(self, field):
        client = FakeOperationsHeroClient()
        with pytest.raises(ValidationError, match="Missing required field"):
            _submit(client, **{field: "   "})
        assert client.requests == []

    def test_unknown_issue_type(self):
        with pytest.raises(ValidationError):
            _submit(FakeOperationsHeroClient(), issue_type="haunted")


class TestGetRepairTickets:
    """Tests for filtering and sorting repair tickets."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, schools):
        locations = {"kossman": "loc-k", "flocktown": "loc-f"}
        _submit(FakeOperationsHeroClient("OH-1", locations=locations))
        _submit(
            FakeOperationsHeroClient("OH-2", locations=locations),
            full_name="Mr. Park",
            device_barcode="LT-200",
            device_type="windows",
            issue_type="wifi-issue",
            is_staff=True,
        )
        _submit(
            FakeOperationsHeroClient("OH-3", locations=locations),
            school_id="flocktown",
            device_barcode="CB-300",
        )

    def _ids(self, tickets):
        return sorted(t.operations_hero_id for t in tickets)

    def test_no_filters_returns_everything_newest_first(self):
        tickets = repair_service.get_repair_tickets()
        assert [t.operations_hero_id for t in tickets] == ["OH-3", "OH-2", "OH-1"]

    def test_barcode_substring(self):
        assert self._ids(repair_service.get_repair_tickets(device_barcode="cb-")) == [
            "OH-1",
            "OH-3",
        ]

    def test_is_staff(self):
        assert self._ids(repair_service.get_repair_tickets(is_staff=True)) == ["OH-2"]
        assert self._ids(repair_service.get_repair_tickets(is_staff=False)) == [
            "OH-1",
            "OH-3",
        ]

    def test_school_and_issue(self):
        tickets = repair_service.get_repair_tickets(
            school_id="kossman", issue_type="broken-screen"
        )
        assert self._ids(tickets) == ["OH-1"]

    def test_sort_by_name_ascending(self):
        tickets = repair_service.get_repair_tickets(sort="fullName", direction="asc")
        assert [t.full_name for t in tickets][0] == "Jane Doe"
        assert [t.full_name for t in tickets][-1] == "Mr. Park"

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            repair_service.get_repair_tickets(status="pending")
