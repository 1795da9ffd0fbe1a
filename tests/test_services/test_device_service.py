"""
Tests for the device lifecycle service.

Covers the available/checked_out state machine, its paired log
entries, registration (single, automatic, and bulk), and removal.
"""

from types import SimpleNamespace

import pytest

from loanerdesk.errors import (
    AlreadyAvailable,
    AlreadyCheckedOut,
    AutoRegistrationDisabled,
    DeviceNotFound,
    DuplicateAssetTag,
    SchoolNotFound,
    ValidationError,
)
from loanerdesk.models import AuditLog, Device, DeviceLog
from loanerdesk.services import device_service


def _logs(asset_tag):
    return (
        DeviceLog.query.filter_by(asset_tag=asset_tag)
        .order_by(DeviceLog.timestamp, DeviceLog.created_at)
        .all()
    )


class TestCheckOut:
    """Tests for check_out."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, make_device):
        self.device = make_device("CB-001")

    def test_checkout_assigns_holder(self):
        """Checking out sets the status and the assignment."""
        device = device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        assert device.status == "checked_out"
        assert device.assignment["name"] == "Jane Doe"
        assert device.assignment["reason"] == "left-at-home"
        assert device.assigned_at is not None

    def test_checkout_writes_one_log_entry(self):
        """Exactly one checkout row, naming the same holder."""
        device_service.check_out(
            "CB-001", "Jane Doe", "left-at-home", homeroom_teacher="Mr. Park"
        )

        logs = _logs("CB-001")
        assert len(logs) == 1
        assert logs[0].action == "checkout"
        assert logs[0].user_name == "Jane Doe"
        assert logs[0].reason == "left-at-home"
        assert logs[0].homeroom_teacher == "Mr. Park"
        assert logs[0].device_id == self.device["id"]
        assert logs[0].school_id == "kossman"

    def test_second_checkout_is_a_conflict(self):
        """A checked-out device cannot be checked out again."""
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        with pytest.raises(AlreadyCheckedOut):
            device_service.check_out("CB-001", "John Roe", "teacher")

        device = device_service.get_device_by_asset_tag("CB-001")
        assert device.assigned_to_name == "Jane Doe"
        assert device.assigned_reason == "left-at-home"
        assert len(_logs("CB-001")) == 1

    def test_unknown_tag_raises_not_found(self):
        """Checking out a tag nobody registered is a 404."""
        with pytest.raises(DeviceNotFound):
            device_service.check_out("NOPE-999", "Jane Doe", "teacher")
        assert DeviceLog.query.count() == 0

    def test_lost_race_is_a_conflict(self, monkeypatch):
        """
        If the guarded update matches no row (another request won), the
        checkout fails and writes no log entry.
        """
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        stale = SimpleNamespace(
            id=self.device["id"],
            asset_tag="CB-001",
            school_id="kossman",
            status="available",
        )
        monkeypatch.setattr(device_service, "_lock_device", lambda tag: stale)

        with pytest.raises(AlreadyCheckedOut):
            device_service.check_out("CB-001", "John Roe", "teacher")

        assert len(_logs("CB-001")) == 1
        assert device_service.get_device_by_asset_tag("CB-001").assigned_to_name == (
            "Jane Doe"
        )


class TestCheckIn:
    """Tests for check_in."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, make_device):
        self.db_session = db_session
        make_device("CB-001")

    def test_checkin_clears_assignment(self):
        """Checking in returns the device to the pool with no holder."""
        device_service.check_out(
            "CB-001", "Jane Doe", "left-at-home", homeroom_teacher="Mr. Park"
        )
        device = device_service.check_in("CB-001")

        assert device.status == "available"
        assert device.assignment is None
        assert device.assigned_to_name is None
        assert device.assigned_at is None
        assert device.assigned_reason is None
        assert device.homeroom_teacher is None

    def test_checkin_logs_previous_holder(self):
        """The checkin row names the holder who had the device."""
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device_service.check_in("CB-001")

        logs = _logs("CB-001")
        assert [log.action for log in logs] == ["checkout", "checkin"]
        assert logs[1].user_name == "Jane Doe"
        assert logs[1].reason is None

    def test_missing_holder_is_logged_as_unknown(self):
        """A checked-out row without a holder name logs ``Unknown``."""
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device = device_service.get_device_by_asset_tag("CB-001")
        device.assigned_to_name = ""
        self.db_session.commit()

        device_service.check_in("CB-001")

        assert _logs("CB-001")[-1].user_name == "Unknown"

    def test_checkin_of_available_device_is_a_conflict(self):
        """An available device cannot be checked in."""
        with pytest.raises(AlreadyAvailable):
            device_service.check_in("CB-001")
        assert _logs("CB-001") == []

    def test_unknown_tag_raises_not_found(self):
        with pytest.raises(DeviceNotFound):
            device_service.check_in("NOPE-999")


class TestLifecycleScenario:
    """The checkout, check-in, repeat-checkout walkthrough end to end."""

    def test_full_cycle(self, db_session, make_device):
        """Log has exactly two rows after checkout, checkin, and a rejected repeat."""
        make_device("CB-001")

        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device_service.check_in("CB-001")
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        with pytest.raises(AlreadyCheckedOut):
            device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        logs = _logs("CB-001")
        assert [(log.action, log.user_name) for log in logs] == [
            ("checkout", "Jane Doe"),
            ("checkin", "Jane Doe"),
            ("checkout", "Jane Doe"),
        ]

    def test_status_matches_assignment_for_every_device(self, db_session, make_device):
        """``checked_out`` if and only if an assignment is present."""
        for tag in ("CB-001", "CB-002", "CB-003"):
            make_device(tag)
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device_service.check_out("CB-002", "John Roe", "teacher")
        device_service.check_in("CB-002")

        for device in Device.query.all():
            assert (device.status == "checked_out") == (device.assignment is not None)


class TestRegisterDevice:
    """Tests for register_device and auto_register."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, schools):
        pass

    def test_register_creates_available_device(self):
        device = device_service.register_device(
            "CB-001", "chromebook", "kossman", serial="5CD1234XYZ"
        )

        assert device.id
        assert device.status == "available"
        assert device.assignment is None
        assert device.serial == "5CD1234XYZ"

    def test_duplicate_tag_in_same_school(self):
        device_service.register_device("CB-001", "chromebook", "kossman")
        with pytest.raises(DuplicateAssetTag):
            device_service.register_device("CB-001", "chromebook", "kossman")

    def test_duplicate_tag_in_other_school(self):
        """Asset tags are unique across the whole district."""
        device_service.register_device("CB-001", "chromebook", "kossman")
        with pytest.raises(DuplicateAssetTag):
            device_service.register_device("CB-001", "laptop", "flocktown")
        assert Device.query.count() == 1

    def test_unknown_school(self):
        with pytest.raises(SchoolNotFound):
            device_service.register_device("CB-001", "chromebook", "atlantis")

    def test_unknown_model(self):
        with pytest.raises(ValidationError):
            device_service.register_device("CB-001", "typewriter", "kossman")

    def test_registration_is_audited(self):
        device = device_service.register_device("CB-001", "chromebook", "kossman")

        entry = AuditLog.query.filter_by(entity_type="devices").one()
        assert entry.action_type == "CREATE"
        assert entry.entity_id == device.id

    def test_auto_register_refused_when_school_disallows(self):
        with pytest.raises(AutoRegistrationDisabled):
            device_service.auto_register("CB-777", "chromebook", "kossman")
        assert device_service.find_device_by_asset_tag("CB-777") is None

    def test_auto_register_allowed(self, allow_new_devices):
        allow_new_devices("kossman")
        device = device_service.auto_register("CB-777", "chromebook", "kossman")
        assert device.status == "available"


class TestRegisterMany:
    """Tests for bulk registration."""

    def test_duplicates_are_reported_not_fatal(self, db_session, make_device):
        make_device("CB-002")

        created, failed = device_service.register_many(
            ["CB-001", "CB-002", "CB-003"], "chromebook", "kossman"
        )

        assert [device.asset_tag for device in created] == ["CB-001", "CB-003"]
        assert failed == [("CB-002", "Device already exists: CB-002")]
        assert Device.query.count() == 3


class TestRemoveDevice:
    """Tests for remove_device."""

    def test_remove_keeps_log_history(self, db_session, make_device):
        """Log rows keep their device id and asset tag after removal."""
        device = make_device("CB-001")
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device_service.check_in("CB-001")
        before = [(log.id, log.device_id, log.asset_tag) for log in _logs("CB-001")]

        device_service.remove_device(device["id"])

        assert device_service.find_device_by_asset_tag("CB-001") is None
        after = [(log.id, log.device_id, log.asset_tag) for log in _logs("CB-001")]
        assert after == before
        assert all(device_id == device["id"] for _, device_id, _ in after)

    def test_remove_checked_out_device(self, db_session, make_device):
        """Removal does not depend on status."""
        device = make_device("CB-001")
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")

        device_service.remove_device(device["id"])

        assert Device.query.count() == 0
        entry = AuditLog.query.filter_by(action_type="DELETE").one()
        assert "Jane Doe" in entry.previous_value

    def test_remove_unknown_id(self, db_session, schools):
        with pytest.raises(DeviceNotFound):
            device_service.remove_device("00000000-0000-0000-0000-000000000000")

    def test_tag_can_be_reused_after_removal(self, db_session, make_device):
        device = make_device("CB-001")
        device_service.remove_device(device["id"])

        again = device_service.register_device("CB-001", "chromebook", "kossman")
        assert again.id != device["id"]


class TestListDevices:
    """Tests for get_devices_for_school."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session, make_device):
        make_device("CB-001", serial="SN-AAA")
        make_device("CB-002", serial="SN-BBB")
        make_device("LT-001", model="laptop")
        make_device("CB-900", school_id="flocktown")
        device_service.check_out("CB-002", "Jane Doe", "left-at-home")

    def test_only_the_schools_devices(self):
        tags = {d.asset_tag for d in device_service.get_devices_for_school("kossman")}
        assert tags == {"CB-001", "CB-002", "LT-001"}

    def test_status_filter(self):
        devices = device_service.get_devices_for_school("kossman", status="checked_out")
        assert [d.asset_tag for d in devices] == ["CB-002"]

    def test_search_matches_holder_name(self):
        devices = device_service.get_devices_for_school("kossman", search="jane")
        assert [d.asset_tag for d in devices] == ["CB-002"]

    def test_search_matches_serial(self):
        devices = device_service.get_devices_for_school("kossman", search="aaa")
        assert [d.asset_tag for d in devices] == ["CB-001"]

    def test_sort_by_asset_tag(self):
        devices = device_service.get_devices_for_school(
            "kossman", sort="assetTag", direction="asc"
        )
        assert [d.asset_tag for d in devices] == ["CB-001", "CB-002", "LT-001"]

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            device_service.get_devices_for_school("kossman", status="lost")

    def test_unknown_school(self):
        with pytest.raises(SchoolNotFound):
            device_service.get_devices_for_school("atlantis")
