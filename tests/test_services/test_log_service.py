"""
Tests for device log queries and the shared filter/sort helpers.
"""

from datetime import datetime

import pytest

from loanerdesk.errors import ValidationError
from loanerdesk.extensions import db
from loanerdesk.models import DeviceLog
from loanerdesk.services import device_service, log_service, query_helpers
from loanerdesk.timeutil import parse_query_datetime


def _add_log(asset_tag, action, user_name, timestamp, school_id="kossman", **extra):
    db.session.add(
        DeviceLog(
            asset_tag=asset_tag,
            action=action,
            user_name=user_name,
            timestamp=timestamp,
            school_id=school_id,
            **extra,
        )
    )


class TestGetDeviceLogs:
    """Tests for get_device_logs filters."""

    @pytest.fixture(autouse=True)
    def _setup(self, db_session):
        _add_log(
            "CB-001", "checkout", "Jane Doe", datetime(2024, 3, 1, 8, 0),
            reason="left-at-home", homeroom_teacher="Mr. Park",
        )
        _add_log("CB-001", "checkin", "Jane Doe", datetime(2024, 3, 1, 15, 30))
        _add_log(
            "CB-002", "checkout", "John Roe", datetime(2024, 3, 2, 9, 0),
            reason="teacher",
        )
        _add_log(
            "PJ-010", "checkout", "Ms. Lee", datetime(2024, 3, 3, 10, 0),
            school_id="flocktown", reason="presentation",
        )
        db_session.commit()

    def test_default_is_newest_first(self):
        logs = log_service.get_device_logs()
        assert [log.asset_tag for log in logs] == ["PJ-010", "CB-002", "CB-001", "CB-001"]
        assert logs[-1].action == "checkout"

    def test_date_only_end_date_includes_whole_day(self):
        logs = log_service.get_device_logs(start_date="2024-03-01", end_date="2024-03-01")
        assert [log.action for log in logs] == ["checkin", "checkout"]

    def test_datetime_bounds(self):
        logs = log_service.get_device_logs(
            start_date="2024-03-01T12:00:00Z", end_date="2024-03-02T09:00:00Z"
        )
        assert [(log.asset_tag, log.action) for log in logs] == [
            ("CB-002", "checkout"),
            ("CB-001", "checkin"),
        ]

    def test_substring_filters_ignore_case(self):
        assert len(log_service.get_device_logs(user_name="jane")) == 2
        assert len(log_service.get_device_logs(asset_tag="cb-00")) == 3
        assert len(log_service.get_device_logs(homeroom_teacher="park")) == 1
        assert len(log_service.get_device_logs(reason="present")) == 1

    def test_exact_filters(self):
        assert len(log_service.get_device_logs(action="checkin")) == 1
        assert len(log_service.get_device_logs(school_id="flocktown")) == 1
        assert log_service.get_device_logs(school_id="flock") == []

    def test_filters_combine(self):
        logs = log_service.get_device_logs(action="checkout", school_id="kossman")
        assert {log.asset_tag for log in logs} == {"CB-001", "CB-002"}

    def test_sort_by_user_name_ascending(self):
        logs = log_service.get_device_logs(sort="userName,timestamp", direction="asc")
        assert [log.user_name for log in logs] == [
            "Jane Doe",
            "Jane Doe",
            "John Roe",
            "Ms. Lee",
        ]
        assert logs[0].action == "checkout"

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            log_service.get_device_logs(action="lost")

    def test_bad_date(self):
        with pytest.raises(ValidationError, match="startDate"):
            log_service.get_device_logs(start_date="last tuesday")

    def test_logs_for_device(self):
        logs = log_service.get_logs_for_device("CB-001")
        assert [log.action for log in logs] == ["checkin", "checkout"]


class TestLogsSurviveDeviceRemoval:
    """History stays queryable after the device is gone."""

    def test_removed_device_history(self, db_session, make_device):
        device = make_device("CB-001")
        device_service.check_out("CB-001", "Jane Doe", "left-at-home")
        device_service.remove_device(device["id"])

        logs = log_service.get_device_logs(asset_tag="CB-001")
        assert len(logs) == 1
        assert logs[0].device_id == device["id"]


class TestQueryHelpers:
    """Tests for the generic filter and sort helpers."""

    def test_like_wildcards_are_literal(self, db_session):
        _add_log("CB_001", "checkout", "A", datetime(2024, 1, 1))
        _add_log("CBX001", "checkout", "B", datetime(2024, 1, 2))
        db_session.commit()

        query = query_helpers.contains(DeviceLog.query, DeviceLog.asset_tag, "CB_")
        assert [log.asset_tag for log in query.all()] == ["CB_001"]

    def test_ilike_any_escapes_wildcards(self, db_session):
        _add_log("CB_001", "checkout", "Jane 100%", datetime(2024, 1, 1))
        _add_log("CBX001", "checkout", "Jane 1000", datetime(2024, 1, 2))
        db_session.commit()

        columns = (DeviceLog.asset_tag, DeviceLog.user_name)
        by_tag = DeviceLog.query.filter(query_helpers.ilike_any(columns, "cb_"))
        by_name = DeviceLog.query.filter(query_helpers.ilike_any(columns, "100%"))

        assert [log.asset_tag for log in by_tag] == ["CB_001"]
        assert [log.asset_tag for log in by_name] == ["CB_001"]

    def test_substring_pattern(self):
        assert query_helpers.substring_pattern("a%b_c") == "%a\\%b\\_c%"

    def test_empty_values_do_not_filter(self, db_session):
        query = DeviceLog.query
        assert query_helpers.contains(query, DeviceLog.asset_tag, "") is query
        assert query_helpers.equals(query, DeviceLog.action, None) is query

    def test_unknown_sort_field(self, db_session):
        with pytest.raises(ValidationError, match="Cannot sort by"):
            query_helpers.apply_sort(
                DeviceLog.query,
                {"timestamp": DeviceLog.timestamp},
                "password",
                "asc",
                default=("timestamp",),
                tiebreaker=DeviceLog.id,
            )

    def test_bad_direction(self, db_session):
        with pytest.raises(ValidationError, match="order"):
            query_helpers.apply_sort(
                DeviceLog.query,
                {"timestamp": DeviceLog.timestamp},
                None,
                "sideways",
                default=("timestamp",),
                tiebreaker=DeviceLog.id,
            )

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("true", True),
            ("False", False),
            ("1", True),
            ("0", False),
            (None, None),
            ("", None),
        ],
    )
    def test_parse_bool(self, raw, expected):
        assert query_helpers.parse_bool(raw, "isStaff") is expected

    def test_parse_bool_rejects_garbage(self):
        with pytest.raises(ValidationError):
            query_helpers.parse_bool("maybe", "isStaff")


class TestParseQueryDatetime:
    """Tests for query-string date parsing."""

    def test_date_only_start(self):
        assert parse_query_datetime("2024-03-01") == datetime(2024, 3, 1)

    def test_date_only_end_of_day(self):
        parsed = parse_query_datetime("2024-03-01", end_of_day=True)
        assert parsed.date() == datetime(2024, 3, 1).date()
        assert (parsed.hour, parsed.minute, parsed.second) == (23, 59, 59)

    def test_offset_is_converted_to_utc(self):
        parsed = parse_query_datetime("2024-03-01T08:00:00-05:00")
        assert parsed == datetime(2024, 3, 1, 13, 0)
        assert parsed.tzinfo is None

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_query_datetime("yesterday")
