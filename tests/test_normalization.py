"""Tests for classifying raw audit records."""
from __future__ import annotations

import logging

from worktime.config import EstimatorSettings
from worktime.models import EventKind
from worktime.normalization import extract_identity, extract_logon_type, normalize

from .conftest import OTHER_SID, T0, USER_SID, hours, raw


class TestExtractIdentity:
    def test_target_user_sid_preferred(self):
        event = raw(4800, T0, sid=USER_SID, user_id=OTHER_SID)
        assert extract_identity(event) == USER_SID

    def test_falls_back_to_security_user_id(self):
        event = raw(4800, T0, sid=None, user_id=USER_SID)
        assert extract_identity(event) == USER_SID

    def test_malformed_primary_uses_fallback(self):
        event = raw(4800, T0, sid="-", user_id=USER_SID)
        assert extract_identity(event) == USER_SID

    def test_no_well_formed_identity(self):
        assert extract_identity(raw(4800, T0, sid="NULL SID", user_id="")) is None


class TestExtractLogonType:
    def test_numeric(self):
        assert extract_logon_type(raw(4624, T0, logon_type=" 7 ")) == 7

    def test_missing(self):
        assert extract_logon_type(raw(4624, T0)) is None

    def test_not_numeric(self):
        assert extract_logon_type(raw(4624, T0, logon_type="%%2313")) is None


class TestNormalize:
    def test_maps_ids_to_kinds(self):
        events = [
            raw(4624, T0, logon_type="2"),
            raw(4801, T0 + hours(1)),
            raw(4800, T0 + hours(2)),
            raw(4647, T0 + hours(3)),
            raw(4802, T0 + hours(4)),
        ]
        kinds = [event.kind for event in normalize(events, USER_SID)]
        assert kinds == [
            EventKind.START_WORK,
            EventKind.START_WORK,
            EventKind.STOP_WORK,
            EventKind.STOP_WORK,
            EventKind.STOP_WORK,
        ]

    def test_keeps_timestamps_and_input_order(self):
        events = [raw(4800, T0 + hours(2)), raw(4801, T0)]
        result = normalize(events, USER_SID)
        assert [event.timestamp for event in result] == [T0 + hours(2), T0]

    def test_drops_other_identities(self):
        events = [raw(4801, T0, sid=OTHER_SID), raw(4800, T0, sid=USER_SID)]
        result = normalize(events, USER_SID)
        assert [event.kind for event in result] == [EventKind.STOP_WORK]

    def test_identity_match_is_case_insensitive(self):
        assert normalize([raw(4801, T0, sid=USER_SID.lower())], USER_SID)

    def test_drops_non_interactive_logons(self):
        events = [raw(4624, T0, logon_type=value) for value in ("3", "5", "10")]
        assert normalize(events, USER_SID) == []

    def test_keeps_interactive_unlock_and_cached_logons(self):
        events = [raw(4624, T0, logon_type=value) for value in ("2", "7", "11")]
        assert len(normalize(events, USER_SID)) == 3

    def test_bad_logon_type_dropped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="worktime.normalization"):
            result = normalize([raw(4624, T0)], USER_SID)
        assert result == []
        assert "LogonType" in caplog.text

    def test_non_logon_events_skip_logon_type_check(self):
        assert normalize([raw(4801, T0, logon_type="3")], USER_SID)

    def test_drops_unrecognized_ids_and_missing_identity(self):
        events = [raw(4625, T0), raw(4800, T0, sid=None)]
        assert normalize(events, USER_SID) == []

    def test_custom_logon_types(self):
        settings = EstimatorSettings(work_logon_types=frozenset({10}))
        events = [raw(4624, T0, logon_type="10"), raw(4624, T0, logon_type="2")]
        assert len(normalize(events, USER_SID, settings)) == 1
