"""Tests for notification preference parsing and resolution."""

import json

import pytest

from campus.enums import DeliveryTarget, NotificationCategory
from campus.notifications.preferences import (
    CategoryPreference,
    NotificationPreferences,
    delivery_target_for,
    parse_preferences,
    resolve,
)


class TestDefaults:
    """Missing or unusable blobs resolve to per-category defaults."""

    @pytest.mark.parametrize("raw", [None, "", "   ", b""])
    def test_empty_blob_uses_defaults(self, raw):
        pref = resolve(raw, NotificationCategory.exam)
        assert pref == CategoryPreference(
            lead_time_days=3, push_enabled=True, site_enabled=True
        )

    def test_assignment_default_is_two_days(self):
        assert resolve(None, NotificationCategory.assignment).lead_time_days == 2

    def test_other_categories_default_to_one_day(self):
        assert resolve(None, NotificationCategory.study_partner).lead_time_days == 1
        assert resolve(None, NotificationCategory.shared_session).lead_time_days == 1

    @pytest.mark.parametrize(
        "raw", ["{not json", "[1, 2, 3]", "42", b"\xff\xfe", 17, ["exam"]]
    )
    def test_malformed_blob_never_raises(self, raw):
        prefs = parse_preferences(raw)
        assert prefs == NotificationPreferences()
        assert resolve(raw, NotificationCategory.exam).lead_time_days == 3

    def test_explicit_default_overrides_configured_default(self):
        pref = resolve(None, NotificationCategory.exam, default_lead_time_days=7)
        assert pref.lead_time_days == 7

    def test_env_override_of_category_default(self, monkeypatch):
        monkeypatch.setenv("REMINDER_LEAD_DAYS_EXAM", "5")
        assert resolve(None, NotificationCategory.exam).lead_time_days == 5


class TestFieldLevelDefaulting:
    """A section that sets some fields keeps defaults for the rest."""

    def test_lead_time_only(self):
        pref = resolve({"exams": {"reminder_days_before": 5}}, "exam")
        assert pref == CategoryPreference(5, True, True)

    def test_channel_only_keeps_default_lead_time(self):
        pref = resolve({"assignment": {"pushEnabled": False}}, "assignment")
        assert pref.lead_time_days == 2
        assert pref.push_enabled is False
        assert pref.site_enabled is True

    def test_invalid_lead_time_falls_back(self):
        for value in (-1, "soon", 2.5, True, None):
            pref = resolve({"exam": {"leadTimeDays": value}}, "exam")
            assert pref.lead_time_days == 3

    def test_lead_time_accepts_numeric_strings_and_whole_floats(self):
        assert resolve({"exam": {"leadTimeDays": "4"}}, "exam").lead_time_days == 4
        assert resolve({"exam": {"leadTimeDays": 4.0}}, "exam").lead_time_days == 4

    def test_zero_lead_time_is_respected(self):
        assert resolve({"exam": {"lead_time_days": 0}}, "exam").lead_time_days == 0

    def test_non_boolean_flag_is_ignored(self):
        pref = resolve({"exam": {"push": "no"}}, "exam")
        assert pref.push_enabled is True

    def test_other_categories_unaffected(self):
        raw = {"exam": {"leadTimeDays": 9, "push": False}}
        assert resolve(raw, "assignment") == CategoryPreference(2, True, True)


class TestBlobShapes:
    def test_json_string_blob(self):
        raw = json.dumps({"exams": {"reminder_days_before": 1}})
        assert resolve(raw, "exam").lead_time_days == 1

    def test_double_encoded_json_blob(self):
        raw = json.dumps(json.dumps({"exam": {"leadTimeDays": 6}}))
        assert resolve(raw, "exam").lead_time_days == 6

    @pytest.mark.parametrize(
        "key",
        ["studyPartner", "study_partner", "studyPartners", "study_partners"],
    )
    def test_study_partner_key_aliases(self, key):
        pref = resolve({key: {"leadTimeDays": 4}}, "study_partner")
        assert pref.lead_time_days == 4

    def test_section_that_is_not_an_object_is_ignored(self):
        pref = resolve({"exam": "yes please"}, "exam")
        assert pref == CategoryPreference(3, True, True)

    def test_global_channel_switches_apply_when_section_is_silent(self):
        raw = {"push_notifications": False, "exam": {"leadTimeDays": 2}}
        pref = resolve(raw, "exam")
        assert pref.push_enabled is False
        assert pref.site_enabled is True

    def test_section_channel_wins_over_global_switch(self):
        raw = {"push_notifications": False, "exam": {"push": True}}
        assert resolve(raw, "exam").push_enabled is True


class TestDeliveryTarget:
    @pytest.mark.parametrize(
        "push,site,expected",
        [
            (True, True, DeliveryTarget.both),
            (True, False, DeliveryTarget.push),
            (False, True, DeliveryTarget.site),
            (False, False, DeliveryTarget.site),
        ],
    )
    def test_target_for_channel_flags(self, push, site, expected):
        pref = CategoryPreference(lead_time_days=1, push_enabled=push, site_enabled=site)
        assert delivery_target_for(pref) == expected


class TestHostileBlobs:
    """Blobs that used to escape the parser now degrade to defaults."""

    def test_oversize_numeric_lead_time(self):
        pref = resolve({"exam": {"leadTimeDays": "9" * 5000}}, "exam")
        assert pref.lead_time_days == 3

    def test_lead_time_above_a_year_is_ignored(self):
        assert resolve({"exam": {"leadTimeDays": 400}}, "exam").lead_time_days == 3
        assert resolve({"exam": {"leadTimeDays": 1e300}}, "exam").lead_time_days == 3

    def test_deeply_nested_json_string(self):
        raw = "[" * 100000 + "]" * 100000
        assert parse_preferences(raw) == NotificationPreferences()
        assert resolve(raw, "exam") == CategoryPreference(3, True, True)
