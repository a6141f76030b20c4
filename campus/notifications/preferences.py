"""
Notification preference parsing and resolution.

Profiles store `notification_preferences` as an unstructured blob that
has been written by several generations of the settings UI. It may be
None, a JSON string, or an object whose category sections use either
the current or the historical key spellings, e.g.

    {
        "exams": {"push": true, "site": true, "reminder_days_before": 3},
        "assignment": {"leadTimeDays": 2, "pushEnabled": false},
        "push_notifications": false
    }

The blob is parsed once into NotificationPreferences; the rest of the
engine only ever sees CategoryPreference values.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from campus.config import get_default_lead_time_days
from campus.enums import DeliveryTarget, NotificationCategory

logger = logging.getLogger(__name__)


# Blob keys accepted for each category section, first match wins
CATEGORY_KEYS = {
    NotificationCategory.assignment: ("assignment", "assignments"),
    NotificationCategory.exam: ("exam", "exams"),
    NotificationCategory.study_partner: (
        "studyPartner",
        "study_partner",
        "studyPartners",
        "study_partners",
    ),
    NotificationCategory.shared_session: (
        "sharedSession",
        "shared_session",
        "sharedSessions",
        "shared_sessions",
    ),
    NotificationCategory.system: ("system",),
}

LEAD_TIME_KEYS = ("leadTimeDays", "lead_time_days", "reminder_days_before")
PUSH_KEYS = ("pushEnabled", "push_enabled", "push")
SITE_KEYS = ("siteEnabled", "site_enabled", "site")

# Larger stored lead times are treated as garbage and fall back to the default
MAX_LEAD_TIME_DAYS = 365


@dataclass(frozen=True)
class CategoryPreference:
    """Fully defaulted preference for one category."""

    lead_time_days: int
    push_enabled: bool = True
    site_enabled: bool = True


@dataclass(frozen=True)
class CategorySection:
    """What a user actually stored for one category. None means absent."""

    lead_time_days: int | None = None
    push_enabled: bool | None = None
    site_enabled: bool | None = None


@dataclass(frozen=True)
class NotificationPreferences:
    sections: Mapping[NotificationCategory, CategorySection] = field(
        default_factory=dict
    )
    # Older global channel switches, used when a section omits a channel
    push_notifications: bool | None = None
    site_notifications: bool | None = None

    def for_category(
        self,
        category: NotificationCategory,
        default_lead_time_days: int | None = None,
    ) -> CategoryPreference:
        category = NotificationCategory(category)
        section = self.sections.get(category, CategorySection())

        if default_lead_time_days is None:
            default_lead_time_days = get_default_lead_time_days(category)

        return CategoryPreference(
            lead_time_days=_first_set(section.lead_time_days, default_lead_time_days),
            push_enabled=_first_set(
                section.push_enabled, self.push_notifications, True
            ),
            site_enabled=_first_set(
                section.site_enabled, self.site_notifications, True
            ),
        )


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _pick(data: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_lead_time(value: Any) -> int | None:
    """Accept whole numbers from 0 to MAX_LEAD_TIME_DAYS, including "3" and 3.0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal() or len(value) > 3:
            return None
        value = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and 0 <= value <= MAX_LEAD_TIME_DAYS:
        return value
    return None


def _as_flag(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _parse_section(data: Any) -> CategorySection:
    if not isinstance(data, Mapping):
        return CategorySection()
    return CategorySection(
        lead_time_days=_as_lead_time(_pick(data, LEAD_TIME_KEYS)),
        push_enabled=_as_flag(_pick(data, PUSH_KEYS)),
        site_enabled=_as_flag(_pick(data, SITE_KEYS)),
    )


def _load_blob(raw: Any) -> Mapping | None:
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return None
        raw = json.loads(raw)
        # Some rows were JSON-encoded twice by an old settings form
        if isinstance(raw, str):
            raw = json.loads(raw)
    if not isinstance(raw, Mapping):
        raise TypeError(f"expected an object, got {type(raw).__name__}")
    return raw


def _parse(raw: Any) -> NotificationPreferences:
    data = _load_blob(raw)
    if data is None:
        return NotificationPreferences()

    sections = {}
    for category, keys in CATEGORY_KEYS.items():
        section = _parse_section(_pick(data, keys))
        if section != CategorySection():
            sections[category] = section

    return NotificationPreferences(
        sections=sections,
        push_notifications=_as_flag(data.get("push_notifications")),
        site_notifications=_as_flag(data.get("site_notifications")),
    )


def parse_preferences(raw: Any) -> NotificationPreferences:
    """
    Parse a raw preference blob into NotificationPreferences.

    Never raises: anything unparseable (including JSON nested too deeply
    to decode) yields the all-defaults value.
    """
    try:
        return _parse(raw)
    except (ValueError, TypeError, RecursionError) as e:
        logger.warning(f"Unparseable notification preferences, using defaults: {e}")
        return NotificationPreferences()


def resolve(
    raw: Any,
    category: NotificationCategory,
    default_lead_time_days: int | None = None,
) -> CategoryPreference:
    """Resolve a user's defaulted preference for one category from a raw blob."""
    return parse_preferences(raw).for_category(category, default_lead_time_days)


def delivery_target_for(preference: CategoryPreference) -> DeliveryTarget:
    """
    Pick the delivery target for a preference.

    Site delivery can't be switched off entirely: a user with both
    channels disabled still gets the site notification.
    """
    if preference.push_enabled and preference.site_enabled:
        return DeliveryTarget.both
    if preference.push_enabled:
        return DeliveryTarget.push
    return DeliveryTarget.site
