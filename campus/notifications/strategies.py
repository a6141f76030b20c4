"""
Per-category reminder strategies.

Assignments and exams fan out to every member of their course; study
partner listings and shared sessions belong to a single user.
"""

from datetime import datetime
from functools import partial

from campus.config import get_reminder_timezone
from campus.database import get_connection
from campus.enums import NotificationCategory
from campus.errors import UnknownCategoryError
from campus.notifications.reminders import ReminderStrategy
from campus.notifications.templates import describe_days, render_notification
from campus.notifications.urls import build_course_url, build_profile_url
from campus.queries.events import get_event, list_due_events, list_expired_event_refs
from campus.queries.memberships import users_for_course


# =============================================================================
# Event store access
# =============================================================================


async def _fetch_due(category: NotificationCategory, now: datetime) -> list[dict]:
    async with get_connection() as conn:
        return await list_due_events(conn, category, now)


async def _fetch_one(category: NotificationCategory, event_id: str) -> dict | None:
    async with get_connection() as conn:
        return await get_event(conn, category, event_id)


async def _fetch_expired(category: NotificationCategory, now: datetime) -> list[str]:
    async with get_connection() as conn:
        return await list_expired_event_refs(conn, category, now)


# =============================================================================
# Recipients
# =============================================================================


async def course_members(event: dict) -> list[str]:
    """Everyone enrolled in the event's course."""
    course_id = event.get("course_id")
    if not course_id:
        return []
    async with get_connection() as conn:
        return await users_for_course(conn, course_id)


async def event_owner(event: dict) -> list[str]:
    """The single user that owns the event."""
    user_id = event.get("user_id")
    return [str(user_id)] if user_id else []


# =============================================================================
# Messages
# =============================================================================


def _local(deadline: datetime) -> datetime:
    return deadline.astimezone(get_reminder_timezone())


def assignment_message(event: dict, days: int) -> tuple[str, str]:
    return render_notification(
        "assignment_reminder",
        {
            "title": event.get("title") or "Untitled assignment",
            "when": describe_days(days),
            "date": _local(event["deadline"]).strftime("%Y-%m-%d"),
        },
    )


def exam_message(event: dict, days: int) -> tuple[str, str]:
    return render_notification(
        "exam_reminder",
        {
            "course_id": event["course_id"],
            "exam_session": event.get("exam_session") or "main session",
            "when": describe_days(days),
            "date": _local(event["deadline"]).strftime("%Y-%m-%d"),
        },
    )


def study_partner_message(event: dict, days: int) -> tuple[str, str]:
    return render_notification(
        "study_partner_expiring",
        {
            "when": describe_days(days),
            "date": _local(event["deadline"]).strftime("%Y-%m-%d"),
        },
    )


def shared_session_message(event: dict, days: int) -> tuple[str, str]:
    return render_notification(
        "shared_session_reminder",
        {
            "title": event.get("title") or "Study session",
            "when": describe_days(days),
            "date": _local(event["deadline"]).strftime("%Y-%m-%d %H:%M"),
        },
    )


def _course_link(event: dict) -> str:
    return build_course_url(event.get("course_id"))


def _profile_link(event: dict) -> str:
    return build_profile_url()


# =============================================================================
# Registry
# =============================================================================


def _strategy(category: NotificationCategory, **kwargs) -> ReminderStrategy:
    return ReminderStrategy(
        category=category,
        fetch_events=partial(_fetch_due, category),
        fetch_event=partial(_fetch_one, category),
        fetch_expired_event_refs=partial(_fetch_expired, category),
        **kwargs,
    )


STRATEGIES: dict[NotificationCategory, ReminderStrategy] = {
    NotificationCategory.assignment: _strategy(
        NotificationCategory.assignment,
        resolve_candidates=course_members,
        build_message=assignment_message,
        build_link=_course_link,
        is_critical=True,
    ),
    NotificationCategory.exam: _strategy(
        NotificationCategory.exam,
        resolve_candidates=course_members,
        build_message=exam_message,
        build_link=_course_link,
        is_critical=True,
    ),
    NotificationCategory.study_partner: _strategy(
        NotificationCategory.study_partner,
        resolve_candidates=event_owner,
        build_message=study_partner_message,
        build_link=_profile_link,
        is_critical=False,
    ),
    NotificationCategory.shared_session: _strategy(
        NotificationCategory.shared_session,
        resolve_candidates=event_owner,
        build_message=shared_session_message,
        build_link=_course_link,
        is_critical=False,
    ),
}


def get_strategy(category: NotificationCategory | str) -> ReminderStrategy:
    """
    Look up the strategy for a reminder category.

    Raises:
        UnknownCategoryError: category is unknown or not reminder-driven
            (e.g. "system")
    """
    try:
        return STRATEGIES[NotificationCategory(category)]
    except (KeyError, ValueError):
        raise UnknownCategoryError(f"No reminder scheduler for category {category!r}")
