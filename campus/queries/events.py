"""Event-store queries: assignments, exams, partnerships and shared sessions.

Every event kind is normalized to the same dict shape so the reminder
scheduler never branches on table layout:

    {"id", "category", "deadline", "title", "course_id", "user_id", ...}
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Table, Text, and_, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import NotificationCategory
from ..errors import UnknownCategoryError
from ..tables import (
    course_assignments,
    exam_dates,
    notifications,
    shared_sessions,
    study_partners,
)


@dataclass(frozen=True)
class EventSource:
    table: Table
    deadline_column: str
    columns: dict[str, str]  # normalized key -> table column
    extra_filter: Any = None
    # Rows matching this are no longer live; their reminders are purged
    retired_filter: Any = None


EVENT_SOURCES: dict[NotificationCategory, EventSource] = {
    NotificationCategory.assignment: EventSource(
        table=course_assignments,
        deadline_column="due_date",
        columns={"course_id": "course_id", "title": "title"},
    ),
    NotificationCategory.exam: EventSource(
        table=exam_dates,
        deadline_column="exam_date",
        columns={"course_id": "course_id", "exam_session": "exam_session"},
    ),
    NotificationCategory.study_partner: EventSource(
        table=study_partners,
        deadline_column="expires_at",
        columns={
            "user_id": "user_id",
            "course_id": "course_id",
            "title": "description",
        },
    ),
    NotificationCategory.shared_session: EventSource(
        table=shared_sessions,
        deadline_column="scheduled_start_time",
        columns={"user_id": "user_id", "course_id": "course_id", "title": "title"},
        extra_filter=shared_sessions.c.is_active.is_(True),
        retired_filter=shared_sessions.c.is_active.is_not(True),
    ),
}


def get_event_source(category: NotificationCategory) -> EventSource:
    try:
        return EVENT_SOURCES[NotificationCategory(category)]
    except (KeyError, ValueError):
        raise UnknownCategoryError(f"No event source for category {category!r}")


def _select_events(category: NotificationCategory):
    source = get_event_source(category)
    table = source.table
    labelled = [table.c.id.label("id"), table.c[source.deadline_column].label("deadline")]
    labelled += [table.c[col].label(key) for key, col in source.columns.items()]
    query = select(*labelled)
    if source.extra_filter is not None:
        query = query.where(source.extra_filter)
    return query, source


def _to_event(row, category: NotificationCategory) -> dict[str, Any]:
    event = {"category": category, "course_id": None, "user_id": None, "title": None}
    event.update(dict(row))
    return event


async def list_due_events(
    conn: AsyncConnection,
    category: NotificationCategory,
    not_before: datetime,
) -> list[dict[str, Any]]:
    """List events of a category whose deadline is at or after `not_before`."""
    query, source = _select_events(category)
    deadline = source.table.c[source.deadline_column]
    result = await conn.execute(
        query.where(deadline >= not_before).order_by(deadline)
    )
    return [_to_event(row, category) for row in result.mappings()]


async def get_event(
    conn: AsyncConnection,
    category: NotificationCategory,
    event_id: str,
) -> dict[str, Any] | None:
    """Get a single event by id, or None if it doesn't exist."""
    query, source = _select_events(category)
    result = await conn.execute(query.where(source.table.c.id == event_id))
    row = result.mappings().first()
    return _to_event(row, category) if row else None


async def list_expired_event_refs(
    conn: AsyncConnection,
    category: NotificationCategory,
    before: datetime,
) -> list[str]:
    """
    Event ids of this category that still have live notifications
    but whose deadline is strictly before `before`.

    Notifications pointing at an event that no longer exists, or at one
    the source no longer lists (a deactivated shared session), are
    included too.
    """
    source = get_event_source(category)
    table = source.table
    gone = [table.c.id.is_(None), table.c[source.deadline_column] < before]
    if source.retired_filter is not None:
        gone.append(source.retired_filter)
    query = (
        select(notifications.c.event_ref)
        .select_from(
            notifications.outerjoin(
                table, notifications.c.event_ref == cast(table.c.id, Text)
            )
        )
        .where(
            and_(
                notifications.c.category == NotificationCategory(category),
                notifications.c.event_ref.is_not(None),
                or_(*gone),
            )
        )
        .distinct()
    )
    result = await conn.execute(query)
    return [row["event_ref"] for row in result.mappings()]
