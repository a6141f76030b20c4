"""Notification-store queries: the append/delete log behind the inbox."""

from typing import Any

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import NotificationCategory
from ..tables import notifications


async def find_live_recipients(
    conn: AsyncConnection,
    event_ref: str,
    category: NotificationCategory,
) -> list[str]:
    """
    Get user_ids holding a live notification for an event + category.

    Rows are hard-deleted, so every stored row is live (read or unread).
    """
    result = await conn.execute(
        select(notifications.c.user_id)
        .where(
            and_(
                notifications.c.event_ref == str(event_ref),
                notifications.c.category == NotificationCategory(category),
            )
        )
        .distinct()
    )
    return [row["user_id"] for row in result.mappings()]


async def insert_notification(conn: AsyncConnection, **values: Any) -> dict[str, Any]:
    """Insert one notification and return the created record."""
    result = await conn.execute(
        insert(notifications).values(**values).returning(notifications)
    )
    row = result.mappings().first()
    return dict(row)


async def delete_notifications(conn: AsyncConnection, *criteria) -> int:
    """
    Delete notifications matching all given criteria.

    Refuses to run without criteria so a caller bug can't wipe the table.
    """
    if not criteria:
        raise ValueError("delete_notifications requires at least one criterion")
    result = await conn.execute(delete(notifications).where(and_(*criteria)))
    return result.rowcount or 0
