"""
Notification writer: creates reminder rows and purges stale ones.

Engine-written fields (delivery_target, is_critical, event_ref) are
never updated after creation; the inbox only flips is_read or deletes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from campus.database import get_transaction
from campus.enums import DeliveryTarget, NotificationCategory
from campus.queries.notifications import delete_notifications, insert_notification
from campus.tables import notifications

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationInput:
    user_id: str
    category: NotificationCategory
    title: str
    message: str
    event_ref: str | None = None
    delivery_target: DeliveryTarget = DeliveryTarget.site
    expires_at: datetime | None = None
    is_critical: bool = False
    link: str | None = None
    reminder_days_before: int | None = None

    @property
    def push_to_phone(self) -> bool:
        return self.delivery_target in (DeliveryTarget.push, DeliveryTarget.both)


async def create_notification(data: NotificationInput) -> dict:
    """
    Persist one notification and return the created row.

    Raises whatever the backend raises; callers that write batches are
    expected to isolate failures per recipient.
    """
    category = NotificationCategory(data.category)
    target = DeliveryTarget(data.delivery_target)

    async with get_transaction() as conn:
        row = await insert_notification(
            conn,
            user_id=data.user_id,
            category=category,
            title=data.title,
            message=data.message,
            link=data.link,
            event_ref=str(data.event_ref) if data.event_ref is not None else None,
            delivery_target=target,
            is_read=False,
            is_critical=data.is_critical,
            push_to_phone=data.push_to_phone,
            reminder_days_before=data.reminder_days_before,
            expires_at=data.expires_at,
        )

    logger.info(
        f"Created {category.value} notification for user {data.user_id} "
        f"(event {data.event_ref}, target {target.value})"
    )
    return row


async def purge_expired_for_event(event_ref: str, category: NotificationCategory) -> int:
    """
    Delete every live notification for an event that has passed or is gone.

    Safe to re-run; returns the number of rows removed.
    """
    async with get_transaction() as conn:
        deleted = await delete_notifications(
            conn,
            notifications.c.event_ref == str(event_ref),
            notifications.c.category == NotificationCategory(category),
        )

    if deleted:
        logger.info(
            f"Purged {deleted} {NotificationCategory(category).value} "
            f"notification(s) for expired event {event_ref}"
        )
    return deleted
