"""
Duplicate guard for reminder notifications.

There is no unique constraint on (user_id, event_ref, category): the
guard reads the live set before any write for that event. Two writers
racing between the read and the insert can still produce a duplicate;
that window is accepted rather than taking a lock across I/O calls.
"""

from campus.database import get_connection
from campus.enums import NotificationCategory
from campus.queries.notifications import find_live_recipients


async def already_notified(event_id: str, category: NotificationCategory) -> set[str]:
    """
    Get user_ids that already hold a live notification for this event.

    Once a reminder for an occasion exists it is final, even if the
    user's lead-time preference changes afterwards.
    """
    async with get_connection() as conn:
        user_ids = await find_live_recipients(conn, str(event_id), category)
    return {str(user_id) for user_id in user_ids}
