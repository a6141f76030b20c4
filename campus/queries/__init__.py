"""Query layer for database operations using SQLAlchemy Core."""

from .events import (
    UnknownCategoryError,
    get_event,
    list_due_events,
    list_expired_event_refs,
)
from .memberships import users_for_course
from .notifications import (
    delete_notifications,
    find_live_recipients,
    insert_notification,
)
from .preferences import get_preference_blob

__all__ = [
    # Events
    "UnknownCategoryError",
    "list_due_events",
    "get_event",
    "list_expired_event_refs",
    # Memberships
    "users_for_course",
    # Preferences
    "get_preference_blob",
    # Notifications
    "find_live_recipients",
    "insert_notification",
    "delete_notifications",
]
