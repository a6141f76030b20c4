"""
High-level notification actions.

These are called by the host (routes, sign-up flow) rather than by the
recurring orchestrator.
"""

from datetime import datetime

from campus.enums import DeliveryTarget, NotificationCategory
from campus.notifications.reminders import run_reminders
from campus.notifications.strategies import get_strategy
from campus.notifications.templates import load_templates
from campus.notifications.writer import NotificationInput, create_notification

WELCOME_LANGUAGES = ("he", "en")


async def trigger_event_reminders(
    category: NotificationCategory | str,
    event_id: str,
    now: datetime | None = None,
) -> dict:
    """
    Re-run reminders for a single event, e.g. right after an editor saves it.

    Goes through the same duplicate guard as the recurring run, so
    re-triggering never sends a second reminder for the same occasion.

    Raises:
        UnknownCategoryError: category has no reminder scheduler
    """
    return await run_reminders(get_strategy(category), now=now, event_id=event_id)


async def create_system_notification(
    user_id: str,
    title: str,
    message: str,
    link: str | None = None,
    expires_at: datetime | None = None,
) -> dict:
    """Create a general site-only system notification for a user."""
    return await create_notification(
        NotificationInput(
            user_id=user_id,
            category=NotificationCategory.system,
            title=title,
            message=message,
            link=link,
            delivery_target=DeliveryTarget.site,
            expires_at=expires_at,
            is_critical=True,
        )
    )


async def create_welcome_notification(user_id: str, lang: str = "he") -> dict:
    """
    Greet a newly registered user on both channels.

    Unsupported languages fall back to Hebrew.
    """
    if lang not in WELCOME_LANGUAGES:
        lang = "he"
    welcome = load_templates()["welcome"][lang]

    return await create_notification(
        NotificationInput(
            user_id=user_id,
            category=NotificationCategory.system,
            title=welcome["title"],
            message=welcome["message"],
            delivery_target=DeliveryTarget.both,
            is_critical=False,
        )
    )
