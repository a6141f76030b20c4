"""
Generic reminder scheduler.

One control flow serves every reminder category; what differs per
category (where events come from, who receives them, what the message
says) lives in a ReminderStrategy. See strategies.py for the concrete
assignment, exam, study-partner and shared-session strategies.

A run for one category:
1. Purge notifications whose event deadline is already in the past.
2. Fetch events whose deadline is now or later.
3. Per event: resolve candidates, drop users already notified, and fire
   only for users whose lead time equals the whole days left.

Failures are contained to the smallest unit of work: one recipient's
preference read or write, or one event's candidate/duplicate read.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Awaitable, Callable

import sentry_sdk

from campus.config import get_default_lead_time_days, get_reminder_timezone
from campus.database import get_connection
from campus.enums import REMINDER_CATEGORIES, NotificationCategory
from campus.errors import ReminderContractError
from campus.notifications.dedup import already_notified
from campus.notifications.preferences import delivery_target_for, resolve
from campus.notifications.writer import (
    NotificationInput,
    create_notification,
    purge_expired_for_event,
)
from campus.queries.preferences import get_preference_blob

logger = logging.getLogger(__name__)

# Reminders stay visible in the inbox for a day after the deadline
EXPIRY_GRACE = timedelta(days=1)


@dataclass(frozen=True)
class ReminderStrategy:
    """Everything category-specific the generic scheduler needs."""

    category: NotificationCategory
    fetch_events: Callable[[datetime], Awaitable[list[dict]]]
    fetch_event: Callable[[str], Awaitable[dict | None]]
    fetch_expired_event_refs: Callable[[datetime], Awaitable[list[str]]]
    resolve_candidates: Callable[[dict], Awaitable[list[str]]]
    build_message: Callable[[dict, int], tuple[str, str]]
    build_link: Callable[[dict], str | None] = lambda event: None
    is_critical: bool = True
    # None means the configured per-category default
    default_lead_time_days: int | None = None

    def lead_time_default(self) -> int:
        if self.default_lead_time_days is not None:
            return self.default_lead_time_days
        return get_default_lead_time_days(self.category)


async def load_preference_blob(user_id: str) -> Any:
    """Fetch a user's raw preference blob from the preference store."""
    async with get_connection() as conn:
        return await get_preference_blob(conn, user_id)


def coerce_deadline(value: Any) -> datetime | None:
    """
    Normalize a stored deadline to an aware datetime.

    Naive datetimes are read as UTC; bare dates mean midnight UTC.
    Returns None for anything that isn't a usable timestamp.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return None


def days_until_deadline(
    deadline: datetime, now: datetime, tz: tzinfo | None = None
) -> int:
    """
    Whole calendar days from `now` to `deadline` in the reminder timezone.

    Time of day is ignored on both sides: anything due later today is 0,
    anything due tomorrow is 1, however many hours away it is.
    """
    tz = tz or get_reminder_timezone()
    return (deadline.astimezone(tz).date() - now.astimezone(tz).date()).days


def _new_stats() -> dict[str, int]:
    return {
        "events_checked": 0,
        "created": 0,
        "skipped_duplicate": 0,
        "skipped_lead_time": 0,
        "skipped_invalid": 0,
        "failed": 0,
        "purged": 0,
    }


async def _purge_past_events(strategy: ReminderStrategy, now: datetime) -> int:
    category = strategy.category
    try:
        event_refs = await strategy.fetch_expired_event_refs(now)
    except Exception as e:
        logger.error(
            f"Could not list past {category.value} events for cleanup: {e}",
            exc_info=True,
        )
        return 0

    purged = 0
    for event_ref in event_refs:
        try:
            purged += await purge_expired_for_event(event_ref, category)
        except Exception as e:
            logger.error(
                f"Failed to purge {category.value} notifications for {event_ref}: {e}"
            )
    return purged


async def _process_event(
    strategy: ReminderStrategy,
    event: dict,
    now: datetime,
    stats: dict[str, int],
) -> None:
    category = strategy.category
    event_id = event.get("id") if isinstance(event, dict) else None
    deadline = coerce_deadline(event.get("deadline")) if event_id else None

    if event_id is None or deadline is None:
        logger.warning(f"Skipping malformed {category.value} event: {event!r}")
        stats["skipped_invalid"] += 1
        return

    if deadline < now:
        # Past events get no reminders; the purge step handles them
        logger.info(f"{category.value} {event_id} already passed, skipping")
        return

    event = {**event, "deadline": deadline}
    days = days_until_deadline(deadline, now)

    try:
        recipients = await strategy.resolve_candidates(event)
        candidates = list(dict.fromkeys(str(user_id) for user_id in recipients))
        if not candidates:
            logger.debug(f"No recipients for {category.value} {event_id}, skipping")
            return
        notified = await already_notified(str(event_id), category)
    except Exception as e:
        logger.error(
            f"Failed to load recipients for {category.value} {event_id}: {e}",
            exc_info=True,
        )
        stats["failed"] += 1
        return

    pending = [user_id for user_id in candidates if user_id not in notified]
    stats["skipped_duplicate"] += len(candidates) - len(pending)

    content: tuple[str, str, str | None] | None = None

    for user_id in pending:
        try:
            raw_preferences = await load_preference_blob(user_id)
            preference = resolve(
                raw_preferences, category, strategy.lead_time_default()
            )
        except Exception as e:
            logger.error(f"Failed to load preferences for user {user_id}: {e}")
            stats["failed"] += 1
            continue

        if days != preference.lead_time_days:
            stats["skipped_lead_time"] += 1
            continue

        if content is None:
            try:
                title, message = strategy.build_message(event, days)
                content = (title, message, strategy.build_link(event))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(
                    f"Cannot build message for {category.value} {event_id}: {e}"
                )
                stats["skipped_invalid"] += 1
                return

        title, message, link = content
        try:
            await create_notification(
                NotificationInput(
                    user_id=user_id,
                    category=category,
                    title=title,
                    message=message,
                    link=link,
                    event_ref=str(event_id),
                    delivery_target=delivery_target_for(preference),
                    expires_at=deadline + EXPIRY_GRACE,
                    is_critical=strategy.is_critical,
                    reminder_days_before=days,
                )
            )
            stats["created"] += 1
        except Exception as e:
            logger.error(
                f"Failed to create {category.value} reminder for user {user_id} "
                f"on {event_id}: {e}"
            )
            sentry_sdk.capture_exception(e)
            stats["failed"] += 1


async def run_reminders(
    strategy: ReminderStrategy,
    now: datetime | None = None,
    event_id: str | None = None,
) -> dict[str, int]:
    """
    Run one reminder pass for a category.

    Args:
        strategy: Category strategy (see strategies.get_strategy)
        now: Reference time, timezone-aware. Defaults to the current time.
        event_id: Restrict the pass to a single event (manual re-trigger)

    Returns:
        Stats dict with created/skipped/failed/purged counts

    Raises:
        ReminderContractError: strategy is not a reminder category, or
            `now` is naive. Data and backend problems never raise here
            except failing to list the category's due events or to load
            the requested event.
    """
    if not isinstance(strategy, ReminderStrategy):
        raise ReminderContractError(f"Expected a ReminderStrategy, got {strategy!r}")
    if strategy.category not in REMINDER_CATEGORIES:
        raise ReminderContractError(
            f"{strategy.category!r} is not a reminder category"
        )
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        raise ReminderContractError("run_reminders needs a timezone-aware `now`")

    category = strategy.category
    stats = _new_stats()

    stats["purged"] = await _purge_past_events(strategy, now)

    if event_id is None:
        events = await strategy.fetch_events(now)
    else:
        event = await strategy.fetch_event(event_id)
        if event is None:
            logger.info(f"{category.value} {event_id} not found, nothing to remind")
        events = [event] if event else []

    for event in events:
        stats["events_checked"] += 1
        await _process_event(strategy, event, now, stats)

    logger.info(
        f"[Reminders] {category.value}: {stats['created']} created, "
        f"{stats['skipped_duplicate']} already notified, "
        f"{stats['skipped_lead_time']} not due, {stats['failed']} failed, "
        f"{stats['purged']} purged across {stats['events_checked']} events"
    )
    return stats
