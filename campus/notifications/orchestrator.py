"""
APScheduler-based reminder orchestrator.

Runs every reminder category on a fixed interval (5 minutes by default).
Reminders fire on whole-day matches, so most ticks in a day find nothing
new; the short interval only makes sure a restart or clock drift never
skips a day boundary.

The orchestrator owns its scheduler: the host calls start() when it
comes up and stop() when it shuts down. After stop() no further tick
starts; a tick already running is allowed to finish.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable

import sentry_sdk
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from campus.config import get_reminder_interval_seconds, is_maintenance_mode
from campus.database import check_connection
from campus.enums import REMINDER_CATEGORIES, NotificationCategory
from campus.errors import ReminderContractError
from campus.notifications.reminders import run_reminders
from campus.notifications.strategies import get_strategy

logger = logging.getLogger(__name__)

TICK_JOB_ID = "reminder_orchestrator_tick"

SessionCheck = Callable[[], bool | Awaitable[bool]]


class ReminderOrchestrator:
    """
    Recurring driver for the reminder schedulers.

    `has_session` gates every tick on a live backend. The default probes
    the database with SELECT 1; hosts with their own notion of an
    authenticated session can pass a sync or async callable instead.
    """

    def __init__(
        self,
        categories: Iterable[NotificationCategory] | None = None,
        interval_seconds: int | None = None,
        has_session: SessionCheck | None = None,
        maintenance_check: Callable[[], bool] | None = None,
    ):
        self.categories = tuple(
            NotificationCategory(c) for c in (categories or REMINDER_CATEGORIES)
        )
        self.interval_seconds = interval_seconds or get_reminder_interval_seconds()
        self._has_session = has_session or check_connection
        self._maintenance_check = maintenance_check or is_maintenance_mode
        self._scheduler: AsyncIOScheduler | None = None
        self._tick_lock = asyncio.Lock()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def _session_active(self) -> bool:
        result = self._has_session()
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    # =========================================================================
    # Tick
    # =========================================================================

    async def tick(self) -> dict:
        """
        Run one pass over all reminder categories.

        Never raises. Returns {"skipped": reason} when gated, otherwise a
        dict of per-category stats (or {"error": ...} for a failed one).
        """
        if self._stopped:
            logger.debug("Orchestrator stopped, not starting a tick")
            return {"skipped": "stopped"}

        if self._tick_lock.locked():
            logger.warning("Previous reminder tick still running, skipping this one")
            return {"skipped": "overlap"}

        async with self._tick_lock:
            if self._maintenance_check():
                logger.info("Maintenance mode on, skipping reminder tick")
                return {"skipped": "maintenance"}

            try:
                session_active = await self._session_active()
            except Exception as e:
                logger.error(f"Backend check failed, skipping reminder tick: {e}")
                return {"skipped": "no_session"}
            if not session_active:
                logger.info("Backend not available, skipping reminder tick")
                return {"skipped": "no_session"}

            return await self._run_categories()

    async def _run_categories(self) -> dict:
        now = datetime.now(timezone.utc)
        results: dict = {}

        for category in self.categories:
            try:
                results[category.value] = await run_reminders(
                    get_strategy(category), now
                )
            except ReminderContractError as e:
                # Logic bug, not bad data: abandon the rest of this tick
                logger.error(
                    f"Reminder contract violated for {category.value}, "
                    f"aborting tick: {e}",
                    exc_info=True,
                )
                sentry_sdk.capture_exception(e)
                results[category.value] = {"error": str(e)}
                break
            except Exception as e:
                logger.error(
                    f"Reminder run for {category.value} failed: {e}", exc_info=True
                )
                sentry_sdk.capture_exception(e)
                results[category.value] = {"error": str(e)}

        return results

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Start ticking: once immediately, then every interval.

        Must be called from within a running event loop.
        """
        if self._stopped:
            raise RuntimeError("A stopped orchestrator can't be restarted")
        if self.running:
            return

        self._scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Never overlap ticks
                "misfire_grace_time": self.interval_seconds,
            },
        )
        self._scheduler.add_job(
            self.tick,
            trigger="interval",
            seconds=self.interval_seconds,
            id=TICK_JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self._scheduler.start()
        logger.info(
            f"Reminder orchestrator started (every {self.interval_seconds}s, "
            f"categories: {', '.join(c.value for c in self.categories)})"
        )

    async def stop(self) -> None:
        """
        Stop ticking. Waits for an in-flight tick, never starts a new one.
        """
        self._stopped = True

        if self._scheduler is not None:
            try:
                self._scheduler.remove_job(TICK_JOB_ID)
            except JobLookupError:
                pass  # Already gone
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None

        # Let a tick that was already running finish
        async with self._tick_lock:
            pass

        logger.info("Reminder orchestrator stopped")


# =============================================================================
# Process-wide instance for the host lifespan
# =============================================================================

_orchestrator: ReminderOrchestrator | None = None


def get_orchestrator() -> ReminderOrchestrator | None:
    return _orchestrator


def init_orchestrator(**kwargs) -> ReminderOrchestrator:
    """
    Create and start the process orchestrator.

    Call this during app startup (in FastAPI lifespan).
    """
    global _orchestrator

    if _orchestrator is not None:
        return _orchestrator

    _orchestrator = ReminderOrchestrator(**kwargs)
    _orchestrator.start()
    return _orchestrator


async def shutdown_orchestrator() -> None:
    """
    Stop the process orchestrator.

    Call this during app shutdown.
    """
    global _orchestrator
    if _orchestrator:
        await _orchestrator.stop()
        _orchestrator = None
