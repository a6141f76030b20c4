"""
Centralized configuration for the student portal reminder engine.

All settings are read from the environment on each call so tests and
operators can flip them (e.g. MAINTENANCE_MODE) without a restart.
"""

import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .enums import NotificationCategory

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")

DEFAULT_REMINDER_INTERVAL_SECONDS = 5 * 60

# Lead time (in whole days) used when a user has no stored preference
DEFAULT_LEAD_TIME_DAYS = {
    NotificationCategory.exam: 3,
    NotificationCategory.assignment: 2,
}
FALLBACK_LEAD_TIME_DAYS = 1


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in _TRUTHY


def is_maintenance_mode() -> bool:
    """Global maintenance switch. When set, reminder ticks are skipped."""
    return os.getenv("MAINTENANCE_MODE", "").lower() in _TRUTHY


def get_reminder_interval_seconds() -> int:
    """Polling interval of the reminder orchestrator."""
    raw = os.getenv("REMINDER_INTERVAL_SECONDS")
    if not raw:
        return DEFAULT_REMINDER_INTERVAL_SECONDS
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid REMINDER_INTERVAL_SECONDS={raw!r}, using default")
        return DEFAULT_REMINDER_INTERVAL_SECONDS
    return value if value > 0 else DEFAULT_REMINDER_INTERVAL_SECONDS


def get_default_lead_time_days(category: NotificationCategory) -> int:
    """
    Default reminder lead time for a category.

    Can be overridden per category with REMINDER_LEAD_DAYS_<CATEGORY>,
    e.g. REMINDER_LEAD_DAYS_EXAM=5.
    """
    category = NotificationCategory(category)
    default = DEFAULT_LEAD_TIME_DAYS.get(category, FALLBACK_LEAD_TIME_DAYS)

    raw = os.getenv(f"REMINDER_LEAD_DAYS_{category.value.upper()}")
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def get_reminder_timezone() -> ZoneInfo:
    """Timezone whose calendar days are used to count days until a deadline."""
    name = os.getenv("REMINDER_TIMEZONE", "UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown REMINDER_TIMEZONE={name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def get_frontend_url() -> str:
    """Base URL of the portal frontend, used for notification links."""
    return os.environ.get("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def get_allowed_origins() -> list[str]:
    """
    List of allowed CORS origins for the host API.

    Local dev servers are only allowed in DEV_MODE; otherwise just the
    portal frontend.
    """
    origins = []
    if is_dev_mode():
        hosts = ["localhost", "127.0.0.1"]
        ports = [5173, 8080]
        origins = [f"http://{host}:{port}" for host in hosts for port in ports]

    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)

    return origins
