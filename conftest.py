"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)

# Settings that change reminder behavior; tests opt in with monkeypatch
REMINDER_ENV_VARS = (
    "MAINTENANCE_MODE",
    "REMINDER_INTERVAL_SECONDS",
    "REMINDER_TIMEZONE",
    "REMINDER_LEAD_DAYS_ASSIGNMENT",
    "REMINDER_LEAD_DAYS_EXAM",
    "REMINDER_LEAD_DAYS_STUDY_PARTNER",
    "REMINDER_LEAD_DAYS_SHARED_SESSION",
    "FRONTEND_URL",
)


@pytest.fixture(autouse=True)
def reminder_env(monkeypatch):
    """Run every test against the built-in reminder defaults."""
    for name in REMINDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()
