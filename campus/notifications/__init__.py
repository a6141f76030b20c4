"""
Reminder generation and delivery orchestration.

Public API:
    ReminderOrchestrator - recurring driver (start/stop/tick)
    init_orchestrator() / shutdown_orchestrator() - host lifespan hooks
    run_reminders(strategy, now) - one pass for one category
    get_strategy(category) - category strategy lookup

High-level actions:
    trigger_event_reminders(category, event_id) - manual re-run for one event
    create_system_notification(...) - site-only system message
    create_welcome_notification(user_id, lang) - greeting for new users
"""

from .actions import (
    create_system_notification,
    create_welcome_notification,
    trigger_event_reminders,
)
from .orchestrator import (
    ReminderOrchestrator,
    get_orchestrator,
    init_orchestrator,
    shutdown_orchestrator,
)
from .preferences import CategoryPreference, delivery_target_for, parse_preferences, resolve
from .reminders import ReminderStrategy, run_reminders
from .strategies import get_strategy

__all__ = [
    # Orchestration
    "ReminderOrchestrator",
    "get_orchestrator",
    "init_orchestrator",
    "shutdown_orchestrator",
    # Scheduling
    "ReminderStrategy",
    "run_reminders",
    "get_strategy",
    # Preferences
    "CategoryPreference",
    "parse_preferences",
    "resolve",
    "delivery_target_for",
    # High-level actions
    "trigger_event_reminders",
    "create_system_notification",
    "create_welcome_notification",
]
