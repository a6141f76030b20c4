"""
Reminder engine of the student portal - platform-agnostic core.
Used by the FastAPI host; can be embedded in any asyncio application.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Enums
from .enums import NotificationCategory, DeliveryTarget, REMINDER_CATEGORIES

# Errors
from .errors import ReminderContractError, UnknownCategoryError

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Enums
    'NotificationCategory', 'DeliveryTarget', 'REMINDER_CATEGORIES',
    # Errors
    'ReminderContractError', 'UnknownCategoryError',
]
