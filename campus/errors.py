"""Exceptions signalling misuse of the reminder engine (logic bugs, not bad data)."""


class ReminderContractError(Exception):
    """A reminder scheduler was driven in a way its contract forbids."""


class UnknownCategoryError(ReminderContractError, ValueError):
    """A category has no reminder scheduler or no backing event table."""
