"""Multi-tick reminder scenarios against an in-memory notification store.

Covers the behavior across repeated runs: each user is reminded once per
occasion at their own lead time, and notifications disappear once the
event has passed.
"""

import itertools
from contextlib import ExitStack
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import patch

from campus.enums import NotificationCategory
from campus.notifications.reminders import ReminderStrategy, run_reminders
from campus.notifications.strategies import assignment_message

MODULE = "campus.notifications.reminders"
EXAM_AT = datetime(2026, 6, 20, 9, 0, tzinfo=timezone.utc)
ASSIGNMENT_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class InMemoryStore:
    """Events, preferences and the notification log for one category."""

    def __init__(self, events, members, preferences):
        self.events = {event["id"]: event for event in events}
        self.members = members
        self.preferences = preferences
        self.notifications: list[dict] = []
        self._ids = itertools.count(1)

    # Notification log

    async def already_notified(self, event_id, category):
        return {
            n["user_id"]
            for n in self.notifications
            if n["event_ref"] == event_id and n["category"] == category
        }

    async def create_notification(self, data):
        row = {
            "id": next(self._ids),
            "user_id": data.user_id,
            "category": data.category,
            "event_ref": data.event_ref,
            "message": data.message,
            "reminder_days_before": data.reminder_days_before,
            "delivery_target": data.delivery_target,
        }
        self.notifications.append(row)
        return row

    async def purge_expired_for_event(self, event_ref, category):
        before = len(self.notifications)
        self.notifications = [
            n
            for n in self.notifications
            if not (n["event_ref"] == event_ref and n["category"] == category)
        ]
        return before - len(self.notifications)

    async def load_preference_blob(self, user_id):
        return self.preferences.get(user_id)

    # Event store

    async def fetch_events(self, now):
        return [e for e in self.events.values() if e["deadline"] >= now]

    async def fetch_event(self, event_id):
        return self.events.get(event_id)

    async def fetch_expired_event_refs(self, now):
        refs = {n["event_ref"] for n in self.notifications}
        return [
            ref
            for ref in refs
            if ref not in self.events or self.events[ref]["deadline"] < now
        ]

    async def course_members(self, event):
        return self.members.get(event["course_id"], [])

    def strategy(
        self, category=NotificationCategory.exam, build_message=None
    ) -> ReminderStrategy:
        return ReminderStrategy(
            category=category,
            fetch_events=self.fetch_events,
            fetch_event=self.fetch_event,
            fetch_expired_event_refs=self.fetch_expired_event_refs,
            resolve_candidates=self.course_members,
            build_message=build_message
            or (lambda event, days: ("Exam", f"Exam in {days} days")),
        )

    def patched(self) -> ExitStack:
        """Route the scheduler's store calls to this instance."""
        stack = ExitStack()
        for name in (
            "already_notified",
            "create_notification",
            "purge_expired_for_event",
            "load_preference_blob",
        ):
            stack.enter_context(patch(f"{MODULE}.{name}", getattr(self, name)))
        return stack


@pytest.fixture
def store():
    return InMemoryStore(
        events=[
            {
                "id": "exam-x",
                "category": NotificationCategory.exam,
                "course_id": "20441",
                "deadline": EXAM_AT,
            }
        ],
        members={"20441": ["U1", "U2"]},
        preferences={"U2": {"exams": {"reminder_days_before": 5}}},
    )


class TestExamScenario:
    @pytest.mark.asyncio
    async def test_each_user_reminded_once_at_their_lead_time(self, store):
        strategy = store.strategy()

        with store.patched():
            # Five days out: only U2 (lead 5) is due
            await run_reminders(strategy, EXAM_AT - timedelta(days=5))
            assert [(n["user_id"], n["reminder_days_before"]) for n in store.notifications] == [
                ("U2", 5)
            ]

            # Another tick a few minutes later adds nothing
            stats = await run_reminders(strategy, EXAM_AT - timedelta(days=5, minutes=-5))
            assert stats["created"] == 0
            assert len(store.notifications) == 1

            # Three days out: U1 (default lead 3) joins, U2 is not reminded again
            stats = await run_reminders(strategy, EXAM_AT - timedelta(days=3))
            assert stats["created"] == 1
            assert stats["skipped_duplicate"] == 1
            assert sorted(n["user_id"] for n in store.notifications) == ["U1", "U2"]

            # Day before: nobody has lead 1, nothing new
            await run_reminders(strategy, EXAM_AT - timedelta(days=1))
            assert len(store.notifications) == 2

    @pytest.mark.asyncio
    async def test_changed_lead_time_after_notification_does_not_refire(self, store):
        strategy = store.strategy()

        with store.patched():
            await run_reminders(strategy, EXAM_AT - timedelta(days=5))
            store.preferences["U2"] = {"exams": {"reminder_days_before": 2}}
            await run_reminders(strategy, EXAM_AT - timedelta(days=2))

        assert [n["user_id"] for n in store.notifications].count("U2") == 1

    @pytest.mark.asyncio
    async def test_notifications_purged_after_the_exam_and_never_return(self, store):
        strategy = store.strategy()

        with store.patched():
            await run_reminders(strategy, EXAM_AT - timedelta(days=5))
            await run_reminders(strategy, EXAM_AT - timedelta(days=3))
            assert len(store.notifications) == 2

            stats = await run_reminders(strategy, EXAM_AT + timedelta(minutes=1))
            assert stats["purged"] == 2
            assert store.notifications == []

            for hours in (1, 24, 72):
                stats = await run_reminders(strategy, EXAM_AT + timedelta(hours=hours))
                assert stats["created"] == 0
            assert store.notifications == []

    @pytest.mark.asyncio
    async def test_notifications_of_deleted_event_are_purged(self, store):
        strategy = store.strategy()

        with store.patched():
            await run_reminders(strategy, EXAM_AT - timedelta(days=5))
            del store.events["exam-x"]
            stats = await run_reminders(strategy, EXAM_AT - timedelta(days=4))

        assert stats["purged"] == 1
        assert store.notifications == []

    @pytest.mark.asyncio
    async def test_manual_trigger_respects_duplicate_guard(self, store):
        strategy = store.strategy()
        now = EXAM_AT - timedelta(days=3)

        with store.patched():
            await run_reminders(strategy, now, event_id="exam-x")
            await run_reminders(strategy, now, event_id="exam-x")
            await run_reminders(strategy, now)

        assert [n["user_id"] for n in store.notifications] == ["U1"]


@pytest.fixture
def assignment_store():
    return InMemoryStore(
        events=[
            {
                "id": "E1",
                "category": NotificationCategory.assignment,
                "course_id": "20441",
                "title": "Maman 11",
                "deadline": ASSIGNMENT_NOW + timedelta(days=2),
            }
        ],
        members={"20441": ["U1", "U2"]},
        preferences={
            "U1": {"assignment": {"leadTimeDays": 2}},
            "U2": {"assignment": {"leadTimeDays": 5}},
        },
    )


class TestAssignmentScenario:
    @pytest.mark.asyncio
    async def test_due_in_two_days_then_retick_then_past(self, assignment_store):
        store = assignment_store
        strategy = store.strategy(
            NotificationCategory.assignment, build_message=assignment_message
        )

        with store.patched():
            # Due in two days: U1 (lead 2) is reminded, U2 (lead 5) is not due
            stats = await run_reminders(strategy, ASSIGNMENT_NOW)
            assert stats["created"] == 1
            assert stats["skipped_lead_time"] == 1
            assert [(n["user_id"], n["reminder_days_before"]) for n in store.notifications] == [
                ("U1", 2)
            ]
            assert "Maman 11" in store.notifications[0]["message"]

            # Five minutes later nothing new is written
            stats = await run_reminders(strategy, ASSIGNMENT_NOW + timedelta(minutes=5))
            assert stats["created"] == 0
            assert stats["skipped_duplicate"] == 1
            assert stats["skipped_lead_time"] == 1
            assert len(store.notifications) == 1

            # Three days on the deadline has passed: purged, nothing created
            stats = await run_reminders(strategy, ASSIGNMENT_NOW + timedelta(days=3))
            assert stats["purged"] == 1
            assert stats["created"] == 0
            assert stats["events_checked"] == 0
            assert store.notifications == []
