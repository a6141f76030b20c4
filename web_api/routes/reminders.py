# web_api/routes/reminders.py
"""Reminder API routes.

Endpoints:
- POST /api/reminders/{category}/{event_id}/trigger - Re-run reminders for one event
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from campus.errors import UnknownCategoryError
from campus.notifications.actions import trigger_event_reminders

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


class TriggerRequest(BaseModel):
    # Optional reference time, mainly for backfills; must carry a UTC offset
    now: datetime | None = None


@router.post("/{category}/{event_id}/trigger")
async def trigger_reminders(
    category: str, event_id: str, body: TriggerRequest | None = None
):
    """
    Re-run the reminder pass for a single event.

    Users that already hold a reminder for the event are skipped, so
    calling this repeatedly is safe.

    Returns 400 for a malformed event id or unknown category and 404 when
    no such event exists. Backend failures while loading the event are
    not caught here and surface as 500.
    """
    now = body.now if body else None
    if now is not None and now.tzinfo is None:
        raise HTTPException(status_code=400, detail="now must include a UTC offset")

    # Event ids are UUIDs in every event table
    try:
        event_id = str(UUID(event_id))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid event id: {event_id}")

    try:
        stats = await trigger_event_reminders(category, event_id, now=now)
    except UnknownCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not stats.get("events_checked"):
        raise HTTPException(
            status_code=404, detail=f"{category} event not found: {event_id}"
        )

    return {"category": category, "event_id": event_id, "stats": stats}
