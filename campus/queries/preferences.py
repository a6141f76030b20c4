"""Preference-store queries."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import profiles


async def get_preference_blob(conn: AsyncConnection, user_id: str) -> Any:
    """
    Get the raw notification_preferences value for a user.

    Returns whatever is stored (dict, JSON string, or None); parsing is
    the resolver's job. Missing profiles return None.
    """
    result = await conn.execute(
        select(profiles.c.notification_preferences).where(profiles.c.id == user_id)
    )
    row = result.mappings().first()
    return row["notification_preferences"] if row else None
