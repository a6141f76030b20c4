"""Course membership queries (fan-out for course-scoped events)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import user_course_progress


async def users_for_course(conn: AsyncConnection, course_id: str) -> list[str]:
    """
    Get user_ids enrolled in a course.

    A user can have several progress rows for the same course; the
    result is de-duplicated, keeping first-seen order.
    """
    result = await conn.execute(
        select(user_course_progress.c.user_id)
        .where(user_course_progress.c.course_id == course_id)
        .order_by(user_course_progress.c.id)
    )
    return list(dict.fromkeys(row["user_id"] for row in result.mappings()))
