"""URL builder utilities for notification links."""

from campus.config import get_frontend_url


def build_course_url(course_id: str | None) -> str:
    """Build URL to a course page, or the course list when unknown."""
    base = get_frontend_url()
    if not course_id:
        return f"{base}/courses"
    return f"{base}/course/{course_id}"


def build_profile_url() -> str:
    """Build URL to the user's profile (study partner listings live there)."""
    base = get_frontend_url()
    return f"{base}/profile"
