"""SQLAlchemy Core table definitions for the database schema.

Only the tables the reminder engine reads or writes are declared here.
Events, memberships and profiles are owned by the portal's editing
surfaces; the engine treats them as read-only.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from .enums import delivery_target_enum, notification_category_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. PROFILES (per-user notification preferences)
# =====================================================
profiles = Table(
    "profiles",
    metadata,
    Column("id", UUID(as_uuid=False), primary_key=True),
    Column("full_name", Text),
    Column("email", Text),
    # Unstructured blob; may be an object, a JSON string, or garbage
    Column("notification_preferences", JSONB),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
)


# =====================================================
# 2. USER_COURSE_PROGRESS (course membership)
# =====================================================
user_course_progress = Table(
    "user_course_progress",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", UUID(as_uuid=False), nullable=False),
    Column("course_id", Text, nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_user_course_progress_course_id", "course_id"),
)


# =====================================================
# 3. COURSE_ASSIGNMENTS
# =====================================================
course_assignments = Table(
    "course_assignments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("course_id", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("due_date", TIMESTAMP(timezone=True)),
    Index("idx_course_assignments_due_date", "due_date"),
)


# =====================================================
# 4. EXAM_DATES
# =====================================================
exam_dates = Table(
    "exam_dates",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("course_id", Text, nullable=False),
    Column("exam_date", TIMESTAMP(timezone=True)),
    Column("exam_session", Text),  # e.g. "Moed A"
    Index("idx_exam_dates_exam_date", "exam_date"),
)


# =====================================================
# 5. STUDY_PARTNERS (user-scoped, expiring)
# =====================================================
study_partners = Table(
    "study_partners",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("user_id", UUID(as_uuid=False), nullable=False),
    Column("course_id", Text),
    Column("description", Text),
    Column("expires_at", TIMESTAMP(timezone=True)),
    Index("idx_study_partners_expires_at", "expires_at"),
)


# =====================================================
# 6. SHARED_SESSIONS (scheduled group study sessions)
# =====================================================
shared_sessions = Table(
    "shared_sessions",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("user_id", UUID(as_uuid=False), nullable=False),
    Column("course_id", Text),
    Column("title", Text),
    Column("scheduled_start_time", TIMESTAMP(timezone=True)),
    Column("is_active", Boolean, server_default="true"),
    Index("idx_shared_sessions_start_time", "scheduled_start_time"),
)


# =====================================================
# 7. NOTIFICATIONS (append/delete log rendered by the inbox)
# =====================================================
notifications = Table(
    "notifications",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("user_id", UUID(as_uuid=False), nullable=False),
    Column("category", notification_category_enum, nullable=False),
    Column("title", Text),
    Column("message", Text, nullable=False),
    Column("link", Text),
    # assignment / exam / partnership / session id, typed by category
    Column("event_ref", Text),
    Column(
        "delivery_target",
        delivery_target_enum,
        nullable=False,
        server_default="site",
    ),
    Column("is_read", Boolean, nullable=False, server_default="false"),
    Column("is_critical", Boolean, nullable=False, server_default="false"),
    Column("push_to_phone", Boolean, nullable=False, server_default="false"),
    Column("reminder_days_before", Integer),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("expires_at", TIMESTAMP(timezone=True)),
    Index("idx_notifications_user_id", "user_id"),
    # Duplicate guard lookups
    Index("idx_notifications_event_ref_category", "event_ref", "category"),
)
