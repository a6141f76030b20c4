"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class NotificationCategory(str, enum.Enum):
    assignment = "assignment"
    exam = "exam"
    study_partner = "study_partner"
    shared_session = "shared_session"
    system = "system"


class DeliveryTarget(str, enum.Enum):
    site = "site"
    push = "push"
    both = "both"


# Categories driven by the recurring reminder scheduler, in tick order
REMINDER_CATEGORIES = (
    NotificationCategory.assignment,
    NotificationCategory.exam,
    NotificationCategory.study_partner,
    NotificationCategory.shared_session,
)


# =====================================================
# SQLAlchemy Enum Types
# These reference existing PostgreSQL types (create_type=False)
# =====================================================

notification_category_enum = SQLEnum(
    NotificationCategory,
    name="notification_category",
    create_type=False,
    native_enum=True,
)
delivery_target_enum = SQLEnum(
    DeliveryTarget, name="delivery_target", create_type=False, native_enum=True
)
