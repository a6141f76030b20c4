"""Create notifications table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the notification_category / delivery_target enums and the
notifications log written by the reminder engine. The portal tables it
reads (profiles, user_course_progress, course_assignments, exam_dates,
study_partners, shared_sessions) already exist.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

notification_category = ENUM(
    "assignment",
    "exam",
    "study_partner",
    "shared_session",
    "system",
    name="notification_category",
    create_type=False,
)
delivery_target = ENUM("site", "push", "both", name="delivery_target", create_type=False)


def upgrade() -> None:
    notification_category.create(op.get_bind(), checkfirst=True)
    delivery_target.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "notifications",
        sa.Column(
            "id",
            UUID(as_uuid=False),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("user_id", UUID(as_uuid=False), nullable=False),
        sa.Column("category", notification_category, nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("event_ref", sa.Text(), nullable=True),
        sa.Column(
            "delivery_target",
            delivery_target,
            server_default="site",
            nullable=False,
        ),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_critical", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("push_to_phone", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("reminder_days_before", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )

    op.create_index("idx_notifications_user_id", "notifications", ["user_id"])
    op.create_index(
        "idx_notifications_event_ref_category",
        "notifications",
        ["event_ref", "category"],
    )


def downgrade() -> None:
    op.drop_index("idx_notifications_event_ref_category", table_name="notifications")
    op.drop_index("idx_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    delivery_target.drop(op.get_bind(), checkfirst=True)
    notification_category.drop(op.get_bind(), checkfirst=True)
