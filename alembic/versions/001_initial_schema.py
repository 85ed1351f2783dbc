"""Initial schema — firms, CAs, service requests and the assignment outbox.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Firms
    op.create_table(
        "firms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "auto_assignment_enabled", sa.Boolean, nullable=False, server_default="true"
        ),
    )

    # Chartered accountants
    op.create_table(
        "chartered_accountants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(254), nullable=True),
        sa.Column(
            "specializations", ARRAY(sa.String(40)), nullable=False, server_default="{}"
        ),
        sa.Column(
            "verification_status", sa.String(20), nullable=False, server_default="PENDING"
        ),
    )

    # Firm memberships
    op.create_table(
        "firm_memberships",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("firm_id", sa.String(36), sa.ForeignKey("firms.id"), nullable=False),
        sa.Column(
            "ca_id", sa.String(36), sa.ForeignKey("chartered_accountants.id"), nullable=False
        ),
        sa.Column("role", sa.String(20), nullable=False, server_default="JUNIOR_CA"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "can_work_independently", sa.Boolean, nullable=False, server_default="false"
        ),
    )
    op.create_index(
        "idx_memberships_firm_active", "firm_memberships", ["firm_id", "is_active"]
    )
    op.create_index("idx_memberships_ca", "firm_memberships", ["ca_id"])

    # Availability slots
    op.create_table(
        "availability_slots",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "ca_id", sa.String(36), sa.ForeignKey("chartered_accountants.id"), nullable=False
        ),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_booked", sa.Boolean, nullable=False, server_default="false"),
    )
    op.create_index("idx_availability_ca_date", "availability_slots", ["ca_id", "date"])

    # Service requests
    op.create_table(
        "service_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(36), nullable=False),
        sa.Column("firm_id", sa.String(36), sa.ForeignKey("firms.id"), nullable=True),
        sa.Column(
            "ca_id", sa.String(36), sa.ForeignKey("chartered_accountants.id"), nullable=True
        ),
        sa.Column("service_type", sa.String(40), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("assignment_method", sa.String(10), nullable=True),
        sa.Column("auto_assignment_score", sa.Integer, nullable=True),
        sa.Column("assigned_by_user_id", sa.String(36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_requests_firm_ca", "service_requests", ["firm_id", "ca_id"])
    op.create_index("idx_requests_ca_status", "service_requests", ["ca_id", "status"])
    op.create_index("idx_requests_ca_client", "service_requests", ["ca_id", "client_id"])

    # Reviews
    op.create_table(
        "reviews",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "request_id",
            sa.String(36),
            sa.ForeignKey("service_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_reviews_request", "reviews", ["request_id"])

    # Assignment outbox
    op.create_table(
        "assignment_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("request_id", sa.String(36), nullable=False),
        sa.Column("firm_id", sa.String(36), nullable=False),
        sa.Column("client_id", sa.String(36), nullable=True),
        sa.Column("ca_id", sa.String(36), nullable=True),
        sa.Column("method", sa.String(10), nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_events_undelivered", "assignment_events", ["delivered_at", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("assignment_events")
    op.drop_table("reviews")
    op.drop_table("service_requests")
    op.drop_table("availability_slots")
    op.drop_table("firm_memberships")
    op.drop_table("chartered_accountants")
    op.drop_table("firms")
