"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.adapters.persistence.database import Base

# Ordered list; element 0 is the primary specialization.
SpecializationList = ARRAY(String(40)).with_variant(JSON(), "sqlite")


def _uuid() -> str:
    return str(uuid.uuid4())


class FirmModel(Base):
    __tablename__ = "firms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    auto_assignment_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    memberships: Mapped[list["FirmMembershipModel"]] = relationship(back_populates="firm")


class CharteredAccountantModel(Base):
    __tablename__ = "chartered_accountants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    specializations: Mapped[list[str]] = mapped_column(
        SpecializationList, nullable=False, default=list
    )
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="PENDING"
    )

    memberships: Mapped[list["FirmMembershipModel"]] = relationship(back_populates="ca")


class FirmMembershipModel(Base):
    __tablename__ = "firm_memberships"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    firm_id: Mapped[str] = mapped_column(String(36), ForeignKey("firms.id"), nullable=False)
    ca_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chartered_accountants.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="JUNIOR_CA")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_work_independently: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    firm: Mapped["FirmModel"] = relationship(back_populates="memberships")
    ca: Mapped["CharteredAccountantModel"] = relationship(back_populates="memberships")

    __table_args__ = (
        Index("idx_memberships_firm_active", "firm_id", "is_active"),
        Index("idx_memberships_ca", "ca_id"),
    )


class AvailabilitySlotModel(Base):
    __tablename__ = "availability_slots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    ca_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chartered_accountants.id"), nullable=False
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_availability_ca_date", "ca_id", "date"),)


class ServiceRequestModel(Base):
    __tablename__ = "service_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(String(36), nullable=False)
    firm_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("firms.id"), nullable=True
    )
    ca_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chartered_accountants.id"), nullable=True
    )
    service_type: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    assignment_method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    auto_assignment_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_by_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    reviews: Mapped[list["ReviewModel"]] = relationship(back_populates="request")

    __table_args__ = (
        Index("idx_requests_firm_ca", "firm_id", "ca_id"),
        Index("idx_requests_ca_status", "ca_id", "status"),
        Index("idx_requests_ca_client", "ca_id", "client_id"),
    )


class ReviewModel(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    request: Mapped["ServiceRequestModel"] = relationship(back_populates="reviews")

    __table_args__ = (Index("idx_reviews_request", "request_id"),)


class AssignmentEventModel(Base):
    __tablename__ = "assignment_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    request_id: Mapped[str] = mapped_column(String(36), nullable=False)
    firm_id: Mapped[str] = mapped_column(String(36), nullable=False)
    client_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    ca_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_events_undelivered", "delivered_at", "created_at"),)
