"""Billing models for subscriptions and the plan catalogue."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlanName(str, Enum):
    """Plans offered on the pricing page."""
    STARTER = "Starter"
    GROWTH = "Growth"
    SCALING = "Scaling"
    ENTERPRISE = "Enterprise"


class SubscriptionStatus(str, Enum):
    """Stripe subscription status vocabulary.

    Stored statuses are copied verbatim from Stripe and are not validated
    against this enum.
    """
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


# Monthly amount charged per plan, in whole currency units
PLAN_AMOUNTS: dict[str, Decimal] = {
    PlanName.STARTER.value: Decimal("299"),
    PlanName.GROWTH.value: Decimal("449"),
    PlanName.SCALING.value: Decimal("649"),
    PlanName.ENTERPRISE.value: Decimal("899"),
}


class Subscription(Base):
    """Local mirror of a Stripe subscription.

    A row is written only after Stripe accepted the subscription and is not
    updated afterwards. A user's current subscription is the newest row.
    """

    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Stripe integration
    stripe_subscription_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )
    stripe_price_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Plan details
    plan_name: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Status as reported by Stripe
    status: Mapped[str] = mapped_column(String(50), nullable=False)

    # Billing period
    current_period_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    current_period_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps; created_at is set client-side for sub-second ordering
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_subscriptions_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, user={self.user_id}, plan={self.plan_name}, status={self.status})>"
