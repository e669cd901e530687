"""Repository layer for Billing Service.

Implements data access for subscriptions.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.billing.models import Subscription


class SubscriptionRepository:
    """Repository for subscription operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        stripe_subscription_id: str,
        stripe_price_id: str,
        plan_name: str,
        amount: Decimal,
        status: str,
        current_period_start: Optional[datetime] = None,
        current_period_end: Optional[datetime] = None,
    ) -> Subscription:
        """Create a subscription record. Flushes without committing."""
        subscription = Subscription(
            user_id=user_id,
            stripe_subscription_id=stripe_subscription_id,
            stripe_price_id=stripe_price_id,
            plan_name=plan_name,
            amount=amount,
            status=status,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
        )
        self.session.add(subscription)
        await self.session.flush()
        return subscription

    async def latest_for_user(self, user_id: uuid.UUID) -> Optional[Subscription]:
        """Most recently created subscription for a user."""
        result = await self.session.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

