"""Subscription Service.

Owns the plan catalogue and creates Stripe subscriptions for users who have
already saved a payment method.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.metrics import ORPHANED_SUBSCRIPTIONS_TOTAL
from app.modules.billing.exceptions import (
    BillingError,
    BillingValidationError,
    NoPaymentMethodError,
    PlanPriceMismatchError,
    UserNotFoundError,
)
from app.modules.billing.models import PLAN_AMOUNTS, PlanName, Subscription
from app.modules.billing.repository import SubscriptionRepository
from app.modules.billing.stripe_client import StripeClient
from app.modules.customer.repository import UserRepository

logger = logging.getLogger(__name__)


def resolve_plan_amount(plan_name: str) -> Decimal:
    """Monthly amount for a plan; names outside the catalogue resolve to zero."""
    return PLAN_AMOUNTS.get(plan_name, Decimal("0"))


def configured_price_id(plan_name: str) -> Optional[str]:
    """Stripe price ID configured for a plan, or None when unset."""
    price_ids = {
        PlanName.STARTER.value: settings.STRIPE_PRICE_ID_STARTER,
        PlanName.GROWTH.value: settings.STRIPE_PRICE_ID_GROWTH,
        PlanName.SCALING.value: settings.STRIPE_PRICE_ID_SCALING,
        PlanName.ENTERPRISE.value: settings.STRIPE_PRICE_ID_ENTERPRISE,
    }
    return price_ids.get(plan_name) or None


class SubscriptionService:
    """Service for creating subscriptions and listing plans."""

    def __init__(self, session: AsyncSession, stripe_client: Optional[StripeClient] = None):
        self.session = session
        self.stripe_client = stripe_client
        self.user_repo = UserRepository(session)
        self.subscription_repo = SubscriptionRepository(session)

    def list_plans(self) -> list[dict]:
        return [
            {
                "name": plan.value,
                "amount": resolve_plan_amount(plan.value),
                "price_id": configured_price_id(plan.value),
            }
            for plan in PlanName
        ]

    async def subscribe(
        self,
        user_id: uuid.UUID,
        plan_name: str,
        price_id: str,
    ) -> Subscription:
        """Create a Stripe subscription and record it locally.

        Args:
            user_id: Local user ID
            plan_name: One of the catalogue plan names
            price_id: Stripe price ID chosen by the client

        Returns:
            The persisted Subscription

        Raises:
            UserNotFoundError: No user with this ID
            BillingValidationError: Plan name outside the catalogue
            PlanPriceMismatchError: price_id differs from the configured price
            NoPaymentMethodError: User has no Stripe customer yet
            ProcessorError: Stripe rejected the subscription
            BillingError: Local persistence failed
        """
        plan_name = getattr(plan_name, "value", plan_name)
        if plan_name not in PLAN_AMOUNTS:
            raise BillingValidationError("plan_name", "Invalid plan name selected.")

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()

        expected_price_id = configured_price_id(plan_name)
        if expected_price_id and expected_price_id != price_id:
            logger.warning(
                "Rejected subscription with mismatched price",
                extra={"user_id": str(user_id), "plan_name": plan_name, "price_id": price_id},
            )
            raise PlanPriceMismatchError(plan_name)

        if not user.stripe_customer_id:
            raise NoPaymentMethodError()

        if self.stripe_client is None:
            raise BillingError("payment processor is not configured")

        stripe_sub = await self.stripe_client.create_subscription(
            customer_id=user.stripe_customer_id,
            price_id=price_id,
            metadata={"user_id": str(user.id), "plan_name": plan_name},
        )

        user_id = user.id
        stripe_customer_id = user.stripe_customer_id
        try:
            subscription = await self.subscription_repo.create(
                user_id=user_id,
                stripe_subscription_id=stripe_sub.id,
                stripe_price_id=price_id,
                plan_name=plan_name,
                amount=resolve_plan_amount(plan_name),
                status=stripe_sub.status,
                current_period_start=stripe_sub.current_period_start,
                current_period_end=stripe_sub.current_period_end,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            ORPHANED_SUBSCRIPTIONS_TOTAL.inc()
            logger.error(
                "Orphaned processor subscription",
                extra={
                    "user_id": str(user_id),
                    "stripe_customer_id": stripe_customer_id,
                    "stripe_subscription_id": stripe_sub.id,
                },
                exc_info=True,
            )
            raise BillingError(str(e)) from e

        # The row is committed from here on; a failed reload is not an orphan
        try:
            await self.session.refresh(subscription)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to reload subscription after commit",
                extra={"stripe_subscription_id": stripe_sub.id},
                exc_info=True,
            )
            raise BillingError(str(e)) from e

        logger.info(
            "Created subscription",
            extra={
                "user_id": str(user_id),
                "subscription_id": str(subscription.id),
                "stripe_subscription_id": stripe_sub.id,
                "plan_name": plan_name,
                "status": stripe_sub.status,
            },
        )
        return subscription
