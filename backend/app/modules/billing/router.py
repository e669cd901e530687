"""API Router for Billing Service.

Implements endpoints for subscribing, checking whether a user has a saved
payment method, reading subscription status and listing plans.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.responses import error_response, failure_response
from app.modules.billing.exceptions import BillingError
from app.modules.billing.schemas import (
    CheckPaymentMethodRequest,
    CheckPaymentMethodResponse,
    PlanListResponse,
    PlanResponse,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionStatusResponse,
    SubscriptionSummary,
)
from app.modules.billing.service import SubscriptionService
from app.modules.billing.status_service import StatusQueryService
from app.modules.billing.stripe_client import StripeClient, get_stripe_client
from app.modules.customer.schemas import UserInfo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])


# ==================== Subscriptions ====================

@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    data: SubscribeRequest,
    session: AsyncSession = Depends(get_session),
    stripe_client: Optional[StripeClient] = Depends(get_stripe_client),
):
    """Subscribe a user with a saved payment method to a plan."""
    service = SubscriptionService(session, stripe_client)
    try:
        subscription = await service.subscribe(data.user_id, data.plan_name, data.price_id)
    except BillingError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Unexpected error creating subscription")
        return error_response(e)

    return SubscribeResponse(
        subscription_id=subscription.id,
        stripe_subscription_id=subscription.stripe_subscription_id,
        status=subscription.status,
    )


@router.get("/subscription-status", response_model=SubscriptionStatusResponse)
async def subscription_status(
    user_id: uuid.UUID = Query(...),
    session: AsyncSession = Depends(get_session),
):
    """Get the user's most recent subscription."""
    service = StatusQueryService(session)
    try:
        subscription = await service.subscription_status(user_id)
    except BillingError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Unexpected error reading subscription status")
        return error_response(e)

    if subscription is None:
        return failure_response(404, "No subscription found")

    return SubscriptionStatusResponse(
        subscription=SubscriptionSummary.model_validate(subscription),
    )


# ==================== Payment Methods ====================

@router.post(
    "/check-user-payment-method",
    response_model=CheckPaymentMethodResponse,
    response_model_exclude_none=True,
)
async def check_user_payment_method(
    data: CheckPaymentMethodRequest,
    session: AsyncSession = Depends(get_session),
):
    """Report whether the user with this email has a saved payment method."""
    service = StatusQueryService(session)
    try:
        result = await service.has_payment_method(data.email)
    except Exception as e:
        logger.exception("Unexpected error checking payment method")
        return error_response(e)

    if not result.found:
        return CheckPaymentMethodResponse(
            success=False,
            has_payment_method=False,
            message="User not found",
        )

    user = result.user
    return CheckPaymentMethodResponse(
        has_payment_method=result.has_payment_method,
        user_id=user.id,
        user_info=UserInfo(name=user.name, email=user.email, phone=user.phone),
    )


# ==================== Plans ====================

@router.get("/plans", response_model=PlanListResponse)
async def list_plans(
    session: AsyncSession = Depends(get_session),
):
    """Get the plan catalogue with amounts and configured price IDs."""
    service = SubscriptionService(session)
    return PlanListResponse(
        plans=[PlanResponse(**plan) for plan in service.list_plans()],
    )
