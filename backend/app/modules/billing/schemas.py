"""Pydantic schemas for Billing Service.

Defines request/response models for subscriptions, payment-method checks
and the plan catalogue.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from app.modules.billing.models import PlanName
from app.modules.customer.schemas import UserInfo


# ==================== Subscription Schemas ====================

class SubscribeRequest(BaseModel):
    user_id: uuid.UUID
    plan_name: PlanName
    price_id: str = Field(min_length=1)


class SubscribeResponse(BaseModel):
    success: bool = True
    message: str = "Subscription created successfully"
    subscription_id: uuid.UUID
    stripe_subscription_id: str
    status: str


class SubscriptionSummary(BaseModel):
    """Subscription as reported by the status endpoint."""

    id: uuid.UUID
    plan_name: str
    amount: Decimal
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    @field_serializer("current_period_start", "current_period_end")
    def serialize_period(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        # Some backends drop the offset on read; stored values are UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    model_config = {"from_attributes": True}


class SubscriptionStatusResponse(BaseModel):
    success: bool = True
    subscription: SubscriptionSummary


# ==================== Payment Method Check ====================

class CheckPaymentMethodRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)


class CheckPaymentMethodResponse(BaseModel):
    success: bool = True
    has_payment_method: bool
    user_id: Optional[uuid.UUID] = None
    user_info: Optional[UserInfo] = None
    message: Optional[str] = None


# ==================== Plans ====================

class PlanResponse(BaseModel):
    name: str
    amount: Decimal
    price_id: Optional[str] = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class PlanListResponse(BaseModel):
    success: bool = True
    plans: list[PlanResponse]


VALIDATION_MESSAGES: dict[str, str] = {
    "user_id.required": "User ID is required.",
    "user_id.uuid": "User ID must be a valid UUID.",
    "plan_name.required": "Plan name is required.",
    "plan_name.string": "Plan name must be a string.",
    "plan_name.in": "Invalid plan name selected.",
    "price_id.required": "Price ID is required.",
    "price_id.string": "Price ID must be a string.",
    "email.required": "Email is required.",
    "email.string": "Email must be a string.",
    "email.max": "Email cannot exceed 255 characters.",
}
