"""Read-only queries backing the payment-method check and status endpoints."""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.billing.exceptions import UserNotFoundError
from app.modules.billing.models import Subscription
from app.modules.billing.repository import SubscriptionRepository
from app.modules.customer.models import User
from app.modules.customer.repository import UserRepository


@dataclass
class PaymentMethodCheck:
    found: bool
    has_payment_method: bool = False
    user: Optional[User] = None


class StatusQueryService:
    """Answers whether a user can subscribe and what they are subscribed to."""

    def __init__(self, session: AsyncSession):
        self.user_repo = UserRepository(session)
        self.subscription_repo = SubscriptionRepository(session)

    async def has_payment_method(self, email: str) -> PaymentMethodCheck:
        """Look a user up by exact email. An unknown email is not an error."""
        user = await self.user_repo.get_by_email(email)
        if user is None:
            return PaymentMethodCheck(found=False)
        return PaymentMethodCheck(
            found=True,
            has_payment_method=user.has_payment_method,
            user=user,
        )

    async def subscription_status(self, user_id: uuid.UUID) -> Optional[Subscription]:
        """The user's most recently created subscription, or None.

        Raises:
            UserNotFoundError: No user with this ID
        """
        if await self.user_repo.get_by_id(user_id) is None:
            raise UserNotFoundError()
        return await self.subscription_repo.latest_for_user(user_id)
