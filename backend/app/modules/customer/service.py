"""Reconciliation of local users with Stripe customers.

Saving a payment method either creates the Stripe customer and local user,
links a new Stripe customer to an existing user, or moves an existing
customer's default payment method to the new token. The Stripe call always
happens before any local write.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.billing.exceptions import BillingError
from app.modules.billing.stripe_client import StripeClient
from app.modules.customer.models import User
from app.modules.customer.repository import UserRepository
from app.modules.customer.schemas import UserInfo

logger = logging.getLogger(__name__)


@dataclass
class SavedPaymentMethod:
    user: User
    stripe_customer_id: str
    created_user: bool = False


class ReconciliationService:
    """Keeps a user's Stripe customer and default payment method in step."""

    def __init__(self, session: AsyncSession, stripe_client: Optional[StripeClient]):
        self.session = session
        self.stripe_client = stripe_client
        self.user_repo = UserRepository(session)

    async def save_payment_method(
        self,
        user_info: UserInfo,
        payment_method_id: str,
    ) -> SavedPaymentMethod:
        """Make ``payment_method_id`` the default payment method for the user.

        Args:
            user_info: Name, email and phone from the payment form
            payment_method_id: Stripe payment method token

        Returns:
            SavedPaymentMethod with the user and their Stripe customer ID

        Raises:
            ProcessorError: Stripe rejected a call or could not be reached
            BillingError: Local persistence failed or Stripe is not configured
        """
        if self.stripe_client is None:
            raise BillingError("payment processor is not configured")

        user = await self.user_repo.get_by_email(user_info.email)

        if user is not None and user.stripe_customer_id:
            await self.stripe_client.set_default_payment_method(
                customer_id=user.stripe_customer_id,
                payment_method_id=payment_method_id,
            )
            logger.info(
                "Updated default payment method",
                extra={"user_id": str(user.id), "stripe_customer_id": user.stripe_customer_id},
            )
            return SavedPaymentMethod(user=user, stripe_customer_id=user.stripe_customer_id)

        customer = await self.stripe_client.create_customer(
            email=user_info.email,
            name=user_info.name,
            phone=user_info.phone,
            payment_method_id=payment_method_id,
        )

        try:
            if user is None:
                user = await self.user_repo.create(
                    name=user_info.name,
                    email=user_info.email,
                    phone=user_info.phone,
                    stripe_customer_id=customer.id,
                )
                created = True
            else:
                await self.user_repo.attach_stripe_customer(user, customer.id)
                created = False
            await self.session.commit()
            await self.session.refresh(user)
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(
                "User insert conflicted after Stripe customer creation",
                extra={"stripe_customer_id": customer.id},
                exc_info=True,
            )
            raise BillingError("a user with this email was created concurrently") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to persist Stripe customer link",
                extra={"stripe_customer_id": customer.id},
                exc_info=True,
            )
            raise BillingError(str(e)) from e

        logger.info(
            "Created Stripe customer",
            extra={
                "user_id": str(user.id),
                "stripe_customer_id": customer.id,
                "new_user": created,
            },
        )
        return SavedPaymentMethod(user=user, stripe_customer_id=customer.id, created_user=created)
