"""User repository for database operations."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.customer.models import User


class UserRepository:
    """Repository for User CRUD operations.

    Writes are flushed, not committed; the calling service owns the
    transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        email: str,
        phone: str,
        stripe_customer_id: Optional[str] = None,
    ) -> User:
        """Create a user with a random, unusable password.

        Args:
            name: Display name
            email: Email address, stored as given
            phone: Phone number
            stripe_customer_id: Linked Stripe customer, if already created

        Returns:
            User: Created user instance
        """
        user = User(
            name=name,
            email=email,
            phone=phone,
            stripe_customer_id=stripe_customer_id,
        )
        await user.set_placeholder_password()
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Exact-match lookup; emails are not normalised."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def attach_stripe_customer(self, user: User, stripe_customer_id: str) -> User:
        user.stripe_customer_id = stripe_customer_id
        await self.session.flush()
        return user
