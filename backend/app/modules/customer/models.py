"""User model for billing customers."""

import asyncio
import secrets
import uuid
from datetime import datetime
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.database import Base

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def generate_placeholder_password() -> str:
    """Random credential for users created by the billing flow.

    Nobody is told this value, so the resulting hash cannot be used to log in.
    """
    return secrets.token_urlsafe(32)


class User(Base):
    """A customer, created on first payment-method save."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    # Set once the user has a Stripe customer with a saved payment method
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def has_payment_method(self) -> bool:
        return bool(self.stripe_customer_id)

    async def set_placeholder_password(self) -> None:
        """Hash a random password in the default thread pool; bcrypt is CPU-bound."""
        loop = asyncio.get_running_loop()
        self.password_hash = await loop.run_in_executor(
            None, hash_password, generate_placeholder_password()
        )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
