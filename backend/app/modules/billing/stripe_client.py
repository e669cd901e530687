"""Stripe client for customer, payment-method and subscription operations.

Every call is bounded by ``STRIPE_TIMEOUT_SECONDS`` and is not retried, so a
slow or failing processor surfaces to the caller as a ``ProcessorError``
rather than a hung request.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import stripe

from app.core.config import settings
from app.core.metrics import PROCESSOR_REQUEST_DURATION_SECONDS, PROCESSOR_REQUESTS_TOTAL
from app.core.tracing import create_span, record_exception
from app.modules.billing.exceptions import ProcessorError

logger = logging.getLogger(__name__)


@dataclass
class StripeCustomerData:
    """Data for a Stripe customer."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    default_payment_method: Optional[str] = None


@dataclass
class StripeSubscriptionData:
    """Data for a Stripe subscription."""
    id: str
    customer_id: str
    status: str
    price_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _subscription_from_payload(payload: dict) -> StripeSubscriptionData:
    """Build subscription data from a Stripe subscription payload.

    Newer API versions report the billing period on each item instead of on
    the subscription itself, so fall back to the first item.
    """
    items = (payload.get("items") or {}).get("data") or []
    first_item = items[0] if items else {}

    period_start = payload.get("current_period_start") or first_item.get("current_period_start")
    period_end = payload.get("current_period_end") or first_item.get("current_period_end")
    price = first_item.get("price") or {}

    customer = payload.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    return StripeSubscriptionData(
        id=payload["id"],
        customer_id=customer,
        status=payload.get("status", ""),
        price_id=price.get("id"),
        current_period_start=_from_timestamp(period_start),
        current_period_end=_from_timestamp(period_end),
    )


class StripeClient:
    """Client for the Stripe operations the billing flow needs."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        api_key = api_key or settings.STRIPE_SECRET_KEY
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY is not configured")

        self._client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(
                timeout=timeout or settings.STRIPE_TIMEOUT_SECONDS
            ),
            max_network_retries=0,
        )

    async def _call(self, operation: str, func: Callable[[], Any]) -> Any:
        """Run one Stripe request with tracing, metrics and error mapping.

        The SDK is blocking, so the request runs in the default thread pool.
        """
        start = time.perf_counter()
        with create_span(f"stripe.{operation}", attributes={"stripe.operation": operation}):
            try:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, func)
            except stripe.StripeError as e:
                record_exception(e)
                PROCESSOR_REQUESTS_TOTAL.labels(operation=operation, outcome="error").inc()
                logger.warning(
                    "Stripe request failed",
                    extra={
                        "operation": operation,
                        "stripe_code": e.code,
                        "http_status": e.http_status,
                        "error": e.user_message or str(e),
                    },
                )
                raise ProcessorError(
                    e.user_message or str(e) or e.__class__.__name__,
                    code=e.code,
                    operation=operation,
                ) from e
            finally:
                PROCESSOR_REQUEST_DURATION_SECONDS.labels(operation=operation).observe(
                    time.perf_counter() - start
                )

        PROCESSOR_REQUESTS_TOTAL.labels(operation=operation, outcome="success").inc()
        return result

    # ==================== Customer Management ====================

    async def create_customer(
        self,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        payment_method_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> StripeCustomerData:
        """Create a new Stripe customer.

        When a payment method is given it is attached to the new customer and
        becomes the default for invoices.

        Args:
            email: Customer email
            name: Customer name
            phone: Customer phone
            payment_method_id: Payment method token from the client
            metadata: Additional metadata (e.g., user_id)

        Returns:
            StripeCustomerData with customer details
        """
        params: dict[str, Any] = {"email": email, "metadata": metadata or {}}
        if name:
            params["name"] = name
        if phone:
            params["phone"] = phone
        if payment_method_id:
            params["payment_method"] = payment_method_id
            params["invoice_settings"] = {"default_payment_method": payment_method_id}

        customer = await self._call(
            "create_customer",
            lambda: self._client.v1.customers.create(params=params),
        )
        return StripeCustomerData(
            id=customer.id,
            email=customer.get("email"),
            name=customer.get("name"),
            default_payment_method=payment_method_id,
        )

    async def set_default_payment_method(
        self,
        customer_id: str,
        payment_method_id: str,
    ) -> StripeCustomerData:
        """Attach a payment method to a customer and make it the invoice default.

        Args:
            customer_id: Stripe customer ID
            payment_method_id: Payment method token from the client

        Returns:
            StripeCustomerData with the new default payment method
        """
        await self._call(
            "attach_payment_method",
            lambda: self._client.v1.payment_methods.attach(
                payment_method_id,
                params={"customer": customer_id},
            ),
        )
        customer = await self._call(
            "update_customer",
            lambda: self._client.v1.customers.update(
                customer_id,
                params={
                    "invoice_settings": {"default_payment_method": payment_method_id},
                },
            ),
        )
        return StripeCustomerData(
            id=customer.id,
            email=customer.get("email"),
            name=customer.get("name"),
            default_payment_method=payment_method_id,
        )

    # ==================== Subscription Management ====================

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        metadata: Optional[dict] = None,
    ) -> StripeSubscriptionData:
        """Create a subscription that charges the customer's default payment method.

        The first invoice is left for the client to confirm, so the returned
        status is normally ``incomplete`` until payment succeeds.

        Args:
            customer_id: Stripe customer ID
            price_id: Stripe price ID
            metadata: Additional metadata

        Returns:
            StripeSubscriptionData with subscription details
        """
        subscription = await self._call(
            "create_subscription",
            lambda: self._client.v1.subscriptions.create(
                params={
                    "customer": customer_id,
                    "items": [{"price": price_id}],
                    "payment_behavior": "default_incomplete",
                    "payment_settings": {
                        "save_default_payment_method": "on_subscription",
                    },
                    "expand": ["latest_invoice.confirmation_secret"],
                    "metadata": metadata or {},
                },
            ),
        )
        data = _subscription_from_payload(subscription.to_dict())
        if data.price_id is None:
            data.price_id = price_id
        return data


# Singleton instance
_stripe_client: Optional[StripeClient] = None


def get_stripe_client() -> Optional[StripeClient]:
    """Get the Stripe client singleton.

    Returns:
        StripeClient instance, or None when no secret key is configured.
        Services report a missing client as a billing error.
    """
    global _stripe_client
    if _stripe_client is None:
        if not settings.STRIPE_SECRET_KEY:
            logger.warning("STRIPE_SECRET_KEY is not configured")
            return None
        _stripe_client = StripeClient()
    return _stripe_client
