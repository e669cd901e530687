"""Tests for the Stripe client wrapper.

**Feature: subscription-billing, Stripe Integration**
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import stripe

from app.modules.billing import stripe_client as stripe_client_module
from app.modules.billing.exceptions import ProcessorError
from app.modules.billing.stripe_client import (
    StripeClient,
    _subscription_from_payload,
    get_stripe_client,
)


@pytest.fixture
def sdk(monkeypatch):
    """Patched stripe.StripeClient; returns the mock instance."""
    instance = MagicMock()
    client_cls = MagicMock(return_value=instance)
    requests_client_cls = MagicMock()
    monkeypatch.setattr(stripe_client_module.stripe, "StripeClient", client_cls)
    monkeypatch.setattr(stripe_client_module.stripe, "RequestsClient", requests_client_cls)
    instance.client_cls = client_cls
    instance.requests_client_cls = requests_client_cls
    return instance


def _customer(customer_id="cus_123", **fields):
    customer = MagicMock()
    customer.id = customer_id
    customer.get.side_effect = fields.get
    return customer


class TestConstruction:
    def test_timeout_and_no_retries(self, sdk):
        StripeClient(api_key="sk_test_abc", timeout=3.0)

        sdk.requests_client_cls.assert_called_once_with(timeout=3.0)
        args, kwargs = sdk.client_cls.call_args
        assert args == ("sk_test_abc",)
        assert kwargs["max_network_retries"] == 0
        assert kwargs["http_client"] is sdk.requests_client_cls.return_value

    def test_missing_key_is_rejected(self, sdk, monkeypatch):
        monkeypatch.setattr(stripe_client_module.settings, "STRIPE_SECRET_KEY", "")

        with pytest.raises(ValueError):
            StripeClient()

    def test_unconfigured_dependency_yields_none(self, sdk, monkeypatch):
        monkeypatch.setattr(stripe_client_module.settings, "STRIPE_SECRET_KEY", "")
        monkeypatch.setattr(stripe_client_module, "_stripe_client", None)

        assert get_stripe_client() is None
        sdk.client_cls.assert_not_called()

    def test_configured_dependency_is_shared(self, sdk, monkeypatch):
        monkeypatch.setattr(stripe_client_module.settings, "STRIPE_SECRET_KEY", "sk_test_abc")
        monkeypatch.setattr(stripe_client_module, "_stripe_client", None)

        first = get_stripe_client()

        assert isinstance(first, StripeClient)
        assert get_stripe_client() is first
        sdk.client_cls.assert_called_once()


class TestCustomers:
    @pytest.mark.asyncio
    async def test_create_customer_sets_default_payment_method(self, sdk):
        sdk.v1.customers.create.return_value = _customer(email="a@x.com", name="Ada")

        data = await StripeClient(api_key="sk_test_abc").create_customer(
            email="a@x.com", name="Ada", phone="555-0100", payment_method_id="pm_card_visa"
        )

        params = sdk.v1.customers.create.call_args.kwargs["params"]
        assert params["email"] == "a@x.com"
        assert params["phone"] == "555-0100"
        assert params["payment_method"] == "pm_card_visa"
        assert params["invoice_settings"] == {"default_payment_method": "pm_card_visa"}
        assert data.id == "cus_123"
        assert data.email == "a@x.com"
        assert data.default_payment_method == "pm_card_visa"

    @pytest.mark.asyncio
    async def test_set_default_attaches_then_updates(self, sdk):
        sdk.v1.customers.update.return_value = _customer()

        data = await StripeClient(api_key="sk_test_abc").set_default_payment_method("cus_123", "pm_new")

        sdk.v1.payment_methods.attach.assert_called_once_with(
            "pm_new", params={"customer": "cus_123"}
        )
        sdk.v1.customers.update.assert_called_once_with(
            "cus_123", params={"invoice_settings": {"default_payment_method": "pm_new"}}
        )
        assert data.default_payment_method == "pm_new"

    @pytest.mark.asyncio
    async def test_card_error_becomes_processor_error(self, sdk):
        sdk.v1.customers.create.side_effect = stripe.CardError(
            "Your card was declined.", param=None, code="card_declined"
        )

        with pytest.raises(ProcessorError) as exc_info:
            await StripeClient(api_key="sk_test_abc").create_customer(email="a@x.com")

        assert exc_info.value.code == "card_declined"
        assert exc_info.value.operation == "create_customer"
        assert exc_info.value.public_message == "Stripe error: Your card was declined."

    @pytest.mark.asyncio
    async def test_connection_error_becomes_processor_error(self, sdk):
        sdk.v1.payment_methods.attach.side_effect = stripe.APIConnectionError("Request timed out")

        with pytest.raises(ProcessorError) as exc_info:
            await StripeClient(api_key="sk_test_abc").set_default_payment_method("cus_123", "pm_new")

        assert exc_info.value.status_code == 400
        sdk.v1.customers.update.assert_not_called()


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_create_subscription_params(self, sdk):
        subscription = MagicMock()
        subscription.to_dict.return_value = {
            "id": "sub_123",
            "customer": "cus_123",
            "status": "incomplete",
            "current_period_start": 1767225600,
            "current_period_end": 1769904000,
            "items": {"data": [{"price": {"id": "price_growth"}}]},
        }
        sdk.v1.subscriptions.create.return_value = subscription

        data = await StripeClient(api_key="sk_test_abc").create_subscription("cus_123", "price_growth")

        params = sdk.v1.subscriptions.create.call_args.kwargs["params"]
        assert params["customer"] == "cus_123"
        assert params["items"] == [{"price": "price_growth"}]
        assert params["payment_behavior"] == "default_incomplete"
        assert params["payment_settings"] == {"save_default_payment_method": "on_subscription"}
        assert data.id == "sub_123"
        assert data.status == "incomplete"
        assert data.price_id == "price_growth"
        assert data.current_period_start == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert data.current_period_end == datetime(2026, 2, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_invalid_request_becomes_processor_error(self, sdk):
        sdk.v1.subscriptions.create.side_effect = stripe.InvalidRequestError(
            "No such price: 'price_bad'", param="items[0][price]", code="resource_missing"
        )

        with pytest.raises(ProcessorError) as exc_info:
            await StripeClient(api_key="sk_test_abc").create_subscription("cus_123", "price_bad")

        assert exc_info.value.message == "No such price: 'price_bad'"


class TestSubscriptionPayload:
    def test_period_read_from_first_item(self):
        data = _subscription_from_payload({
            "id": "sub_1",
            "customer": {"id": "cus_1"},
            "status": "active",
            "items": {"data": [{
                "current_period_start": 1767225600,
                "current_period_end": 1769904000,
                "price": {"id": "price_1"},
            }]},
        })

        assert data.customer_id == "cus_1"
        assert data.current_period_start == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert data.current_period_end.tzinfo is timezone.utc

    def test_missing_period_is_none(self):
        data = _subscription_from_payload({"id": "sub_1", "customer": "cus_1", "status": "incomplete"})

        assert data.current_period_start is None
        assert data.current_period_end is None
        assert data.price_id is None
