"""Billing error taxonomy.

Two tiers reach the caller: processor errors (the payment processor rejected
the request or could not be reached, client-correctable, HTTP 400) and
generic errors (everything else, HTTP 500). Validation-class errors carry
the offending field so they can be reported alongside declarative
validation failures.
"""

from typing import Optional


class BillingError(Exception):
    """Generic billing failure."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def public_message(self) -> str:
        return f"An error occurred: {self.message}"


class ProcessorError(BillingError):
    """The payment processor rejected the request or was unreachable."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.operation = operation

    @property
    def public_message(self) -> str:
        return f"Stripe error: {self.message}"


class NoPaymentMethodError(BillingError):
    """User has never completed a payment-method save."""

    status_code = 400

    def __init__(self):
        super().__init__("User has no saved payment method. Please save payment method first.")

    @property
    def public_message(self) -> str:
        return self.message


class BillingValidationError(BillingError):
    """Input rejected before any processor call, keyed on a request field."""

    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    @property
    def public_message(self) -> str:
        return self.message


class UserNotFoundError(BillingValidationError):
    def __init__(self):
        super().__init__("user_id", "User not found.")


class PlanPriceMismatchError(BillingValidationError):
    def __init__(self, plan_name: str):
        super().__init__("price_id", f"Price ID does not match the {plan_name} plan.")
