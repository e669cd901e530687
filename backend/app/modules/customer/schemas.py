"""Pydantic schemas for the payment-method save endpoint."""

import uuid

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


class UserInfo(BaseModel):
    """Identity captured on the payment form."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        # Stored exactly as submitted; lookups are exact-match
        try:
            # Special-use domains such as .test and .local are accepted
            validate_email(v, check_deliverability=False, globally_deliverable=False)
        except EmailNotValidError as e:
            raise PydanticCustomError("email", "{reason}", {"reason": str(e)}) from e
        return v

    model_config = {"from_attributes": True}


class SavePaymentMethodRequest(BaseModel):
    user_info: UserInfo
    payment_method_id: str = Field(min_length=1)


class SavePaymentMethodResponse(BaseModel):
    success: bool = True
    message: str = "Payment method saved successfully"
    user_id: uuid.UUID
    stripe_customer_id: str


# Field messages keyed by "<field path>.<rule>"
VALIDATION_MESSAGES: dict[str, str] = {
    "payment_method_id.required": "Payment method ID is required.",
    "payment_method_id.string": "Payment method ID must be a string.",
    "user_info.required": "User information is required.",
    "user_info.name.required": "Name is required.",
    "user_info.name.string": "Name must be a string.",
    "user_info.name.max": "Name cannot exceed 255 characters.",
    "user_info.email.required": "Email is required.",
    "user_info.email.string": "Email must be a string.",
    "user_info.email.email": "Please enter a valid email address.",
    "user_info.email.max": "Email cannot exceed 255 characters.",
    "user_info.phone.required": "Phone number is required.",
    "user_info.phone.string": "Phone number must be a string.",
    "user_info.phone.max": "Phone number cannot exceed 20 characters.",
}
