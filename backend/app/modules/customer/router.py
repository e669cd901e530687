"""API Router for saving customer payment methods."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.responses import error_response
from app.modules.billing.exceptions import BillingError
from app.modules.billing.stripe_client import StripeClient, get_stripe_client
from app.modules.customer.schemas import SavePaymentMethodRequest, SavePaymentMethodResponse
from app.modules.customer.service import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["customer"])


@router.post("/save-payment-method", response_model=SavePaymentMethodResponse)
async def save_payment_method(
    data: SavePaymentMethodRequest,
    session: AsyncSession = Depends(get_session),
    stripe_client: Optional[StripeClient] = Depends(get_stripe_client),
):
    """Create or update the Stripe customer for this email and set its default payment method."""
    service = ReconciliationService(session, stripe_client)
    try:
        result = await service.save_payment_method(data.user_info, data.payment_method_id)
    except BillingError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Unexpected error saving payment method")
        return error_response(e)

    return SavePaymentMethodResponse(
        user_id=result.user.id,
        stripe_customer_id=result.stripe_customer_id,
    )
