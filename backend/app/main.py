"""FastAPI application entry point."""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import setup_logging
from app.core.metrics import get_content_type, get_metrics, set_app_info
from app.core.middleware import (
    CorrelationIdMiddleware,
    MetricsMiddleware,
    RequestLoggingMiddleware,
    TracingMiddleware,
)
from app.core.responses import validation_failure_response
from app.core.tracing import setup_tracing
from app.modules.billing.router import router as billing_router
from app.modules.billing.schemas import VALIDATION_MESSAGES as BILLING_VALIDATION_MESSAGES
from app.modules.customer.router import router as customer_router
from app.modules.customer.schemas import VALIDATION_MESSAGES as CUSTOMER_VALIDATION_MESSAGES

VALIDATION_MESSAGES = {**BILLING_VALIDATION_MESSAGES, **CUSTOMER_VALIDATION_MESSAGES}

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
## Subscription Billing API

Saves customer payment methods with Stripe and creates monthly plan
subscriptions against them.

* **Payment methods** - create or update the Stripe customer for an email
* **Subscriptions** - subscribe a user to Starter, Growth, Scaling or Enterprise
* **Status** - check for a saved payment method and read the current subscription
    """,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    openapi_tags=[
        {
            "name": "health",
            "description": "Health check and metrics endpoints",
        },
        {
            "name": "customer",
            "description": "Customer payment-method management",
        },
        {
            "name": "billing",
            "description": "Subscriptions, payment-method checks and plans",
        },
    ],
)

setup_logging(
    service_name=settings.PROJECT_NAME,
    level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
    json_format=settings.LOG_JSON,
    include_stack_trace=True,
)

setup_tracing(
    service_name=settings.PROJECT_NAME,
    service_version=settings.VERSION,
    environment=settings.ENVIRONMENT,
    otlp_endpoint=settings.OTLP_ENDPOINT,
    enable_console_export=settings.DEBUG,
)

set_app_info(
    version=settings.VERSION,
    environment=settings.ENVIRONMENT,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(TracingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(MetricsMiddleware)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report validation failures in the ``{success, message, errors}`` envelope."""
    return validation_failure_response(exc.errors(), VALIDATION_MESSAGES)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        dict: Health status with "healthy" value.
    """
    return {"status": "healthy"}


@app.get("/metrics", tags=["health"], include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=get_metrics(), media_type=get_content_type())


# Include routers
app.include_router(customer_router, prefix=settings.API_PREFIX)
app.include_router(billing_router, prefix=settings.API_PREFIX)
