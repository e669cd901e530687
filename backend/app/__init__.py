"""Subscription Billing Backend Application.

Saves customer payment methods with Stripe and subscribes customers to
monthly plans.

Modules:
    - core: Configuration, database, logging, tracing, metrics
    - modules.customer: Users and their Stripe customers
    - modules.billing: Plans, subscriptions and status queries
"""

__version__ = "0.1.0"
