"""Application modules.

- customer: Users, Stripe customers and payment-method saves
- billing: Plan catalogue, subscriptions and status queries
"""
