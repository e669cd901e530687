"""Customer module.

Keeps local users linked to their Stripe customers and default payment
methods.
"""
