"""Billing module.

Implements the plan catalogue, Stripe subscription creation, and
subscription and payment-method status queries.
"""
