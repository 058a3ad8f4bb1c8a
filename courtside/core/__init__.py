"""
Core utilities shared across the Courtside API.

This package hosts configuration helpers, error kinds, and the adapters the
services depend on: password hashing, access tokens, the mailer and the
request rate limiter.
"""
