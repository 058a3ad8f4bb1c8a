"""
High-level use cases for the Courtside API.

Each service module orchestrates the repository and the core adapters to
implement business rules (join an event, add a comment, delete an account,
reset a password). Routers call these services instead of touching the
database directly.
"""
