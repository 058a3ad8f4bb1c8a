"""
Persistence adapters.

SQLRepository is the single store for users and event aggregates. Services
receive it through their constructor so tests can hand in their own.
"""
