"""
Shared Kernel

Base classes and utilities shared across all apps: domain events, the
message bus that routes them and the unit of work that publishes them once
the database transaction commits.
"""
