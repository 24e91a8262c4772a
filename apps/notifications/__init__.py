"""Notifications app package.

Delivers transactional email (welcome message, password reset link).
Messages that are not on the request path go out through Celery tasks.
"""
