"""HTTP client middleware."""
from attendance_session.middleware.logging import RequestLoggingHooks

__all__ = ["RequestLoggingHooks"]
