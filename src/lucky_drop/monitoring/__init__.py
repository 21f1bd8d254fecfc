"""Monitoring package for logging and request context."""

from lucky_drop.monitoring.request_context import RequestContextMiddleware
from lucky_drop.monitoring.request_context import get_request_context

__all__ = [
    "RequestContextMiddleware",
    "get_request_context",
]
