"""Middleware module for the ParkEase API."""

from .identity import get_current_actor, require_admin
from .logging import RequestResponseLoggingMiddleware

__all__ = [
    "get_current_actor",
    "require_admin",
    "RequestResponseLoggingMiddleware"
]
