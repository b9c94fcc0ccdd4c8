"""
API Module
"""
from .middleware import LoginThrottleMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware

__all__ = [
    "LoginThrottleMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
]
