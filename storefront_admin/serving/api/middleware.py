"""
API Middleware

- Request logging with a per-request id bound into the log context
- Login throttling
- Security headers
"""

import asyncio
import time
from typing import Callable, Dict, List

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing information"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID", str(time.time_ns()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        response.headers["X-Request-ID"] = request_id
        return response


class LoginThrottleMiddleware(BaseHTTPMiddleware):
    """
    Limit login form submissions per client.

    Only POSTs to `login_path` are counted; every other request passes
    straight through. A successful login clears the client's attempts.
    """

    def __init__(
        self,
        app,
        login_path: str,
        max_attempts: int = 5,
        window_seconds: int = 60,
    ):
        super().__init__(app)
        self.login_path = login_path
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._attempts: Dict[str, List[float]] = {}
        self._lock = asyncio.Lock()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST" or request.url.path != self.login_path:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        current_time = time.time()

        async with self._lock:
            self._prune(current_time)
            recent = self._attempts.get(client_id, [])
            if len(recent) >= self.max_attempts:
                logger.warning("Login attempts throttled", client=client_id, attempts=len(recent))
                return Response(
                    status_code=429,
                    headers={"Retry-After": str(self.window_seconds)},
                )
            self._attempts[client_id] = recent + [current_time]

        response = await call_next(request)

        if self._is_successful_login(response):
            async with self._lock:
                self._attempts.pop(client_id, None)

        return response

    def _prune(self, current_time: float) -> None:
        """Drop expired attempts and forget clients left with none."""
        for client_id in list(self._attempts):
            recent = [
                t for t in self._attempts[client_id]
                if current_time - t < self.window_seconds
            ]
            if recent:
                self._attempts[client_id] = recent
            else:
                del self._attempts[client_id]

    def _is_successful_login(self, response: Response) -> bool:
        # Failed logins redirect back to the login page
        location = response.headers.get("location", "")
        return response.status_code == 302 and not location.endswith(self.login_path)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        # Admin screens carry order and customer figures
        response.headers["Cache-Control"] = "no-store"

        return response
