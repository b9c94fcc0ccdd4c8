"""
FastAPI Production Application

Main entry point for the storefront admin dashboard.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from storefront_admin.config import Settings, get_settings
from storefront_admin.config.logging import configure_logging
from storefront_admin.database.connection import close_database, init_database
from storefront_admin.serving.api.middleware import (
    LoginThrottleMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from storefront_admin.serving.api.routes import admin_router
from storefront_admin.serving.cache import close_redis, init_redis
from storefront_admin.serving.extensions import DashboardExtensions
from storefront_admin.serving.security import LoginRequired

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings=settings)

    logger.info("Starting storefront admin", environment=settings.app_env)

    try:
        await init_database(settings.database.async_url)
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    if settings.redis.enabled:
        try:
            await init_redis(settings)
            logger.info("Redis initialized")
        except Exception as e:
            logger.warning("Redis init failed, plugin cache disabled", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()
    await close_redis()


async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    """Send anonymous visitors of admin screens to the login page."""
    logger.info("Login required", path=request.url.path)
    return RedirectResponse(str(request.url_for("admin_login")), status_code=302)


def create_app(
    settings: Optional[Settings] = None,
    extensions: Optional[DashboardExtensions] = None,
) -> FastAPI:
    """
    Create and configure the admin application.

    Args:
        settings: Application settings; defaults to the environment's
        extensions: Dashboard extension registry; defaults to an empty one

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Storefront Admin",
        description="Back-office dashboard for the storefront",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.extensions = extensions or DashboardExtensions()

    # Added in reverse: the last one added runs first
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        LoginThrottleMiddleware,
        login_path=f"{settings.admin.prefix}/login",
        max_attempts=settings.security.login_max_attempts,
        window_seconds=settings.security.login_window_seconds,
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.security.secret_key.get_secret_value(),
        session_cookie=settings.security.session_cookie,
        max_age=settings.security.session_max_age,
        same_site="lax",
        https_only=settings.security.session_https_only,
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(LoginRequired, login_required_handler)

    app.include_router(admin_router, prefix=settings.admin.prefix, tags=["Admin"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
