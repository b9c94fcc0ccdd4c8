"""
Unit Tests - API Middleware
"""
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from httpx import ASGITransport, AsyncClient

from storefront_admin.serving.api.middleware import LoginThrottleMiddleware


def _login_app(max_attempts: int) -> FastAPI:
    app = FastAPI()

    @app.post("/login")
    async def login(ok: bool = False):
        return RedirectResponse("/home" if ok else "/login", status_code=302)

    app.add_middleware(LoginThrottleMiddleware, login_path="/login", max_attempts=max_attempts, window_seconds=60)
    return app


@pytest_asyncio.fixture
async def login_client():
    async with AsyncClient(transport=ASGITransport(app=_login_app(3)), base_url="http://testserver") as ac:
        yield ac


class TestLoginThrottle:
    """Tests for LoginThrottleMiddleware"""

    @pytest.mark.asyncio
    async def test_blocks_after_max_attempts(self, login_client):
        for _ in range(3):
            assert (await login_client.post("/login")).status_code == 302

        response = await login_client.post("/login")

        assert response.status_code == 429
        assert response.headers["retry-after"] == "60"

    @pytest.mark.asyncio
    async def test_successful_login_clears_attempts(self, login_client):
        """Test failures before a good login do not count afterwards"""
        await login_client.post("/login")
        await login_client.post("/login")
        assert (await login_client.post("/login", params={"ok": "true"})).headers["location"] == "/home"

        for _ in range(3):
            assert (await login_client.post("/login")).status_code == 302
        assert (await login_client.post("/login")).status_code == 429

    @pytest.mark.asyncio
    async def test_other_requests_not_counted(self, login_client):
        for _ in range(5):
            await login_client.get("/login")

        assert (await login_client.post("/login")).status_code == 302

    def test_expired_clients_forgotten(self):
        throttle = LoginThrottleMiddleware(FastAPI(), login_path="/login", window_seconds=60)
        throttle._attempts = {
            "10.0.0.1": [0.0, 10.0],
            "10.0.0.2": [20.0, 100.0],
        }

        throttle._prune(110.0)

        assert throttle._attempts == {"10.0.0.2": [100.0]}
