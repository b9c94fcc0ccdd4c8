"""
Test Suite Configuration
"""
import base64
import json
from datetime import datetime
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from itsdangerous import TimestampSigner
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront_admin.config import Settings
from storefront_admin.config.settings import AdminSettings, RedisSettings, SecuritySettings
from storefront_admin.database.connection import get_db_dependency
from storefront_admin.database.models import (
    Base,
    Customer,
    Member,
    Order,
    OrderStatusMaster,
    Product,
    ProductClass,
)
from storefront_admin.enums import (
    DEFAULT_ORDER_STATUSES,
    CustomerStatus,
    OrderStatus,
    ProductStatus,
)
from storefront_admin.main import create_app
from storefront_admin.serving.extensions import DashboardExtensions
from storefront_admin.serving.plugins import get_plugin_client
from storefront_admin.serving.security import PasswordEncoder

ADMIN_LOGIN_ID = "admin"
ADMIN_PASSWORD = "password1234"


class StubPluginClient:
    """Plugin client returning a fixed list without network access"""

    def __init__(self, plugins: Optional[List[Dict[str, Any]]] = None):
        self.plugins = plugins or []
        self.calls = 0

    async def recommended(self) -> List[Dict[str, Any]]:
        self.calls += 1
        return list(self.plugins)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        redis=RedisSettings(enabled=False),
        security=SecuritySettings(
            secret_key="test-secret-key",
            auth_magic="test-auth-magic",
        ),
        admin=AdminSettings(
            package_repo_url="https://plugins.test",
            plugin_cache_ttl=0,
        ),
    )


@pytest.fixture
def encoder(test_settings: Settings) -> PasswordEncoder:
    return PasswordEncoder(test_settings.security.auth_magic.get_secret_value())


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with a fresh schema"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def order_statuses(test_db: AsyncSession) -> List[OrderStatusMaster]:
    """Order status master rows"""
    rows = [
        OrderStatusMaster(id=status, name=name, sort_no=sort_no)
        for status, name, sort_no in DEFAULT_ORDER_STATUSES
    ]
    test_db.add_all(rows)
    await test_db.flush()
    return rows


@pytest_asyncio.fixture
async def admin_member(test_db: AsyncSession, encoder: PasswordEncoder) -> Member:
    """Active staff member with a known password"""
    salt = encoder.create_salt()
    member = Member(
        name="Administrator",
        login_id=ADMIN_LOGIN_ID,
        password=encoder.encode_password(ADMIN_PASSWORD, salt),
        salt=salt,
        is_active=True,
    )
    test_db.add(member)
    await test_db.flush()
    return member


def _build_order(
    status: OrderStatus,
    order_date: Optional[datetime],
    payment_total: str = "1000",
) -> Order:
    return Order(status=status, order_date=order_date, payment_total=Decimal(payment_total))


def _build_product(
    name: str,
    stocks: List[Optional[int]],
    status: ProductStatus = ProductStatus.SHOW,
    unlimited: bool = False,
) -> Product:
    """Product with one class per stock value"""
    product = Product(name=name, status=status)
    product.product_classes = [
        ProductClass(code=f"{name}-{i}", stock=stock, stock_unlimited=unlimited)
        for i, stock in enumerate(stocks)
    ]
    return product


def _build_customer(name: str, status: CustomerStatus) -> Customer:
    return Customer(name=name, email=f"{name.lower()}@example.com", status=status)


@pytest.fixture
def plugin_client() -> StubPluginClient:
    return StubPluginClient([{"id": 1, "name": "Coupon"}])


@pytest.fixture
def extensions() -> DashboardExtensions:
    return DashboardExtensions()


@pytest.fixture
def app(test_settings, test_db, plugin_client, extensions):
    """Admin application wired to the test database"""
    application = create_app(test_settings, extensions)

    async def override_db():
        yield test_db

    application.dependency_overrides[get_db_dependency] = override_db
    application.dependency_overrides[get_plugin_client] = lambda: plugin_client
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def logged_in_client(client: AsyncClient, admin_member: Member) -> AsyncClient:
    """Client holding a staff session"""
    response = await client.post(
        "/admin/login",
        data={"login_id": ADMIN_LOGIN_ID, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 302
    return client


def _read_session(client: AsyncClient, settings: Settings) -> Dict[str, Any]:
    """Decode the signed session cookie held by `client`"""
    cookie = client.cookies.get(settings.security.session_cookie)
    if cookie is None:
        return {}
    signer = TimestampSigner(settings.security.secret_key.get_secret_value())
    data = signer.unsign(cookie.encode("utf-8"))
    return json.loads(base64.b64decode(data))


@pytest.fixture
def order_factory():
    return _build_order


@pytest.fixture
def product_factory():
    return _build_product


@pytest.fixture
def customer_factory():
    return _build_customer


@pytest.fixture
def session_data(client: AsyncClient, test_settings: Settings):
    """Callable returning the client's current session contents"""
    return lambda: _read_session(client, test_settings)
