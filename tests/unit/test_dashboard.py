"""
Unit Tests - Dashboard Assembly and Extension Hooks
"""
from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from pydantic import ValidationError

from storefront_admin.enums import OrderStatus
from storefront_admin.serving.dashboard import build_dashboard
from storefront_admin.serving.extensions import DashboardExtensions, MemberSnapshot

ORDER_EXCLUDES = frozenset({
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.CANCEL,
    OrderStatus.DELIVERED,
})
SALES_EXCLUDES = frozenset({OrderStatus.PROCESSING, OrderStatus.CANCEL, OrderStatus.PENDING})
NOW = datetime(2024, 3, 15, 12, 0)


@pytest_asyncio.fixture
async def seeded(test_db, order_statuses, order_factory, product_factory):
    test_db.add_all([
        order_factory(OrderStatus.NEW, datetime(2024, 3, 15, 9), "100"),
        order_factory(OrderStatus.NEW, datetime(2024, 3, 14, 9), "40"),
        order_factory(OrderStatus.DELIVERED, datetime(2024, 3, 2, 9), "60"),
        order_factory(OrderStatus.RETURNED, datetime(2024, 3, 15, 10), "25"),
        order_factory(OrderStatus.CANCEL, datetime(2024, 3, 15, 11), "999"),
        product_factory("Tee", [0]),
    ])
    await test_db.flush()
    return test_db


class TestBuildDashboard:
    """Tests for the dashboard view-model"""

    @pytest.mark.asyncio
    async def test_sections_filled(self, seeded, plugin_client):
        view = await build_dashboard(
            seeded,
            plugin_client=plugin_client,
            extensions=DashboardExtensions(),
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert view.orders == {"new": 2, "returned": 1}
        assert OrderStatus.DELIVERED.value not in [status.id.value for status in view.order_statuses]
        assert view.sales_today["order_day"] == "2024-03-15"
        assert Decimal(view.sales_today["order_amount"]) == Decimal("125")
        assert view.sales_today["order_count"] == 2
        assert view.sales_yesterday["order_day"] == "2024-03-14"
        assert Decimal(view.sales_yesterday["order_amount"]) == Decimal("40")
        assert view.sales_yesterday["order_count"] == 1
        assert view.sales_this_month["order_count"] == 4
        assert view.count_non_stock_products == 1
        assert view.count_products == 1
        assert view.count_customers == 0
        assert view.recommended_plugins == [{"id": 1, "name": "Coupon"}]

    @pytest.mark.asyncio
    async def test_empty_day_sales(self, test_db, plugin_client):
        view = await build_dashboard(
            test_db,
            plugin_client=plugin_client,
            extensions=DashboardExtensions(),
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert view.sales_today == {}
        assert view.sales_yesterday == {}
        assert view.sales_this_month == {}
        assert view.orders == {}


class TestExtensionHooks:
    """Tests for the extension pipeline"""

    @pytest.mark.asyncio
    async def test_order_excludes_hook_replaces_set(self, seeded, plugin_client):
        extensions = DashboardExtensions()
        received = []

        @extensions.on_order_excludes
        def hide_returns(excludes):
            received.append(excludes)
            return excludes | {OrderStatus.RETURNED}

        view = await build_dashboard(
            seeded,
            plugin_client=plugin_client,
            extensions=extensions,
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert received == [ORDER_EXCLUDES]
        assert isinstance(received[0], frozenset)
        assert view.orders == {"new": 2}

    @pytest.mark.asyncio
    async def test_sales_excludes_hook(self, seeded, plugin_client):
        extensions = DashboardExtensions()
        extensions.on_sales_excludes(lambda excludes: excludes | {OrderStatus.RETURNED})

        view = await build_dashboard(
            seeded,
            plugin_client=plugin_client,
            extensions=extensions,
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert Decimal(view.sales_today["order_amount"]) == Decimal("100")
        assert view.sales_today["order_count"] == 1

    def test_hook_returning_none_keeps_set(self):
        extensions = DashboardExtensions()
        extensions.on_order_excludes(lambda excludes: None)

        assert extensions.resolve_order_excludes(ORDER_EXCLUDES) == ORDER_EXCLUDES

    @pytest.mark.asyncio
    async def test_view_hook_overrides_fields(self, seeded, plugin_client):
        extensions = DashboardExtensions()
        extensions.on_view(lambda view: {"count_customers": view.count_customers + 10})
        extensions.on_view(lambda view: {"not_a_field": 1})

        view = await build_dashboard(
            seeded,
            plugin_client=plugin_client,
            extensions=extensions,
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert view.count_customers == 10
        assert not hasattr(view, "not_a_field")

    @pytest.mark.asyncio
    async def test_view_hook_changes_stay_local(self, test_db, plugin_client):
        """Test changes a hook makes to its argument never reach the dashboard"""
        extensions = DashboardExtensions()

        @extensions.on_view
        def tamper(view):
            view.count_customers = 777
            view.orders["injected"] = 5
            view.recommended_plugins.clear()
            return None

        view = await build_dashboard(
            test_db,
            plugin_client=plugin_client,
            extensions=extensions,
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert view.count_customers == 0
        assert view.orders == {}
        assert view.recommended_plugins == [{"id": 1, "name": "Coupon"}]

    @pytest.mark.asyncio
    async def test_view_hook_overrides_recommended_plugins(self, test_db, plugin_client):
        extensions = DashboardExtensions()
        extensions.on_view(lambda view: {"recommended_plugins": [{"id": 42}]})

        view = await build_dashboard(
            test_db,
            plugin_client=plugin_client,
            extensions=extensions,
            order_excludes=ORDER_EXCLUDES,
            sales_excludes=SALES_EXCLUDES,
            now=NOW,
        )

        assert view.recommended_plugins == [{"id": 42}]

    @pytest.mark.asyncio
    async def test_password_changed_hooks_get_snapshot(self, admin_member):
        extensions = DashboardExtensions()
        seen = []
        extensions.on_password_changed(seen.append)

        extensions.notify_password_changed(admin_member)

        snapshot = seen[0]
        assert isinstance(snapshot, MemberSnapshot)
        assert snapshot.id == admin_member.id
        assert snapshot.login_id == admin_member.login_id
        with pytest.raises(ValidationError):
            snapshot.name = "Renamed"
        assert admin_member.name == "Administrator"
