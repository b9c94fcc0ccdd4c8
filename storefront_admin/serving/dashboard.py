"""
Dashboard Assembler

Builds the admin home view-model from the order status summary, the sales
figures, the shop counters and the recommended plugin list.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.enums import OrderStatus
from storefront_admin.reporting import (
    count_customers,
    count_non_stock_products,
    count_orders_by_status,
    count_products,
    get_sales_by_day,
    get_sales_by_month,
    list_order_statuses,
)
from storefront_admin.serving.extensions import DashboardExtensions
from storefront_admin.serving.plugins import PluginRepositoryClient

logger = structlog.get_logger(__name__)


class OrderStatusItem(BaseModel):
    """Order status label for display"""
    model_config = ConfigDict(from_attributes=True)

    id: OrderStatus
    name: str
    sort_no: int


class DashboardView(BaseModel):
    """Admin home screen view-model"""
    orders: Dict[str, int]
    order_statuses: List[OrderStatusItem]
    sales_today: Dict[str, Any]
    sales_yesterday: Dict[str, Any]
    sales_this_month: Dict[str, Any]
    count_non_stock_products: int
    count_products: int
    count_customers: int
    recommended_plugins: List[Dict[str, Any]] = []
    csrf_token: Optional[str] = None


def _sales_for_view(summary: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in summary.items()
    }


async def build_dashboard(
    db: AsyncSession,
    *,
    plugin_client: PluginRepositoryClient,
    extensions: DashboardExtensions,
    order_excludes: FrozenSet[OrderStatus],
    sales_excludes: FrozenSet[OrderStatus],
    now: Optional[datetime] = None,
) -> DashboardView:
    """
    Assemble the dashboard.

    Args:
        db: Database session
        plugin_client: Source of recommended plugins
        extensions: Registered extension hooks
        order_excludes: Statuses hidden from the order status summary
        sales_excludes: Statuses not counted as sales
        now: Reference time, defaults to the current local time

    Returns:
        DashboardView with every section filled in
    """
    now = now or datetime.now()

    # Order status summary
    order_excludes = extensions.resolve_order_excludes(order_excludes)
    orders = await count_orders_by_status(db, order_excludes)
    statuses = await list_order_statuses(db, order_excludes)

    # Sales figures
    sales_excludes = extensions.resolve_sales_excludes(sales_excludes)
    sales_today = await get_sales_by_day(db, now, sales_excludes)
    sales_yesterday = await get_sales_by_day(db, now - timedelta(days=1), sales_excludes)
    sales_this_month = await get_sales_by_month(db, now, sales_excludes)

    # Shop status and recommended plugins, before extensions see the view
    view = DashboardView(
        orders={status.value: count for status, count in orders.items()},
        order_statuses=[OrderStatusItem.model_validate(status) for status in statuses],
        sales_today=_sales_for_view(sales_today),
        sales_yesterday=_sales_for_view(sales_yesterday),
        sales_this_month=_sales_for_view(sales_this_month),
        count_non_stock_products=await count_non_stock_products(db),
        count_products=await count_products(db),
        count_customers=await count_customers(db),
        recommended_plugins=await plugin_client.recommended(),
    )

    overrides = extensions.view_overrides(view)
    unknown = set(overrides) - set(DashboardView.model_fields)
    if unknown:
        logger.warning("Ignoring unknown dashboard overrides", fields=sorted(unknown))
    known = {key: value for key, value in overrides.items() if key not in unknown}
    if known:
        view = DashboardView.model_validate({**view.model_dump(), **known})

    logger.info(
        "Dashboard assembled",
        order_statuses=len(view.orders),
        non_stock_products=view.count_non_stock_products,
        products=view.count_products,
        customers=view.count_customers,
        recommended_plugins=len(view.recommended_plugins),
    )
    return view
