"""
Order status summary for the dashboard.
"""

from typing import Dict, FrozenSet, List

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.database.models import Order, OrderStatusMaster
from storefront_admin.enums import OrderStatus

logger = structlog.get_logger(__name__)


async def count_orders_by_status(
    db: AsyncSession,
    excludes: FrozenSet[OrderStatus],
) -> Dict[OrderStatus, int]:
    """
    Count orders per status, grouped in the database.

    Statuses in `excludes` never appear in the result, and neither do
    statuses without any order.
    """
    result = await db.execute(
        select(
            Order.status.label("status"),
            func.count(Order.id).label("count"),
        )
        .where(Order.status.not_in(sorted(excludes)))
        .group_by(Order.status)
        .order_by(Order.status)
    )

    counts = {row.status: row.count for row in result.all()}
    logger.debug("Order status counts computed", statuses=len(counts))
    return counts


async def list_order_statuses(
    db: AsyncSession,
    excludes: FrozenSet[OrderStatus],
) -> List[OrderStatusMaster]:
    """Non-excluded status master rows, by sort order."""
    result = await db.execute(
        select(OrderStatusMaster)
        .where(OrderStatusMaster.id.not_in(sorted(excludes)))
        .order_by(OrderStatusMaster.sort_no.asc())
    )
    return list(result.scalars().all())
