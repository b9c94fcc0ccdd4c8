"""
Sales Aggregation

Groups order payment totals into calendar buckets for the dashboard charts
and answers single day / single month sales questions.

Bucket keys:
- day:   "YYYY/MM/DD"
- month: "YYYY/MM"

The bucket set is dense: every calendar unit between the two bounds gets a
zero bucket before any order is counted, so days or months without sales
still show up in the chart.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple, Union

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.database.models import Order
from storefront_admin.enums import OrderStatus

logger = structlog.get_logger(__name__)

DateLike = Union[date, datetime]


class Granularity(str, Enum):
    """Calendar unit of a sales bucket"""
    DAY = "day"
    MONTH = "month"

    @property
    def date_format(self) -> str:
        if self is Granularity.DAY:
            return "%Y/%m/%d"
        return "%Y/%m"


@dataclass
class Bucket:
    """Sales accumulated over one calendar unit"""
    price: Decimal = Decimal("0")
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"price": str(self.price), "count": self.count}


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def bucket_keys(
    from_date: DateLike,
    to_date: DateLike,
    granularity: Granularity,
) -> Dict[str, Bucket]:
    """
    Build one empty bucket per calendar unit in [from_date, to_date].

    Units are taken from the calendar dates, so the time of day on either
    bound never adds or drops a bucket. An inverted range yields no buckets.
    """
    start = _as_date(from_date)
    end = _as_date(to_date)
    fmt = granularity.date_format
    buckets: Dict[str, Bucket] = {}

    if granularity is Granularity.DAY:
        day = start
        while day <= end:
            buckets[day.strftime(fmt)] = Bucket()
            day += timedelta(days=1)
        return buckets

    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        buckets[date(year, month, 1).strftime(fmt)] = Bucket()
        month += 1
        if month > 12:
            month = 1
            year += 1
    return buckets


def bucketize(
    orders: Iterable[Tuple[datetime, Decimal]],
    buckets: Dict[str, Bucket],
    granularity: Granularity,
) -> Dict[str, Bucket]:
    """
    Add (order_date, payment_total) pairs into their buckets.

    Every order date must fall inside the range the buckets were built for.
    """
    fmt = granularity.date_format
    for order_date, payment_total in orders:
        bucket = buckets[order_date.strftime(fmt)]
        bucket.price += Decimal(payment_total or 0)
        bucket.count += 1
    return buckets


async def aggregate_sales(
    db: AsyncSession,
    from_date: datetime,
    to_date: datetime,
    excludes: FrozenSet[OrderStatus],
    granularity: Granularity,
) -> Dict[str, Bucket]:
    """
    Sum payment totals and order counts per bucket over [from_date, to_date].

    Args:
        db: Database session
        from_date: Inclusive lower bound on the order date
        to_date: Inclusive upper bound on the order date
        excludes: Order statuses that do not count as sales
        granularity: Bucket size

    Returns:
        Ordered mapping of bucket key to Bucket, one entry per calendar unit
    """
    buckets = bucket_keys(from_date, to_date, granularity)

    result = await db.execute(
        select(Order.order_date, Order.payment_total)
        .where(
            Order.order_date >= from_date,
            Order.order_date <= to_date,
            Order.status.not_in(sorted(excludes)),
        )
        .order_by(Order.order_date)
    )

    bucketize(result.tuples().all(), buckets, granularity)

    logger.debug(
        "Sales aggregated",
        from_date=str(from_date),
        to_date=str(to_date),
        granularity=granularity.value,
        buckets=len(buckets),
    )
    return buckets


async def build_sales_chart(
    db: AsyncSession,
    excludes: FrozenSet[OrderStatus],
    now: datetime,
) -> List[Dict[str, Bucket]]:
    """
    Weekly, monthly and yearly sales series, in that order.

    - weekly:  daily buckets from the start of the day one week ago
    - monthly: daily buckets from the first of the current month
    - yearly:  monthly buckets from the first of the same month last year
    """
    today = datetime.combine(now.date(), time.min)
    first_of_month = today.replace(day=1)
    first_of_month_last_year = first_of_month.replace(year=first_of_month.year - 1)

    weekly = await aggregate_sales(db, today - timedelta(weeks=1), now, excludes, Granularity.DAY)
    monthly = await aggregate_sales(db, first_of_month, now, excludes, Granularity.DAY)
    yearly = await aggregate_sales(db, first_of_month_last_year, now, excludes, Granularity.MONTH)

    return [weekly, monthly, yearly]


async def _sales_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    excludes: FrozenSet[OrderStatus],
) -> Tuple[Decimal, int]:
    # Ungrouped aggregate: always exactly one row
    result = await db.execute(
        select(
            func.sum(Order.payment_total).label("order_amount"),
            func.count(Order.id).label("order_count"),
        ).where(
            Order.order_date >= start,
            Order.order_date < end,
            Order.status.not_in(sorted(excludes)),
        )
    )
    row = result.one()
    return Decimal(str(row.order_amount or 0)), row.order_count or 0


async def get_sales_by_day(
    db: AsyncSession,
    day: DateLike,
    excludes: FrozenSet[OrderStatus],
) -> Dict[str, Any]:
    """
    Sales of one calendar day.

    Returns an empty dict when no order counts as a sale that day.
    """
    start = datetime.combine(_as_date(day), time.min)
    amount, count = await _sales_between(db, start, start + timedelta(days=1), excludes)
    if not count:
        return {}
    return {
        "order_day": start.strftime("%Y-%m-%d"),
        "order_amount": amount,
        "order_count": count,
    }


async def get_sales_by_month(
    db: AsyncSession,
    day: DateLike,
    excludes: FrozenSet[OrderStatus],
) -> Dict[str, Any]:
    """
    Sales of the calendar month containing `day`.

    Returns an empty dict when no order counts as a sale that month.
    """
    start = datetime.combine(_as_date(day).replace(day=1), time.min)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)

    amount, count = await _sales_between(db, start, end, excludes)
    if not count:
        return {}
    return {
        "order_month": start.strftime("%Y-%m"),
        "order_amount": amount,
        "order_count": count,
    }
