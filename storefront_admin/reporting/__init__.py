"""
Reporting Module

Read-only aggregates behind the back-office dashboard.
"""
from .order_status import count_orders_by_status, list_order_statuses
from .sales import (
    Bucket,
    Granularity,
    aggregate_sales,
    bucket_keys,
    bucketize,
    build_sales_chart,
    get_sales_by_day,
    get_sales_by_month,
)
from .shop import count_customers, count_non_stock_products, count_products

__all__ = [
    "count_orders_by_status",
    "list_order_statuses",
    "Bucket",
    "Granularity",
    "aggregate_sales",
    "bucket_keys",
    "bucketize",
    "build_sales_chart",
    "get_sales_by_day",
    "get_sales_by_month",
    "count_customers",
    "count_non_stock_products",
    "count_products",
]
