"""
Shop status counters shown on the dashboard.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.database.models import Customer, Product, ProductClass
from storefront_admin.enums import CustomerStatus, ProductStatus


async def count_non_stock_products(db: AsyncSession) -> int:
    """
    Number of products with at least one stock-tracked class at zero.

    A product is counted once however many of its classes are sold out.
    """
    result = await db.execute(
        select(func.count(func.distinct(Product.id)))
        .join(Product.product_classes)
        .where(
            ProductClass.stock_unlimited.is_(False),
            ProductClass.stock == 0,
        )
    )
    return result.scalar_one() or 0


async def count_products(db: AsyncSession) -> int:
    """Number of shown or hidden products; deleted ones are left out."""
    result = await db.execute(
        select(func.count(Product.id)).where(
            Product.status.in_([ProductStatus.SHOW, ProductStatus.HIDE])
        )
    )
    return result.scalar_one() or 0


async def count_customers(db: AsyncSession) -> int:
    """Number of fully registered customers."""
    result = await db.execute(
        select(func.count(Customer.id)).where(
            Customer.status == CustomerStatus.REGULAR
        )
    )
    return result.scalar_one() or 0
