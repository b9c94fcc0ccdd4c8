"""
Database Models - Storefront Store

Read models for the back-office dashboard. The reporting layer only queries
these tables; the single write path is the staff password change.

Master Tables:
- OrderStatusMaster: display label and sort order for each order status

Transaction Tables:
- Order: customer orders with status, order date and payment total
- Product / ProductClass: catalog entries and their stock per class
- Customer: storefront customers with registration status
- Member: back-office staff accounts
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from storefront_admin.enums import CustomerStatus, OrderStatus, ProductStatus


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# MASTER TABLES
# =============================================================================

class OrderStatusMaster(Base):
    """
    Order Status Master Table

    Display labels for order statuses, listed by `sort_no` ascending.
    """
    __tablename__ = "mtb_order_status"

    id: Mapped[OrderStatus] = mapped_column(SQLEnum(OrderStatus), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_no: Mapped[int] = mapped_column(Integer, nullable=False)


# =============================================================================
# TRANSACTION TABLES
# =============================================================================

class Customer(Base):
    """Storefront customer"""
    __tablename__ = "dtb_customer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[CustomerStatus] = mapped_column(
        SQLEnum(CustomerStatus), default=CustomerStatus.PROVISIONAL
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    orders: Mapped[List["Order"]] = relationship(back_populates="customer")

    __table_args__ = (
        Index("ix_dtb_customer_status", "status"),
    )


class Order(Base):
    """
    Order Table

    One row per order. `order_date` stays empty until checkout completes, so
    those orders never fall inside a sales window.
    """
    __tablename__ = "dtb_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_no: Mapped[Optional[str]] = mapped_column(String(255))
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("dtb_customer.id")
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.PROCESSING, nullable=False
    )
    order_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    payment_total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    customer: Mapped[Optional["Customer"]] = relationship(back_populates="orders")

    __table_args__ = (
        Index("ix_dtb_order_status", "status"),
        Index("ix_dtb_order_order_date", "order_date"),
    )


class Product(Base):
    """Catalog product"""
    __tablename__ = "dtb_product"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ProductStatus] = mapped_column(
        SQLEnum(ProductStatus), default=ProductStatus.HIDE, nullable=False
    )

    product_classes: Mapped[List["ProductClass"]] = relationship(
        back_populates="product"
    )


class ProductClass(Base):
    """
    Product Class Table

    A purchasable variant of a product. Stock is tracked per class unless
    `stock_unlimited` is set.
    """
    __tablename__ = "dtb_product_class"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dtb_product.id"), nullable=False
    )
    code: Mapped[Optional[str]] = mapped_column(String(255))
    stock: Mapped[Optional[int]] = mapped_column(Integer)
    stock_unlimited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    product: Mapped["Product"] = relationship(back_populates="product_classes")

    __table_args__ = (
        Index("ix_dtb_product_class_product", "product_id"),
    )


class Member(Base):
    """Back-office staff account"""
    __tablename__ = "dtb_member"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    login_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    salt: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
