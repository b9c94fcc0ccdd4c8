"""
Storefront status enumerations shared by the models, settings and reports.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Order status enumeration"""
    NEW = "new"
    PAID = "paid"
    IN_PROGRESS = "in_progress"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCEL = "cancel"
    RETURNED = "returned"
    PENDING = "pending"
    PROCESSING = "processing"


class ProductStatus(str, Enum):
    """Product display status enumeration"""
    SHOW = "show"
    HIDE = "hide"
    DELETED = "deleted"


class ProductStock(str, Enum):
    """Stock filter values understood by the product search screen"""
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"


class CustomerStatus(str, Enum):
    """Customer registration status enumeration"""
    PROVISIONAL = "provisional"
    REGULAR = "regular"
    WITHDRAWN = "withdrawn"


# Display labels and ordering for the order status master table
DEFAULT_ORDER_STATUSES = [
    (OrderStatus.NEW, "New", 1),
    (OrderStatus.PAID, "Paid", 2),
    (OrderStatus.IN_PROGRESS, "In progress", 3),
    (OrderStatus.SHIPPED, "Shipped", 4),
    (OrderStatus.DELIVERED, "Delivered", 5),
    (OrderStatus.CANCEL, "Cancelled", 6),
    (OrderStatus.RETURNED, "Returned", 7),
    (OrderStatus.PENDING, "Pending payment", 8),
    (OrderStatus.PROCESSING, "Processing purchase", 9),
]
