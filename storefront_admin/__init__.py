"""
Storefront Admin Dashboard

Back-office home screen for a storefront: order status summary, sales
figures and charts, shop counters and recommended plugins.
"""

__version__ = "1.0.0"
