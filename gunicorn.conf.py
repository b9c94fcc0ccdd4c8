"""
Gunicorn configuration for the admin dashboard.

Login throttling counts attempts per worker process, so the effective limit
scales with the worker count.
"""

import os

bind = os.getenv("BIND", "0.0.0.0:8000")

workers = int(os.getenv("WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 5000
max_requests_jitter = 500
timeout = 60
graceful_timeout = 30
keepalive = 5

proc_name = "storefront-admin"

# structlog renders the application log; gunicorn keeps its own on stderr
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = None

forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")
