#!/usr/bin/env python
"""
Admin Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn storefront_admin.main:app -c gunicorn.conf.py
"""

import argparse
import os
import subprocess

APP = "storefront_admin.main:app"


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        APP,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["storefront_admin"],
        log_level="debug",
    )


def run_prod_server(port: int):
    """Run Uvicorn with several workers behind a proxy."""
    import uvicorn

    uvicorn.run(
        APP,
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=port,
        workers=int(os.getenv("WORKERS", 2)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1"),
        server_header=False,
    )


def run_gunicorn():
    """Run with Gunicorn and Uvicorn workers."""
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Storefront admin server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run with Gunicorn")
    parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", 8000)), help="Port to listen on")

    args = parser.parse_args()

    if args.dev:
        run_dev_server(args.port)
    elif args.gunicorn:
        os.environ.setdefault("BIND", f"0.0.0.0:{args.port}")
        run_gunicorn()
    else:
        run_prod_server(args.port)
