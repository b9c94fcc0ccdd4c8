"""
Shared FastAPI dependencies.
"""

from fastapi import Request

from storefront_admin.config import Settings


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings
