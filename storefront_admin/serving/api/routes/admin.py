"""
Admin Home Endpoints

Back-office screens: staff login, the dashboard, the sales chart feed,
password change and the dashboard's quick filter links.

Screens answer with JSON view-models; the front end renders them.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.config import Settings
from storefront_admin.database.connection import get_db_dependency
from storefront_admin.database.models import Member
from storefront_admin.enums import CustomerStatus, ProductStock
from storefront_admin.reporting import build_sales_chart
from storefront_admin.serving.dashboard import DashboardView, build_dashboard
from storefront_admin.serving.dependencies import get_app_settings
from storefront_admin.serving.extensions import DashboardExtensions, get_extensions
from storefront_admin.serving.plugins import PluginRepositoryClient, get_plugin_client
from storefront_admin.serving.security import (
    CSRF_FIELD,
    LoginRequired,
    PasswordEncoder,
    add_flash,
    get_csrf_token,
    get_password_encoder,
    is_logged_in,
    is_token_valid,
    is_xml_http_request,
    login_member,
    logout_member,
    pop_flashes,
    pop_login_failure,
    record_login_failure,
    require_login,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

PRODUCT_SEARCH_SESSION_KEY = "admin.product.search"
CUSTOMER_SEARCH_SESSION_KEY = "admin.customer.search"

LOGIN_FAILED = "admin.login.invalid_credentials"
PASSWORD_CHANGED = "admin.change_password.password_changed"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class LoginView(BaseModel):
    """Login screen"""
    error: Optional[str] = None
    form: Dict[str, Optional[str]]


class ChangePasswordView(BaseModel):
    """Change password screen"""
    errors: List[str] = []
    flashes: List[Dict[str, str]] = []
    csrf_token: str


def _redirect(request: Request, name: str) -> RedirectResponse:
    return RedirectResponse(str(request.url_for(name)), status_code=302)


def _admin_url(settings: Settings, path: str) -> str:
    return f"{settings.admin.prefix}/{path.lstrip('/')}"


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================

@router.get("/login", name="admin_login", response_model=LoginView)
async def login_form(request: Request):
    """Login screen, or straight to the dashboard when already logged in."""
    if is_logged_in(request):
        return _redirect(request, "admin_homepage")

    failure = pop_login_failure(request)
    return LoginView(error=failure["error"], form={"login_id": failure["login_id"]})


@router.post("/login", name="admin_login_check")
async def login(
    request: Request,
    login_id: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db_dependency),
    encoder: PasswordEncoder = Depends(get_password_encoder),
) -> RedirectResponse:
    """Authenticate a staff member against the active accounts."""
    result = await db.execute(
        select(Member).where(Member.login_id == login_id, Member.is_active.is_(True))
    )
    member = result.scalar_one_or_none()

    if member is None or not encoder.is_password_valid(member.password, password, member.salt):
        logger.warning("Staff login failed", login_id=login_id)
        record_login_failure(request, login_id, LOGIN_FAILED)
        return _redirect(request, "admin_login")

    login_member(request, member)
    logger.info("Staff logged in", member_id=member.id)
    return _redirect(request, "admin_homepage")


@router.get("/logout", name="admin_logout")
async def logout(request: Request) -> RedirectResponse:
    logout_member(request)
    return _redirect(request, "admin_login")


# =============================================================================
# DASHBOARD
# =============================================================================

@router.get("/", name="admin_homepage", response_model=DashboardView)
async def homepage(
    request: Request,
    member_id: int = Depends(require_login),
    db: AsyncSession = Depends(get_db_dependency),
    settings: Settings = Depends(get_app_settings),
    extensions: DashboardExtensions = Depends(get_extensions),
    plugin_client: PluginRepositoryClient = Depends(get_plugin_client),
) -> DashboardView:
    """Dashboard view-model for the admin home screen."""
    view = await build_dashboard(
        db,
        plugin_client=plugin_client,
        extensions=extensions,
        order_excludes=frozenset(settings.admin.order_status_excludes),
        sales_excludes=frozenset(settings.admin.sales_excludes),
    )
    view.csrf_token = get_csrf_token(request)
    return view


@router.api_route("/sale_chart", methods=["GET", "POST"], name="admin_homepage_sale")
async def sale_chart(
    request: Request,
    member_id: int = Depends(require_login),
    db: AsyncSession = Depends(get_db_dependency),
    settings: Settings = Depends(get_app_settings),
) -> Any:
    """
    Weekly, monthly and yearly sales series for the dashboard charts.

    Only answered for asynchronous requests carrying the session's CSRF
    token; anything else gets an empty 400 before the database is touched.
    """
    if not is_xml_http_request(request) or not is_token_valid(request):
        logger.warning("Sales chart request rejected", member_id=member_id)
        return Response(status_code=400)

    chart = await build_sales_chart(
        db,
        frozenset(settings.admin.sales_excludes),
        datetime.now(),
    )
    return [
        {key: bucket.to_dict() for key, bucket in series.items()}
        for series in chart
    ]


# =============================================================================
# CHANGE PASSWORD
# =============================================================================

def _validate_password_change(
    request: Request,
    form: Dict[str, Any],
    member: Member,
    encoder: PasswordEncoder,
    settings: Settings,
) -> List[str]:
    errors = []

    if not is_token_valid(request, form.get(CSRF_FIELD, "")):
        errors.append("admin.change_password.invalid_token")
        return errors

    current = form.get("current_password", "")
    first = form.get("change_password_first", "")
    second = form.get("change_password_second", "")

    if not encoder.is_password_valid(member.password, current, member.salt):
        errors.append("admin.change_password.current_password_invalid")
    if first != second:
        errors.append("admin.change_password.password_mismatch")
    if not settings.admin.password_min_length <= len(first) <= settings.admin.password_max_length:
        errors.append("admin.change_password.password_length")

    return errors


@router.api_route(
    "/change_password",
    methods=["GET", "POST"],
    name="admin_change_password",
    response_model=ChangePasswordView,
)
async def change_password(
    request: Request,
    member_id: int = Depends(require_login),
    db: AsyncSession = Depends(get_db_dependency),
    settings: Settings = Depends(get_app_settings),
    encoder: PasswordEncoder = Depends(get_password_encoder),
    extensions: DashboardExtensions = Depends(get_extensions),
):
    """Change the logged in staff member's password."""
    member = await db.get(Member, member_id)
    if member is None or not member.is_active:
        logout_member(request)
        raise LoginRequired()

    errors: List[str] = []
    if request.method == "POST":
        form = dict(await request.form())
        errors = _validate_password_change(request, form, member, encoder, settings)

        if not errors:
            salt = member.salt or encoder.create_salt()
            member.salt = salt
            member.password = encoder.encode_password(form["change_password_first"], salt)
            await db.flush()

            extensions.notify_password_changed(member)
            add_flash(request, "success", PASSWORD_CHANGED)
            logger.info("Staff password changed", member_id=member.id)
            return _redirect(request, "admin_change_password")

        logger.info("Password change rejected", member_id=member.id, errors=errors)

    return ChangePasswordView(
        errors=errors,
        flashes=pop_flashes(request),
        csrf_token=get_csrf_token(request),
    )


# =============================================================================
# QUICK FILTERS
# =============================================================================

@router.get("/search_nonstock", name="admin_homepage_nonstock")
async def search_nonstock(
    request: Request,
    member_id: int = Depends(require_login),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """Open the product list filtered to out-of-stock products."""
    request.session[PRODUCT_SEARCH_SESSION_KEY] = {"stock": [ProductStock.OUT_OF_STOCK.value]}
    return RedirectResponse(_admin_url(settings, "product/page/1"), status_code=302)


@router.get("/search_customer", name="admin_homepage_customer")
async def search_customer(
    request: Request,
    member_id: int = Depends(require_login),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """Open the customer list filtered to regular members."""
    request.session[CUSTOMER_SEARCH_SESSION_KEY] = {"customer_status": [CustomerStatus.REGULAR.value]}
    return RedirectResponse(_admin_url(settings, "customer/page/1"), status_code=302)
