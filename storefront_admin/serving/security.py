"""
Staff Security Helpers

Password hashing, session login state, CSRF tokens and the asynchronous
request marker used by the admin screens. Session data lives in Starlette's
signed cookie session (`request.session`).
"""

import hashlib
import hmac
import secrets
from typing import Dict, List, Optional

from fastapi import Depends, Request

from storefront_admin.config import Settings
from storefront_admin.database.models import Member
from storefront_admin.serving.dependencies import get_app_settings

SESSION_MEMBER_ID = "member_id"
SESSION_MEMBER_NAME = "member_name"
SESSION_CSRF_TOKEN = "_csrf_token"
SESSION_LAST_ERROR = "_security.last_error"
SESSION_LAST_LOGIN_ID = "_security.last_login_id"
SESSION_FLASHES = "_flashes"

CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "_token"


class LoginRequired(Exception):
    """Raised when an admin screen is requested without a staff login."""


class PasswordEncoder:
    """
    Salted HMAC-SHA256 password hashing.

    The salt is the HMAC key; the message is the raw password followed by
    ":" and the configured auth magic.
    """

    SALT_BYTES = 5

    def __init__(self, auth_magic: str):
        self.auth_magic = auth_magic

    def create_salt(self) -> str:
        return secrets.token_hex(self.SALT_BYTES)

    def encode_password(self, raw: str, salt: str) -> str:
        message = f"{raw}:{self.auth_magic}".encode("utf-8")
        return hmac.new(salt.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def is_password_valid(self, encoded: str, raw: str, salt: Optional[str]) -> bool:
        candidate = self.encode_password(raw, salt or "")
        return hmac.compare_digest(encoded.encode("utf-8"), candidate.encode("utf-8"))


def get_password_encoder(settings: Settings = Depends(get_app_settings)) -> PasswordEncoder:
    return PasswordEncoder(settings.security.auth_magic.get_secret_value())


# =============================================================================
# SESSION LOGIN
# =============================================================================

def require_login(request: Request) -> int:
    """
    FastAPI dependency: id of the logged in staff member.

    Only the session is consulted, so guarded routes do no database work
    before their own checks run.
    """
    member_id = request.session.get(SESSION_MEMBER_ID)
    if member_id is None:
        raise LoginRequired()
    return member_id


def is_logged_in(request: Request) -> bool:
    return request.session.get(SESSION_MEMBER_ID) is not None


def login_member(request: Request, member: Member) -> None:
    """Start a fresh session for `member`."""
    request.session.clear()
    request.session[SESSION_MEMBER_ID] = member.id
    request.session[SESSION_MEMBER_NAME] = member.name
    request.session[SESSION_CSRF_TOKEN] = secrets.token_urlsafe(32)


def logout_member(request: Request) -> None:
    request.session.clear()


def record_login_failure(request: Request, login_id: str, error: str) -> None:
    request.session[SESSION_LAST_ERROR] = error
    request.session[SESSION_LAST_LOGIN_ID] = login_id


def pop_login_failure(request: Request) -> Dict[str, Optional[str]]:
    return {
        "error": request.session.pop(SESSION_LAST_ERROR, None),
        "login_id": request.session.pop(SESSION_LAST_LOGIN_ID, None),
    }


# =============================================================================
# CSRF / ASYNC REQUEST MARKER
# =============================================================================

def get_csrf_token(request: Request) -> str:
    """Session CSRF token, created on first use."""
    token = request.session.get(SESSION_CSRF_TOKEN)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[SESSION_CSRF_TOKEN] = token
    return token


def is_token_valid(request: Request, submitted: Optional[str] = None) -> bool:
    """
    Check a CSRF token against the session.

    Without an explicit `submitted` value the X-CSRF-Token header is used.
    """
    expected = request.session.get(SESSION_CSRF_TOKEN)
    token = submitted if submitted is not None else request.headers.get(CSRF_HEADER)
    if not expected or not token:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), token.encode("utf-8"))


def is_xml_http_request(request: Request) -> bool:
    return request.headers.get("X-Requested-With") == "XMLHttpRequest"


# =============================================================================
# FLASH MESSAGES
# =============================================================================

def add_flash(request: Request, category: str, message: str) -> None:
    flashes = request.session.get(SESSION_FLASHES, [])
    flashes.append({"type": category, "message": message})
    request.session[SESSION_FLASHES] = flashes


def pop_flashes(request: Request) -> List[Dict[str, str]]:
    return request.session.pop(SESSION_FLASHES, [])
