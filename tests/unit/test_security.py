"""
Unit Tests - Staff Security Helpers
"""
import hashlib
import hmac

import pytest
from starlette.requests import Request

from storefront_admin.serving.security import (
    SESSION_CSRF_TOKEN,
    LoginRequired,
    PasswordEncoder,
    add_flash,
    get_csrf_token,
    is_token_valid,
    is_xml_http_request,
    pop_flashes,
    require_login,
)


def _request(headers=None, session=None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/admin/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "session": session if session is not None else {},
    }
    return Request(scope)


class TestPasswordEncoder:
    """Tests for salted password hashing"""

    def test_salt_format(self):
        salt = PasswordEncoder("magic").create_salt()

        assert len(salt) == 10
        int(salt, 16)

    def test_hmac_keyed_by_salt(self):
        encoder = PasswordEncoder("magic")
        expected = hmac.new(b"abc123", b"secret:magic", hashlib.sha256).hexdigest()

        assert encoder.encode_password("secret", "abc123") == expected

    def test_password_validation(self):
        encoder = PasswordEncoder("magic")
        encoded = encoder.encode_password("secret", "salt")

        assert encoder.is_password_valid(encoded, "secret", "salt")
        assert not encoder.is_password_valid(encoded, "wrong", "salt")
        assert not encoder.is_password_valid(encoded, "secret", "other")

    def test_auth_magic_changes_hash(self):
        assert PasswordEncoder("a").encode_password("secret", "salt") != \
            PasswordEncoder("b").encode_password("secret", "salt")


class TestSessionHelpers:
    """Tests for login, CSRF and flash helpers"""

    def test_require_login_without_session(self):
        with pytest.raises(LoginRequired):
            require_login(_request())

    def test_require_login_returns_member_id(self):
        assert require_login(_request(session={"member_id": 7})) == 7

    def test_csrf_token_created_once(self):
        request = _request()

        token = get_csrf_token(request)

        assert token
        assert get_csrf_token(request) == token
        assert request.session[SESSION_CSRF_TOKEN] == token

    def test_token_from_header(self):
        request = _request(headers={"X-CSRF-Token": "tok"}, session={SESSION_CSRF_TOKEN: "tok"})

        assert is_token_valid(request)

    def test_token_from_form_value(self):
        request = _request(session={SESSION_CSRF_TOKEN: "tok"})

        assert is_token_valid(request, "tok")
        assert not is_token_valid(request, "other")
        assert not is_token_valid(request, "")

    def test_token_invalid_without_session_token(self):
        request = _request(headers={"X-CSRF-Token": "tok"})

        assert not is_token_valid(request)

    def test_xml_http_request_marker(self):
        assert is_xml_http_request(_request(headers={"X-Requested-With": "XMLHttpRequest"}))
        assert not is_xml_http_request(_request())

    def test_flashes_popped_once(self):
        request = _request()
        add_flash(request, "success", "saved")

        assert pop_flashes(request) == [{"type": "success", "message": "saved"}]
        assert pop_flashes(request) == []
