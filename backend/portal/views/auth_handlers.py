"""Auth endpoints: login, register, and logout for the portal."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from portal.views.handlers import render_page
from portal.views.responses import (
    InvalidRequestBody,
    clear_session_cookie,
    invalid_request_response,
    parse_json_body,
    result_response,
    set_session_cookie,
)
from portal.views.types import LoginRequest, RegisterRequest
from shared.results import Failure, Success

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from shared.auth.models import SignedIn
    from shared.auth.service import AuthService
    from shared.auth.settings import AuthSettings

DEFAULT_CALLBACK_URL = "/dashboard"


def _safe_callback_url(value: str | None) -> str:
    """Only same-site relative paths are honored as post-login destinations."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return DEFAULT_CALLBACK_URL
    return value


def _signed_in_response(request: Request, signed_in: SignedIn, status_code: int) -> Response:
    """Return the public user and store the session token in the cookie, never in the body."""
    auth_settings: AuthSettings = request.app.state.auth_settings
    response = result_response(Success(data=signed_in.user), success_status=status_code)
    set_session_cookie(response, signed_in.session_token, auth_settings)
    return response


async def login_page(request: Request) -> Response:
    """GET /login - render login form."""
    callback_url = _safe_callback_url(request.query_params.get("callbackUrl"))
    return render_page(request, "login.html", {"callback_url": callback_url})


async def login(request: Request) -> Response:
    """POST /login {email, password} - verify credentials and set the session cookie."""
    auth_service: AuthService = request.app.state.auth_service
    try:
        body = await parse_json_body(request, LoginRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await auth_service.login(body.email, body.password)
    if isinstance(result, Failure):
        return result_response(result)
    return _signed_in_response(request, result.data, HTTPStatus.OK)


async def register_page(request: Request) -> Response:
    """GET /register - render registration form."""
    return render_page(request, "register.html", {})


async def register(request: Request) -> Response:
    """POST /register {username, email, password} - create the account and sign in."""
    auth_service: AuthService = request.app.state.auth_service
    try:
        body = await parse_json_body(request, RegisterRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await auth_service.register(body.username, body.email, body.password)
    if isinstance(result, Failure):
        return result_response(result)
    return _signed_in_response(request, result.data, HTTPStatus.CREATED)


async def logout(request: Request) -> Response:
    """POST /logout - clear the session cookie. Always succeeds."""
    auth_service: AuthService = request.app.state.auth_service
    auth_settings: AuthSettings = request.app.state.auth_settings
    result = await auth_service.logout(request.cookies.get(auth_settings.session_cookie_name))
    response = JSONResponse(result.model_dump(mode="json"))
    clear_session_cookie(response, auth_settings)
    return response
