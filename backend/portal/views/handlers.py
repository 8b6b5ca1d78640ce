"""Page handlers: landing, dashboard, security, and health."""

from __future__ import annotations

from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse
from starlette.templating import Jinja2Templates

from portal.auth.models import AuthenticatedAccount
from portal.views.responses import status_for
from shared.results import DEFAULT_MESSAGES, ErrorKind, Failure

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from shared.account.service import AccountService
    from shared.auth.models import SessionUser

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def create_templates() -> Jinja2Templates:
    """Create Jinja2 template engine for portal HTML pages."""
    return Jinja2Templates(directory=str(TEMPLATES_DIR))


def caller_of(request: Request) -> SessionUser | None:
    """Identity resolved by the authentication backend, or None for anonymous requests."""
    user = request.user
    if isinstance(user, AuthenticatedAccount):
        return user.to_session_user()
    return None


def render_page(request: Request, template: str, context: dict, status_code: int = HTTPStatus.OK) -> Response:
    templates: Jinja2Templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        template,
        {"user": caller_of(request), "error": None, **context},
        status_code=status_code,
    )


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def landing_page(request: Request) -> Response:
    """GET / - marketing page; shows the signed-in user when there is one."""
    return render_page(request, "landing.html", {})


async def dashboard_page(request: Request) -> Response:
    """GET /dashboard - character summary for the signed-in user."""
    account_service: AccountService = request.app.state.account_service
    result = await account_service.get_dashboard(caller_of(request))
    if isinstance(result, Failure):
        context = {"summary": None, "error": result.message}
        return render_page(request, "dashboard.html", context, status_for(result.error))
    return render_page(request, "dashboard.html", {"summary": result.data})


async def security_page(request: Request) -> Response:
    """GET /dashboard/security - profile and secondary password forms.

    A session whose user no longer exists shows an error rather than
    logging the caller out.
    """
    account_service: AccountService = request.app.state.account_service
    result = await account_service.get_profile(caller_of(request))
    if isinstance(result, Failure):
        context = {"profile": None, "error": result.message}
        return render_page(request, "security.html", context, status_for(result.error))
    if result.data is None:
        return render_page(
            request,
            "security.html",
            {"profile": None, "error": DEFAULT_MESSAGES[ErrorKind.ACCOUNT_NOT_FOUND]},
            HTTPStatus.NOT_FOUND,
        )
    return render_page(request, "security.html", {"profile": result.data})
