from __future__ import annotations

import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from portal.auth.backend import SessionCookieBackend
from portal.auth.middleware import RouteGuardMiddleware
from portal.auth.policy import protected_api, protected_html, public_route, validate_route_auth_policy
from portal.server.middleware import SecurityHeadersMiddleware
from portal.server.settings import PortalServerSettings
from portal.views import (
    create_character,
    create_templates,
    dashboard_page,
    delete_character,
    get_profile,
    health,
    landing_page,
    list_characters,
    login,
    login_page,
    logout,
    register,
    register_page,
    remove_secondary_password,
    security_page,
    set_secondary_password,
    transfer_jpoint,
)
from shared.account import AccountService
from shared.auth import AuthService, SessionCodec
from shared.auth.password import get_hasher
from shared.auth.settings import AuthSettings
from shared.db import Database, MemoryCredentialStore, SqliteCredentialStore, seed_demo_data
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from shared.dal.credential_store import CredentialStore


def _build_store(auth_settings: AuthSettings) -> tuple[CredentialStore, Database | None]:
    """Create the configured credential store and, for SQLite, its open database."""
    if auth_settings.store_backend == "memory":
        return MemoryCredentialStore(), None
    db = Database(auth_settings.database_path)
    db.connect()
    return SqliteCredentialStore(db), db


def create_app(
    settings: PortalServerSettings | None = None,
    auth_settings: AuthSettings | None = None,  # required in production (via get_app)
    store: CredentialStore | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = PortalServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()  # type: ignore[call-arg]

    routes = [
        # Protected HTML routes (redirect to login when the session is invalid)
        Route("/dashboard", protected_html(dashboard_page), methods=["GET"], name="dashboard_page"),
        Route("/dashboard/security", protected_html(security_page), methods=["GET"], name="security_page"),
        # Protected JSON routes (401 Unauthorized failure when the session is invalid)
        Route("/api/account/profile", protected_api(get_profile), methods=["GET"], name="get_profile"),
        Route(
            "/api/account/secondary-password",
            protected_api(set_secondary_password),
            methods=["POST"],
            name="set_secondary_password",
        ),
        Route(
            "/api/account/secondary-password/remove",
            protected_api(remove_secondary_password),
            methods=["POST"],
            name="remove_secondary_password",
        ),
        Route("/api/characters", protected_api(list_characters), methods=["GET"], name="list_characters"),
        Route("/api/characters", protected_api(create_character), methods=["POST"], name="create_character"),
        Route("/api/characters/delete", protected_api(delete_character), methods=["POST"], name="delete_character"),
        Route("/api/characters/transfer", protected_api(transfer_jpoint), methods=["POST"], name="transfer_jpoint"),
        # Public routes
        Route("/", public_route(landing_page), methods=["GET"], name="landing_page"),
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/login", public_route(login_page), methods=["GET"], name="login_page"),
        Route("/login", public_route(login), methods=["POST"], name="login"),
        Route("/register", public_route(register_page), methods=["GET"], name="register_page"),
        Route("/register", public_route(register), methods=["POST"], name="register"),
        Route("/logout", public_route(logout), methods=["POST"], name="logout"),
    ]

    if settings.static_dir:
        static_dir = Path(settings.static_dir).resolve()
        if static_dir.is_dir():
            routes.append(Mount("/static", app=StaticFiles(directory=str(static_dir)), name="static"))
        else:
            logger.warning("static directory not found, /static/ will not be served", path=str(static_dir))

    validate_route_auth_policy(routes)

    # Initialize store and auth components
    db: Database | None = None
    if store is None:
        store, db = _build_store(auth_settings)
    hasher = get_hasher(auth_settings.password_hasher, default_rounds=auth_settings.default_hash_rounds)
    session_codec = SessionCodec(auth_settings.session_secret, ttl_seconds=auth_settings.session_max_age_seconds)
    auth_service = AuthService(
        store,
        session_codec,
        password_hasher=hasher,
        register_hash_rounds=auth_settings.register_hash_rounds,
    )
    account_service = AccountService(store, password_hasher=hasher)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        try:
            if auth_settings.seed_demo_data:
                await seed_demo_data(store, hasher)
            yield
        finally:
            if db is not None:
                db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    # Added innermost first: authentication runs after the guard, headers wrap everything
    app.add_middleware(
        AuthenticationMiddleware,  # type: ignore[arg-type]
        backend=SessionCookieBackend(auth_service, auth_settings.session_cookie_name),
    )
    app.add_middleware(RouteGuardMiddleware, cookie_name=auth_settings.session_cookie_name)  # type: ignore[arg-type]
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.db = db
    app.state.store = store
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.templates = create_templates()
    app.state.auth_service = auth_service
    app.state.account_service = account_service

    logger.info("portal server ready", store_backend=auth_settings.store_backend)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory portal.server.app:get_app."""
    s = PortalServerSettings()
    auth = AuthSettings()  # type: ignore[call-arg]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, auth_settings=auth)
