"""Portal server configuration via environment variables."""

from pydantic_settings import BaseSettings


class PortalServerSettings(BaseSettings):
    model_config = {"env_prefix": "PORTAL_"}

    log_dir: str | None = "backend/logs/portal"
    static_dir: str | None = "frontend/public"  # mounted at /static when it exists
