"""Root conftest: test environment and a caplog-friendly structlog pipeline."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import redact_secrets

# AUTH_SESSION_SECRET and friends must exist before any AuthSettings is built
load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Rendered to a key=value string so caplog.text carries the event and its fields.
# Redaction is part of the chain so tests can assert secrets never appear.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        redact_secrets,
        structlog.processors.format_exc_info,
        structlog.processors.KeyValueRenderer(key_order=["event"]),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _isolated_log_context():
    """Contextvars bound by one test never show up in another."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
