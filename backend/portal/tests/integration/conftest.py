"""Shared fixtures for portal integration tests."""

import pytest
from starlette.testclient import TestClient

from portal.server.app import create_app
from portal.server.settings import PortalServerSettings
from portal.tests.integration.helpers import make_auth_settings
from shared.db import MemoryCredentialStore


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def app(store):
    return create_app(settings=PortalServerSettings(log_dir=None), auth_settings=make_auth_settings(), store=store)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def other_client(app) -> TestClient:
    """A second browser against the same app and store."""
    return TestClient(app, follow_redirects=False)
