"""Shared fixtures for portal tests."""

import os

# AuthSettings requires AUTH_SESSION_SECRET. Set a test default
# before any AuthSettings is instantiated.
os.environ.setdefault("AUTH_SESSION_SECRET", "portal-test-session-secret-0123456789")
