"""
Shared pytest fixtures.

Environment defaults are set before gpx_backend.config is imported so a
developer .env cannot switch on server-side saving or commands during tests.
"""

import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("ENV", "dev")
os.environ.setdefault("GPX_SAVE_MODE", "false")
os.environ.setdefault("ADDITIONAL_COMMAND", "")

from gpx_backend.main import app, get_post_processors  # noqa: E402


@pytest.fixture
def post_processors():
    """Post-processors injected into the endpoint; tests append to this list."""
    processors = []
    app.dependency_overrides[get_post_processors] = lambda: processors
    yield processors
    app.dependency_overrides.pop(get_post_processors, None)


@pytest.fixture
def client(post_processors):
    with TestClient(app) as c:
        yield c

