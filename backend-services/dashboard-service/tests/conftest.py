# backend-services/dashboard-service/tests/conftest.py
"""
Pytest configuration and shared fixtures for dashboard-service tests.
"""
import os
import sys
import json
from unittest.mock import MagicMock

import pytest

# Service root for local modules, backend-services/ for the shared contracts
SERVICE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.abspath(os.path.join(SERVICE_ROOT, '..')))
sys.path.insert(0, SERVICE_ROOT)

# Keep test runs from writing into /app/logs
os.environ.setdefault("LOG_DIR", "")


def pytest_configure(config):
    """Register custom markers to avoid warnings."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated, no network).")
    config.addinivalue_line("markers", "integration: Endpoint tests through the Flask test client with a mocked provider.")


def pytest_collection_modifyitems(config, items):
    # auto-tag tests by folder so `-m unit|integration` works consistently
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        elif f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)


def make_provider_response(status_code=200, payload=None, reason='OK', json_error=None):
    """Builds a stand-in for requests.Response as returned by the provider session."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def provider_response():
    return make_provider_response


@pytest.fixture(autouse=True)
def default_universe_env(monkeypatch):
    """Every test starts from the built-in universe unless it writes its own."""
    monkeypatch.delenv("TRACKED_UNIVERSE_PATH", raising=False)
    yield


@pytest.fixture
def api_key_env(monkeypatch):
    """Configures a provider key for the request."""
    monkeypatch.setenv("API_KEY", "test-secret-key")
    return "test-secret-key"


@pytest.fixture
def universe_file(tmp_path, monkeypatch):
    """Writes a tracked-universe JSON file and points the service at it."""
    def _write(raw: dict):
        path = tmp_path / "universe.json"
        path.write_text(json.dumps(raw), encoding="utf-8")
        monkeypatch.setenv("TRACKED_UNIVERSE_PATH", str(path))
        return path
    return _write


@pytest.fixture(scope="session")
def app():
    from app import app as flask_app
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()
