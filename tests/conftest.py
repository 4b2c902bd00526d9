"""Pytest shared fixtures for the Graph request engine."""
import json
import pathlib
import sys
from types import SimpleNamespace

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from graphshell.config.settings import EnvironmentParameters
from graphshell.core.odata import AuthContext, RequestExecutor


class _StubResponse:
    def __init__(self, body="", status_code: int = 200, url: str = ""):
        if not isinstance(body, str):
            body = json.dumps(body)
        self.text = body
        self.status_code = status_code
        self.url = url

    def json(self):
        return json.loads(self.text)


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """Fail any unit test that reaches the real network."""
    if request.node.get_closest_marker("integration"):
        return

    def _unexpected(method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests, "request", _unexpected)


# ─────────────────────────────────────────────────────────────────────────────
# Scripted transport
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def transport(monkeypatch):
    """Replace requests.request with a queue of scripted responses.

    Usage:
        transport.queue({"id": "1"})
        transport.queue("not found", status_code=404)
        transport.queue(requests.ConnectionError("boom"))
        ...
        transport.calls[0].url
    """
    state = SimpleNamespace(calls=[], responses=[])

    def queue(body="", status_code=200):
        state.responses.append((body, status_code))

    def _request(method, url, headers=None, data=None, timeout=None, **kwargs):
        state.calls.append(SimpleNamespace(method=method, url=url, headers=headers or {}, data=data, timeout=timeout))
        if not state.responses:
            raise AssertionError(f"No scripted response left for {method} {url}")
        body, status_code = state.responses.pop(0)
        if isinstance(body, Exception):
            raise body
        return _StubResponse(body, status_code, url)

    state.queue = queue
    monkeypatch.setattr(requests, "request", _request)
    return state


@pytest.fixture()
def environment():
    return EnvironmentParameters(base_address="https://graph.test", schema_version="beta")


@pytest.fixture()
def auth():
    return AuthContext.from_token("test-token")


@pytest.fixture()
def executor(environment):
    return RequestExecutor(environment)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a live Graph endpoint)"
    )
