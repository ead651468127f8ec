"""Shared fixtures for metricgate tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from metricgate.api.app import create_app
from metricgate.authorizer import QueryAuthorizer
from metricgate.config import settings
from metricgate.policy.store import load_store, load_store_from_text

SCENARIO_POLICY = """\
viewer:
  cpu_usage: 'namespace=~"prod.*"'
admin:
  "/.*/": ""
"""


@pytest.fixture
def policy_file(tmp_path):
    """Policy file with the viewer/admin scenario."""
    path = tmp_path / "prometheus-acl.yml"
    path.write_text(SCENARIO_POLICY)
    return path


@pytest.fixture
def store(policy_file):
    return load_store(policy_file)


@pytest.fixture
def authorizer(store):
    return QueryAuthorizer(store)


@pytest.fixture
def make_authorizer():
    """Build an authorizer from inline YAML."""

    def _make(text: str) -> QueryAuthorizer:
        return QueryAuthorizer(load_store_from_text(text))

    return _make


@pytest_asyncio.fixture
async def client(authorizer, monkeypatch):
    """HTTP test client wired to a fresh authorizer (dev mode, no admin keys)."""
    monkeypatch.setattr(settings, "admin_keys", "")
    app = create_app(authorizer)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
