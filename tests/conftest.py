"""Pytest shared fixtures for onboarding client tests."""
import json
import pathlib
import sys
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import jwt
import pytest
import requests

from onboarding.core.cce.exceptions import CCEAPIError

TEST_SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"
SERVICE_URL = "https://acme.cloudonboarding.cyberark.cloud"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from performing real HTTP calls.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _blocked(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _blocked)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: test talks to a live onboarding API")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def make_token(**claims) -> str:
    """Build an HS256 JWT carrying ``claims`` (signature is never verified)."""
    return jwt.encode(claims, TEST_SIGNING_KEY, algorithm="HS256")


def make_response(status_code: int = 200, payload=None, url: str = SERVICE_URL, text: Optional[str] = None) -> requests.Response:
    """Build a real ``requests.Response`` with a JSON (or raw text) body."""
    resp = requests.Response()
    resp.status_code = status_code
    resp.url = url
    resp.encoding = "utf-8"
    if text is not None:
        resp._content = text.encode("utf-8")
    elif payload is not None:
        resp._content = json.dumps(payload).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = b""
    return resp


def api_error(status_code: int, app_error_code: Optional[str] = None, message: str = "error") -> CCEAPIError:
    return CCEAPIError(status_code, message, f"{SERVICE_URL}/api", app_error_code)


@pytest.fixture
def token():
    return make_token(subdomain="acme", tenant_id="tenant-123", platform_domain="shell.cyberark.cloud")


@pytest.fixture
def sleeps():
    """Recording replacement for ``time.sleep``."""
    calls = []
    return calls
