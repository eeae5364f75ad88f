from unittest.mock import MagicMock

import pytest
import requests

from onboarding.core.cce.client import CCEClient, read_json, resolve_service_url
from onboarding.core.cce.exceptions import CCEAPIError, CCEResponseError, CCETransportError, CCEValidationError

from tests.conftest import SERVICE_URL, make_response, make_token


@pytest.fixture(autouse=True)
def _prod_env(monkeypatch):
    monkeypatch.delenv("DEPLOY_ENV", raising=False)


# ─────────────────────────────────────────────────────────────────────────────
# Service URL resolution
# ─────────────────────────────────────────────────────────────────────────────
def test_url_from_subdomain_claim_strips_shell_prefix():
    token = make_token(subdomain="acme", platform_domain="shell.cyberark.cloud")
    assert resolve_service_url(token) == "https://acme.cloudonboarding.cyberark.cloud"


def test_subdomain_claim_wins_over_explicit_subdomain():
    token = make_token(subdomain="acme")
    assert resolve_service_url(token, tenant_subdomain="other") == "https://acme.cloudonboarding.cyberark.cloud"


def test_explicit_subdomain_used_when_claim_missing():
    token = make_token(sub="user")
    assert resolve_service_url(token, tenant_subdomain="beta") == "https://beta.cloudonboarding.cyberark.cloud"


def test_base_tenant_url_first_label():
    assert resolve_service_url("", base_tenant_url="gamma.cyberark.cloud") == "https://gamma.cloudonboarding.cyberark.cloud"


def test_unique_name_domain_fallback():
    token = make_token(unique_name="alice@delta.cyberarkgov.cloud")
    assert resolve_service_url(token) == "https://delta.cloudonboarding.cyberarkgov.cloud"


def test_gov_environment_domain(monkeypatch):
    monkeypatch.delenv("DEPLOY_ENV", raising=False)
    token = make_token(subdomain="acme")
    assert resolve_service_url(token, deploy_env="gov-prod") == "https://acme.cloudonboarding.cyberarkgov.cloud"


def test_unresolvable_subdomain_raises():
    with pytest.raises(CCEValidationError, match="failed to resolve tenant subdomain"):
        resolve_service_url(make_token(sub="user"))


def test_malformed_token_raises_validation_error():
    with pytest.raises(CCEValidationError):
        resolve_service_url("not-a-jwt")


# ─────────────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────────────
def make_client(token, response=None, side_effect=None):
    session = requests.Session()
    session.request = MagicMock(return_value=response, side_effect=side_effect)
    return CCEClient(token, session=session), session.request


def test_default_headers(token):
    client, _ = make_client(token)
    headers = client.session.headers
    assert client.base_url == SERVICE_URL
    assert headers["Origin"] == SERVICE_URL
    assert headers["Referer"] == SERVICE_URL
    assert headers["Content-Type"] == "application/json"
    assert headers["Accept"] == "*/*"


def test_get_sends_bearer_and_list_params(token):
    client, request = make_client(token, make_response(payload={"ok": True}))
    client.get("/api/aws/workspaces", params={"services": ["dpa", "sca"]})
    method, url = request.call_args.args
    assert method == "GET"
    assert url == f"{SERVICE_URL}/api/aws/workspaces"
    assert request.call_args.kwargs["params"] == {"services": ["dpa", "sca"]}
    assert request.call_args.kwargs["headers"]["Authorization"] == f"Bearer {token}"


def test_update_token_used_on_next_request(token):
    client, request = make_client(token, make_response(payload={}))
    client.update_token("refreshed")
    client.post("/api/aws/organizations/scan", json={})
    assert request.call_args.kwargs["headers"]["Authorization"] == "Bearer refreshed"


def test_error_response_parses_app_error_code(token):
    body = {"message": "scan running", "appErrorCode": "SCAN_IN_PROGRESS"}
    client, _ = make_client(token, make_response(400, body, url=f"{SERVICE_URL}/api/x"))
    with pytest.raises(CCEAPIError) as exc_info:
        client.post("/api/x", json={})
    error = exc_info.value
    assert error.status_code == 400
    assert error.app_error_code == "SCAN_IN_PROGRESS"
    assert error.endpoint == f"{SERVICE_URL}/api/x"
    assert "scan running" in error.message


def test_error_response_snake_case_code(token):
    client, _ = make_client(token, make_response(400, {"app_error_code": "SCAN_IN_PROGRESS"}))
    with pytest.raises(CCEAPIError) as exc_info:
        client.get("/api/x")
    assert exc_info.value.app_error_code == "SCAN_IN_PROGRESS"


def test_error_response_non_json_body(token):
    client, _ = make_client(token, make_response(502, text="<html>Bad Gateway</html>"))
    with pytest.raises(CCEAPIError) as exc_info:
        client.get("/api/x")
    assert exc_info.value.status_code == 502
    assert exc_info.value.app_error_code is None
    assert "Bad Gateway" in exc_info.value.message


def test_not_found_and_conflict_flags(token):
    client, _ = make_client(token, make_response(404, {"message": "nope"}))
    with pytest.raises(CCEAPIError) as exc_info:
        client.get("/api/x")
    assert exc_info.value.is_not_found
    assert not exc_info.value.is_conflict


def test_transport_error_is_wrapped(token):
    client, _ = make_client(token, side_effect=requests.ConnectionError("Connection refused"))
    with pytest.raises(CCETransportError, match="Connection refused") as exc_info:
        client.delete("/api/x")
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


def test_tenant_id_claim(token):
    client, _ = make_client(token)
    assert client.tenant_id() == "tenant-123"


def test_tenant_id_missing_raises():
    client, _ = make_client(make_token(subdomain="acme"))
    with pytest.raises(CCEValidationError):
        client.tenant_id()


def test_read_json_snake_cases_keys():
    resp = make_response(payload={"lastSuccessfulScan": "x", "servicesData": [{"serviceStatus": "ok"}]})
    assert read_json(resp) == {"last_successful_scan": "x", "services_data": [{"service_status": "ok"}]}


def test_read_json_empty_body():
    assert read_json(make_response(204)) == {}


def test_read_json_rejects_non_json_body():
    resp = make_response(200, text="<html>gateway</html>", url=f"{SERVICE_URL}/api/aws/programmatic/account/acc-1")
    with pytest.raises(CCEResponseError) as exc_info:
        read_json(resp)
    assert exc_info.value.status_code == 200
    assert exc_info.value.endpoint.endswith("/account/acc-1")
