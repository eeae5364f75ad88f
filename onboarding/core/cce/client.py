"""Low-level HTTP client for the cloud onboarding (CCE) API.

Handles service URL resolution from the access token, default headers, and
HTTP operations.
"""
from __future__ import annotations
import json as jsonlib
import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import jwt
import requests

from .exceptions import CCEAPIError, CCEResponseError, CCETransportError, CCEValidationError
from .serialization import snake_keys

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
SERVICE_NAME = "cloudonboarding"
SERVICE_SEPARATOR = "."

# Deployment environment -> platform root domain
ENV_ROOT_DOMAINS = {
    "prod": "cyberark.cloud",
    "gov-prod": "cyberarkgov.cloud",
}
DEFAULT_ENV = "prod"


def _token_claims(token: str) -> Dict[str, Any]:
    """Decode JWT claims without verifying the signature (routing only)."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise CCEValidationError(f"failed to parse access token: {exc}") from exc


def resolve_service_url(
    token: str = "",
    tenant_subdomain: str = "",
    base_tenant_url: str = "",
    deploy_env: str = "",
    service_name: str = SERVICE_NAME,
    separator: str = SERVICE_SEPARATOR,
) -> str:
    """Build ``https://<subdomain><sep><service>.<platform domain>``.

    Subdomain precedence: ``subdomain`` claim, explicit ``tenant_subdomain``,
    first label of ``base_tenant_url``, then the domain part of the
    ``unique_name`` claim. The platform domain comes from the
    ``platform_domain`` claim when present, otherwise from ``deploy_env``.

    Raises:
        CCEValidationError: If no subdomain can be resolved
    """
    env = deploy_env or os.environ.get("DEPLOY_ENV") or DEFAULT_ENV
    platform_domain = ENV_ROOT_DOMAINS.get(env, ENV_ROOT_DOMAINS[DEFAULT_ENV])
    claims = _token_claims(token) if token else {}

    subdomain = claims.get("subdomain") if isinstance(claims.get("subdomain"), str) else ""
    token_domain = claims.get("platform_domain")
    if isinstance(token_domain, str) and token_domain:
        platform_domain = token_domain
        if platform_domain.startswith("shell.") and service_name:
            platform_domain = platform_domain[len("shell."):]

    if not subdomain and tenant_subdomain:
        subdomain = tenant_subdomain

    if not subdomain and base_tenant_url:
        if not base_tenant_url.startswith("https://"):
            base_tenant_url = "https://" + base_tenant_url
        host = urlparse(base_tenant_url).hostname or ""
        subdomain = host.split(".")[0]

    if not subdomain:
        unique_name = claims.get("unique_name")
        if isinstance(unique_name, str) and "@" in unique_name:
            domain_part = unique_name.split("@", 1)[1]
            for root_domain in ENV_ROOT_DOMAINS.values():
                if root_domain in domain_part:
                    subdomain = domain_part.split(".")[0]
                    platform_domain = root_domain
                    break

    if not subdomain:
        raise CCEValidationError("failed to resolve tenant subdomain")

    if service_name:
        return f"https://{subdomain}{separator}{service_name}.{platform_domain}"
    return f"https://{subdomain}.{platform_domain}"


def _parse_error_body(text: str) -> tuple[str, Optional[str]]:
    """Pull a message and application error code out of an error body."""
    try:
        body = jsonlib.loads(text) if text else None
    except ValueError:
        return text, None
    if not isinstance(body, dict):
        return text, None
    body = snake_keys(body)
    app_error_code = body.get("app_error_code")
    if not isinstance(app_error_code, str):
        app_error_code = None
    return text, app_error_code


class CCEClient:
    """HTTP client for the cloud onboarding API.

    Features:
    - Service URL resolved from the access token claims
    - Centralized error handling (``CCEAPIError`` with application error code)
    - List-valued query parameters (``services_names=dpa&services_names=sca``)

    Usage:
        client = CCEClient(token)
        response = client.get("/api/aws/programmatic/account/abc123")
    """

    def __init__(
        self,
        token: str,
        tenant_subdomain: str = "",
        base_tenant_url: str = "",
        deploy_env: str = "",
        base_url: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize client.

        Args:
            token: Bearer access token issued by the identity platform
            tenant_subdomain: Tenant subdomain when the token does not carry one
            base_tenant_url: Tenant URL used as a subdomain fallback
            deploy_env: Deployment environment (``prod`` / ``gov-prod``)
            base_url: Explicit service URL, skipping resolution
            timeout: Per-request timeout in seconds
            session: Pre-built session (tests, connection pooling)
        """
        self._token = token
        self.timeout = timeout
        self.base_url = (base_url or resolve_service_url(token, tenant_subdomain, base_tenant_url, deploy_env)).rstrip("/")
        self.session = session or requests.Session()
        origin = "{0.scheme}://{0.netloc}".format(urlparse(self.base_url))
        self.session.headers.update({
            "Origin": origin,
            "Referer": origin,
            "Content-Type": "application/json",
            "Accept": "*/*",
            "Connection": "keep-alive",
        })

    @property
    def token(self) -> str:
        return self._token

    def update_token(self, token: str) -> None:
        """Swap in a refreshed access token."""
        self._token = token

    def tenant_id(self) -> str:
        """Return the ``tenant_id`` claim of the current token."""
        tenant_id = _token_claims(self._token).get("tenant_id") if self._token else None
        if not isinstance(tenant_id, str) or not tenant_id:
            raise CCEValidationError("failed to retrieve tenant id")
        return tenant_id

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Execute GET request.

        Raises:
            CCEAPIError: On HTTP error
            CCETransportError: When no response was received
        """
        return self._request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> requests.Response:
        """Execute POST request with a JSON body."""
        return self._request("POST", path, json=json)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Execute DELETE request."""
        return self._request("DELETE", path, params=params)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self._token}"}
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise CCETransportError(f"{method} {url} failed: {exc}") from exc
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            CCEAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            message, app_error_code = _parse_error_body(resp.text)
            logger.error("Non-2xx HTTP response: %s - status code: %d - %s", resp.url, resp.status_code, message)
            raise CCEAPIError(resp.status_code, message, resp.url, app_error_code)


def read_json(resp: requests.Response) -> Any:
    """Decode a response body and convert its keys to snake_case.

    An empty body decodes to an empty dict.

    Raises:
        CCEResponseError: If the body is not valid JSON (e.g. a gateway error page)
    """
    if not resp.content:
        return {}
    try:
        body = resp.json()
    except ValueError as exc:
        logger.error("Invalid JSON body from %s - status code: %d", resp.url, resp.status_code)
        raise CCEResponseError(resp.status_code, resp.url, str(exc)) from exc
    return snake_keys(body)
