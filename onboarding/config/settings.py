"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from onboarding.core.cce.client import DEFAULT_ENV, REQUEST_TIMEOUT
from onboarding.core.cce.models import (
    DEFAULT_SCAN_PROBE_INTERVAL_SECONDS,
    DEFAULT_SCAN_PROBE_MAX_RETRIES,
    ScanProbeConfig,
)
from onboarding.core.cce.retry import (
    DEFAULT_MAX_REQUEST_RETRIES,
    DEFAULT_RETRY_BACKOFF_MULTIPLIER,
    DEFAULT_RETRY_DELAY_SECONDS,
    RetryPolicy,
)

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
        except OSError as exc:
            logger.warning("Failed to read %s: %s", secret_file, exc)
        else:
            if secret_value:
                logger.debug("Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug("Loaded %s from environment", env_var)
            return secret_value

    return None


def _get_number(var_name: str, default, cast=int):
    """Read a numeric environment variable.

    Raises:
        RuntimeError: If the variable is set but not a valid number
    """
    value = os.environ.get(var_name, "").strip()
    if not value:
        return default
    try:
        number = cast(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a {cast.__name__}, got {value!r}") from None
    if number < 0:
        raise RuntimeError(f"Environment variable {var_name} must not be negative, got {value!r}")
    return number


@dataclass
class OnboardingConfig:
    """Cloud onboarding client configuration container."""
    # Authentication
    token: str = ""

    # Service URL resolution
    tenant_subdomain: str = ""
    base_tenant_url: str = ""
    deploy_env: str = DEFAULT_ENV

    # HTTP
    request_timeout: float = REQUEST_TIMEOUT

    # Confirmation fetch retries
    max_request_retries: int = DEFAULT_MAX_REQUEST_RETRIES
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    retry_backoff_multiplier: float = DEFAULT_RETRY_BACKOFF_MULTIPLIER

    # Organization scan polling
    scan_probe_max_retries: int = DEFAULT_SCAN_PROBE_MAX_RETRIES
    scan_probe_interval_seconds: float = DEFAULT_SCAN_PROBE_INTERVAL_SECONDS

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_request_retries,
            base_delay=self.retry_delay_seconds,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    def scan_probe(self) -> ScanProbeConfig:
        return ScanProbeConfig(
            max_retries=self.scan_probe_max_retries,
            interval_seconds=self.scan_probe_interval_seconds,
        )


def load_settings() -> OnboardingConfig:
    """Load client settings from environment and /run/secrets.

    The token is optional here; callers that need one check ``config.token``.

    Raises:
        RuntimeError: If a numeric variable is malformed
    """
    max_request_retries = _get_number("CCE_MAX_REQUEST_RETRIES", DEFAULT_MAX_REQUEST_RETRIES)
    if max_request_retries < 1:
        raise RuntimeError("Environment variable CCE_MAX_REQUEST_RETRIES must be at least 1")

    return OnboardingConfig(
        token=_load_secret_from_file("cce_token", "CCE_TOKEN") or "",
        tenant_subdomain=os.environ.get("CCE_TENANT_SUBDOMAIN", "").strip(),
        base_tenant_url=os.environ.get("CCE_BASE_TENANT_URL", "").strip(),
        deploy_env=os.environ.get("DEPLOY_ENV", "").strip() or DEFAULT_ENV,
        request_timeout=_get_number("CCE_REQUEST_TIMEOUT", REQUEST_TIMEOUT, float),
        max_request_retries=max_request_retries,
        retry_delay_seconds=_get_number("CCE_RETRY_DELAY_SECONDS", DEFAULT_RETRY_DELAY_SECONDS, float),
        retry_backoff_multiplier=_get_number("CCE_RETRY_BACKOFF_MULTIPLIER", DEFAULT_RETRY_BACKOFF_MULTIPLIER, float),
        scan_probe_max_retries=_get_number("CCE_SCAN_PROBE_MAX_RETRIES", DEFAULT_SCAN_PROBE_MAX_RETRIES),
        scan_probe_interval_seconds=_get_number(
            "CCE_SCAN_PROBE_INTERVAL_SECONDS", DEFAULT_SCAN_PROBE_INTERVAL_SECONDS, float
        ),
    )
