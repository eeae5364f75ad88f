import pytest

from onboarding.config import settings

ENV_VARS = [
    "CCE_TOKEN",
    "CCE_TENANT_SUBDOMAIN",
    "CCE_BASE_TENANT_URL",
    "DEPLOY_ENV",
    "CCE_REQUEST_TIMEOUT",
    "CCE_MAX_REQUEST_RETRIES",
    "CCE_RETRY_DELAY_SECONDS",
    "CCE_RETRY_BACKOFF_MULTIPLIER",
    "CCE_SCAN_PROBE_MAX_RETRIES",
    "CCE_SCAN_PROBE_INTERVAL_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "SECRETS_DIR", tmp_path)
    return tmp_path


def test_defaults():
    cfg = settings.load_settings()
    assert cfg.token == ""
    assert cfg.deploy_env == "prod"
    assert cfg.request_timeout == 30
    assert cfg.max_request_retries == 3
    assert cfg.retry_delay_seconds == 2
    assert cfg.retry_backoff_multiplier == 1
    assert cfg.scan_probe_max_retries == 20
    assert cfg.scan_probe_interval_seconds == 3


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CCE_TOKEN", "env-token")
    monkeypatch.setenv("CCE_TENANT_SUBDOMAIN", "acme")
    monkeypatch.setenv("DEPLOY_ENV", "gov-prod")
    monkeypatch.setenv("CCE_SCAN_PROBE_MAX_RETRIES", "5")
    monkeypatch.setenv("CCE_SCAN_PROBE_INTERVAL_SECONDS", "0.5")
    cfg = settings.load_settings()
    assert cfg.token == "env-token"
    assert cfg.tenant_subdomain == "acme"
    assert cfg.deploy_env == "gov-prod"
    assert cfg.scan_probe_max_retries == 5
    assert cfg.scan_probe_interval_seconds == 0.5


def test_secret_file_takes_priority(monkeypatch, clean_env):
    (clean_env / "cce_token").write_text("file-token\n")
    monkeypatch.setenv("CCE_TOKEN", "env-token")
    assert settings.load_settings().token == "file-token"


def test_empty_secret_file_falls_back_to_env(monkeypatch, clean_env):
    (clean_env / "cce_token").write_text("   ")
    monkeypatch.setenv("CCE_TOKEN", "env-token")
    assert settings.load_settings().token == "env-token"


@pytest.mark.parametrize("name,value", [
    ("CCE_MAX_REQUEST_RETRIES", "three"),
    ("CCE_SCAN_PROBE_MAX_RETRIES", "1.5"),
    ("CCE_RETRY_DELAY_SECONDS", "-1"),
    ("CCE_MAX_REQUEST_RETRIES", "0"),
])
def test_invalid_numbers_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match=name):
        settings.load_settings()


def test_helpers_build_core_objects(monkeypatch):
    monkeypatch.setenv("CCE_MAX_REQUEST_RETRIES", "4")
    monkeypatch.setenv("CCE_RETRY_DELAY_SECONDS", "0.25")
    cfg = settings.load_settings()
    policy = cfg.retry_policy()
    assert (policy.max_attempts, policy.base_delay, policy.backoff_multiplier) == (4, 0.25, 1)
    probe = cfg.scan_probe()
    assert (probe.resolved_max_retries, probe.resolved_interval_seconds) == (20, 3)
