import pytest

from onboarding.core import validators
from onboarding.core.cce.exceptions import CCEValidationError
from onboarding.core.cce.models import ServiceInput


def test_account_id_valid():
    assert validators.validate_account_id(" 123456789012 ") == "123456789012"


@pytest.mark.parametrize("value", ["12345678901", "1234567890123", "12345678901a", ""])
def test_account_id_invalid(value):
    with pytest.raises(CCEValidationError):
        validators.validate_account_id(value)


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        validators.validate_account_id("bad")


def test_organization_id():
    assert validators.validate_organization_id("o-abcdefghij") == "o-abcdefghij"
    with pytest.raises(CCEValidationError):
        validators.validate_organization_id("o-short")
    with pytest.raises(CCEValidationError):
        validators.validate_organization_id("O-ABCDEFGHIJ")


def test_root_id():
    assert validators.validate_root_id("r-ab12") == "r-ab12"
    with pytest.raises(CCEValidationError):
        validators.validate_root_id("r-a")


def test_role_arn():
    arn = "arn:aws:iam::123456789012:role/CyberArkScan"
    assert validators.validate_role_arn(arn) == arn
    assert validators.validate_role_arn("arn:aws-us-gov:iam::123456789012:role/path/Scan")
    with pytest.raises(CCEValidationError):
        validators.validate_role_arn("arn:aws:iam::123:role/x")


def test_external_id():
    assert validators.validate_external_id("abc-123") == "abc-123"
    with pytest.raises(CCEValidationError):
        validators.validate_external_id("a")
    with pytest.raises(CCEValidationError):
        validators.validate_external_id("has space")


def test_entra_id_normalized():
    assert validators.validate_entra_id("A1B2C3D4-0000-4000-8000-000000000001") == "a1b2c3d4-0000-4000-8000-000000000001"
    with pytest.raises(CCEValidationError, match="Entra tenant ID"):
        validators.validate_entra_id("tenant")


def test_uuid_names_field():
    with pytest.raises(CCEValidationError, match="subscription ID"):
        validators.validate_uuid("nope", "subscription ID")


def test_onboarding_id():
    assert validators.validate_onboarding_id(" abc ") == "abc"
    with pytest.raises(CCEValidationError):
        validators.validate_onboarding_id("   ")
    with pytest.raises(CCEValidationError):
        validators.validate_onboarding_id("abc/../def")


def test_service_names():
    assert validators.validate_service_names(["dpa", "secrets_hub"]) == ["dpa", "secrets_hub"]
    with pytest.raises(CCEValidationError, match="Unsupported service"):
        validators.validate_service_names(["dpa", "pam"])


def test_services_must_not_be_empty():
    with pytest.raises(CCEValidationError, match="At least one service"):
        validators.validate_services([])
    assert validators.validate_services([ServiceInput("cds")])[0].service_name == "cds"
