"""Input validation helpers for onboarding requests.

Each validator returns the normalized value or raises ``CCEValidationError``
(a ``ValueError``) before any request is sent.
"""
from __future__ import annotations
import re
import uuid
from typing import Iterable, List

from onboarding.core.cce.exceptions import CCEValidationError
from onboarding.core.cce.models import SUPPORTED_SERVICES, ServiceInput

_ACCOUNT_ID = re.compile(r"^\d{12}$")
_ORGANIZATION_ID = re.compile(r"^o-[a-z0-9]{10,32}$")
_ROOT_ID = re.compile(r"^r-[0-9a-z]{4,32}$")
_ROLE_ARN = re.compile(r"^arn:aws[a-z-]*:iam::\d{12}:role/[\w+=,.@/-]+$")


def validate_account_id(account_id: str) -> str:
    """Validate an AWS account ID (12 digits).

    Raises:
        CCEValidationError: If the ID is malformed
    """
    account_id = (account_id or "").strip()
    if not _ACCOUNT_ID.match(account_id):
        raise CCEValidationError(f"Invalid AWS account ID '{account_id}': expected 12 digits")
    return account_id


def validate_organization_id(organization_id: str) -> str:
    """Validate a native AWS organization ID (``o-`` followed by 10-32 characters)."""
    organization_id = (organization_id or "").strip()
    if not _ORGANIZATION_ID.match(organization_id):
        raise CCEValidationError(f"Invalid AWS organization ID '{organization_id}'")
    return organization_id


def validate_root_id(root_id: str) -> str:
    root_id = (root_id or "").strip()
    if not _ROOT_ID.match(root_id):
        raise CCEValidationError(f"Invalid AWS organization root ID '{root_id}'")
    return root_id


def validate_role_arn(arn: str) -> str:
    arn = (arn or "").strip()
    if not _ROLE_ARN.match(arn):
        raise CCEValidationError(f"Invalid IAM role ARN '{arn}'")
    return arn


def validate_external_id(external_id: str) -> str:
    """Validate a cross-account role external ID.

    AWS accepts 2-1224 characters from ``[\\w+=,.@:/-]``.
    """
    external_id = (external_id or "").strip()
    if not 2 <= len(external_id) <= 1224:
        raise CCEValidationError("External ID must be between 2 and 1224 characters")
    if not re.fullmatch(r"[\w+=,.@:/-]+", external_id):
        raise CCEValidationError("External ID contains invalid characters")
    return external_id


def validate_uuid(value: str, field: str) -> str:
    """Validate a UUID-shaped Azure identifier.

    Args:
        value: Identifier to validate
        field: Field name for error messages (e.g., "Entra tenant ID")

    Returns:
        Lower-cased canonical UUID string
    """
    try:
        return str(uuid.UUID((value or "").strip()))
    except ValueError as exc:
        raise CCEValidationError(f"Invalid {field} '{value}': expected a UUID") from exc


def validate_entra_id(entra_id: str) -> str:
    return validate_uuid(entra_id, "Entra tenant ID")


def validate_onboarding_id(onboarding_id: str) -> str:
    onboarding_id = (onboarding_id or "").strip()
    if not onboarding_id:
        raise CCEValidationError("Onboarding ID is required")
    if "/" in onboarding_id:
        raise CCEValidationError("Onboarding ID contains invalid characters")
    return onboarding_id


def validate_service_names(names: Iterable[str]) -> List[str]:
    """Check every name against the supported services.

    Raises:
        CCEValidationError: If a name is not a supported service
    """
    names = [name.strip() for name in names]
    unknown = [name for name in names if name not in SUPPORTED_SERVICES]
    if unknown:
        raise CCEValidationError(
            f"Unsupported service(s): {', '.join(unknown)}; expected one of {', '.join(SUPPORTED_SERVICES)}"
        )
    return names


def validate_services(services: Iterable[ServiceInput]) -> List[ServiceInput]:
    """Validate a desired service list: non-empty, supported names only."""
    services = list(services)
    if not services:
        raise CCEValidationError("At least one service is required")
    validate_service_names(service.service_name for service in services)
    return services
