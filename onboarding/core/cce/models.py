"""Typed records for cloud onboarding requests and responses.

Response records are built from snake_cased API maps with ``from_api``;
unknown keys are ignored and missing keys fall back to empty defaults.
Request records render themselves with ``to_api`` (camelCase keys, service
``resources`` maps passed through untouched).
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .serialization import camel_keys

# Onboarding types
STANDARD = "standard"
PROGRAMMATIC = "programmatic"
TERRAFORM_PROVIDER = "terraform_provider"

# Onboarding statuses
REMOVING = "Removing"
DEPLOYING_RESOURCES = "Deploying resources"
WAITING_FOR_DEPLOYMENT = "Waiting for deployment"
WAITING_FOR_CONSENT = "Waiting for consent"
PARTIALLY_ADDED = "Partially added"
FAILED_TO_ADD = "Failed to add"
SERVICE_ERROR = "Service Error"
COMPLETELY_ADDED = "Completely added"

# Supported services
DPA = "dpa"
SCA = "sca"
SECRETS_HUB = "secrets_hub"
CDS = "cds"
SUPPORTED_SERVICES = (DPA, SCA, SECRETS_HUB, CDS)

DEFAULT_SCAN_PROBE_MAX_RETRIES = 20
DEFAULT_SCAN_PROBE_INTERVAL_SECONDS = 3


def extract_service_names(raw: Any) -> List[str]:
    """Return the service names listed under a raw resource's ``services`` key.

    The documented fallback is the empty list: a non-dict payload, a missing
    ``services`` key, or a value that is not a list all yield ``[]``. Entries
    that are not strings are skipped.
    """
    if not isinstance(raw, dict):
        return []
    services = raw.get("services")
    if not isinstance(services, list):
        return []
    return [name for name in services if isinstance(name, str)]


class _APIRecord:
    """Mixin building a dataclass from a snake_cased API map."""

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class ServiceInput:
    """A service to onboard together with its service-specific resources."""
    service_name: str
    resources: Dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> Dict[str, Any]:
        return {"serviceName": self.service_name, "resources": dict(self.resources)}


def services_to_api(services: List[ServiceInput]) -> List[Dict[str, Any]]:
    return [service.to_api() for service in services]


@dataclass
class ScanProbeConfig:
    """How long to wait for an organization discovery scan.

    ``None`` fields fall back to the defaults (20 attempts, 3 seconds apart).
    """
    max_retries: Optional[int] = None
    interval_seconds: Optional[float] = None

    @property
    def resolved_max_retries(self) -> int:
        if self.max_retries is not None:
            return self.max_retries
        return DEFAULT_SCAN_PROBE_MAX_RETRIES

    @property
    def resolved_interval_seconds(self) -> float:
        if self.interval_seconds is not None:
            return self.interval_seconds
        return DEFAULT_SCAN_PROBE_INTERVAL_SECONDS


# ─────────────────────────────────────────────────────────────────────────────
# Response records
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class AddedResource(_APIRecord):
    """Body of an add call: the onboarding ID of the new resource."""
    id: str = ""


@dataclass
class OnboardedService(_APIRecord):
    name: str = ""
    status: str = ""
    errors: List[str] = field(default_factory=list)
    properties: Optional[List[Dict[str, Any]]] = None
    suspended: Optional[bool] = None


@dataclass
class AWSAccount(_APIRecord):
    id: str = ""
    account_id: str = ""
    onboarding_type: str = ""
    region: str = ""
    services: List[str] = field(default_factory=list)
    display_name: str = ""
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    status: str = ""
    organization_id: str = ""
    organization_name: str = ""
    duplicated_services: Optional[List[str]] = None

    @classmethod
    def from_api(cls, data):
        record = super().from_api(data)
        record.services = extract_service_names(data)
        return record


@dataclass
class AWSOrganization(_APIRecord):
    """An onboarded AWS organization.

    ``id`` is the platform onboarding ID; ``organization_id`` is the native
    AWS identifier (``o-...``). The two are never interchangeable.
    """
    id: str = ""
    organization_root_id: str = ""
    management_account_id: str = ""
    organization_id: str = ""
    onboarding_type: str = ""
    region: str = ""
    display_name: str = ""
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    status: str = ""
    last_successful_scan: str = ""
    services: List[str] = field(default_factory=list)
    services_data: List[OnboardedService] = field(default_factory=list)

    @classmethod
    def from_api(cls, data):
        record = super().from_api(data)
        record.services = extract_service_names(data)
        record.services_data = [
            OnboardedService.from_api(item)
            for item in (data or {}).get("services_data") or []
            if isinstance(item, dict)
        ]
        record.last_successful_scan = record.last_successful_scan or ""
        return record


@dataclass
class AzureEntra(_APIRecord):
    id: str = ""
    onboarding_type: str = ""
    region: str = ""
    display_name: str = ""
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    status: str = ""
    consent_data: List[Dict[str, Any]] = field(default_factory=list)
    entra_id: str = ""
    services: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data):
        record = super().from_api(data)
        record.services = extract_service_names(data)
        return record


@dataclass
class AzureManagementGroup(AzureEntra):
    management_group_id: str = ""


@dataclass
class AzureSubscription(AzureEntra):
    subscription_id: str = ""
    entra_name: str = ""
    management_group_id: str = ""
    management_group_name: str = ""


@dataclass
class ServiceDetails(_APIRecord):
    name: str = ""
    version: str = ""
    service_status: str = ""
    error_details: str = ""
    services_errors: List[str] = field(default_factory=list)
    suspended: bool = False
    resources: Dict[str, str] = field(default_factory=dict)


@dataclass
class WorkspaceData(_APIRecord):
    id: str = ""
    platform_id: str = ""
    display_name: str = ""
    type: str = ""
    platform_type: str = ""
    onboarding_type: str = ""
    status: str = ""
    services: List[ServiceDetails] = field(default_factory=list)
    organization_id: str = ""
    organization_name: str = ""

    @classmethod
    def from_api(cls, data):
        record = super().from_api(data)
        record.services = [
            ServiceDetails.from_api(item) for item in (data or {}).get("services") or [] if isinstance(item, dict)
        ]
        return record


@dataclass
class Workspace(_APIRecord):
    key: str = ""
    data: WorkspaceData = field(default_factory=WorkspaceData)
    leaf: bool = False
    path: str = ""
    parent_id: str = ""

    @classmethod
    def from_api(cls, data):
        record = super().from_api(data)
        record.data = WorkspaceData.from_api((data or {}).get("data"))
        return record


@dataclass
class PageInfo(_APIRecord):
    page_number: int = 1
    page_size: int = 0
    is_last_page: bool = True
    total_records: int = 0


@dataclass
class WorkspacePage(_APIRecord):
    workspaces: List[Workspace] = field(default_factory=list)
    page: PageInfo = field(default_factory=PageInfo)

    @classmethod
    def from_api(cls, data):
        data = data or {}
        return cls(
            workspaces=[Workspace.from_api(item) for item in data.get("workspaces") or []],
            page=PageInfo.from_api(data.get("page")),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Request records
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class WorkspaceFilter:
    """Query filters for the workspaces listing."""
    include_empty_workspaces: bool = False
    include_suspended: bool = False
    parent_id: str = ""
    services: List[str] = field(default_factory=list)
    workspace_status: str = ""
    workspace_type: str = ""

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.include_empty_workspaces:
            params["include_empty_workspaces"] = "true"
        if self.include_suspended:
            params["include_suspended"] = "true"
        if self.parent_id:
            params["parent_id"] = self.parent_id
        if self.workspace_status:
            params["workspace_status"] = self.workspace_status
        if self.workspace_type:
            params["workspace_type"] = self.workspace_type
        if self.services:
            params["services"] = [name.strip() for name in self.services]
        return params


@dataclass
class AddAccount:
    account_id: str
    services: List[ServiceInput]
    account_display_name: str = ""
    deployment_region: str = ""
    onboarding_type: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"accountId": self.account_id, "services": services_to_api(self.services)}
        if self.account_display_name:
            body["accountDisplayName"] = self.account_display_name
        if self.deployment_region:
            body["deploymentRegion"] = self.deployment_region
        body["onboardingType"] = self.onboarding_type or TERRAFORM_PROVIDER
        return body


@dataclass
class AddOrganization:
    organization_root_id: str
    management_account_id: str
    organization_id: str
    services: List[ServiceInput]
    scan_organization_role_arn: str
    cross_account_role_external_id: str
    organization_display_name: str = ""
    deployment_region: str = ""

    def to_api(self) -> Dict[str, Any]:
        body = camel_keys({
            "organization_root_id": self.organization_root_id,
            "management_account_id": self.management_account_id,
            "organization_id": self.organization_id,
            "scan_organization_role_arn": self.scan_organization_role_arn,
            "cross_account_role_external_id": self.cross_account_role_external_id,
        })
        body["services"] = services_to_api(self.services)
        if self.organization_display_name:
            body["organizationDisplayName"] = self.organization_display_name
        if self.deployment_region:
            body["deploymentRegion"] = self.deployment_region
        body["onboardingType"] = TERRAFORM_PROVIDER
        return body


@dataclass
class AddOrganizationAccountSync:
    """Add an account to an organization, discovering it first if needed."""
    organization_id: str
    account_id: str
    services: List[ServiceInput]
    scan_probe: ScanProbeConfig = field(default_factory=ScanProbeConfig)


@dataclass
class AddEntra:
    entra_id: str
    services: List[ServiceInput]
    cce_resources: Dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> Dict[str, Any]:
        return {
            "entraId": self.entra_id,
            "services": services_to_api(self.services),
            "cceResources": dict(self.cce_resources),
        }


@dataclass
class AddManagementGroup:
    entra_id: str
    management_group_id: str
    services: List[ServiceInput]
    cce_resources: Dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> Dict[str, Any]:
        return {
            "entraId": self.entra_id,
            "id": self.management_group_id,
            "services": services_to_api(self.services),
            "cceResources": dict(self.cce_resources),
        }


@dataclass
class AddSubscription:
    entra_id: str
    entra_tenant_name: str
    subscription_id: str
    subscription_name: str
    services: List[ServiceInput]

    def to_api(self) -> Dict[str, Any]:
        return {
            "entraId": self.entra_id,
            "entraTenantName": self.entra_tenant_name,
            "id": self.subscription_id,
            "subscriptionName": self.subscription_name,
            "services": services_to_api(self.services),
        }
