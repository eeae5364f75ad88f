"""Azure manual onboarding operations (Entra tenants, management groups, subscriptions).

All three resource kinds are added through the same endpoint, told apart by
``deploymentType``, and share one services endpoint keyed by onboarding ID.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from onboarding.core import validators

from .base import CCEService
from .client import read_json
from .exceptions import CCEValidationError
from .models import (
    TERRAFORM_PROVIDER,
    AddedResource,
    AddEntra,
    AddManagementGroup,
    AddSubscription,
    AzureEntra,
    AzureManagementGroup,
    AzureSubscription,
    ServiceInput,
    services_to_api,
)

logger = logging.getLogger(__name__)

PATH_WORKSPACES = "/api/azure/workspaces"
PATH_IDENTITY_PARAMS = "/api/azure/identity-params"
PATH_MANUAL = "/api/azure/manual"
PATH_MANUAL_ID = "/api/azure/manual/{id}"
PATH_MANUAL_ENTRA = "/api/azure/manual/entra/{id}"
PATH_MANUAL_MGMT_GROUP = "/api/azure/manual/mgmtgroup/{id}"
PATH_MANUAL_SUBSCRIPTION = "/api/azure/manual/subscription/{id}"
PATH_MANUAL_SERVICES = "/api/azure/manual/{id}/services"

DEPLOYMENT_ORGANIZATION = "organization"
DEPLOYMENT_FOLDER = "folder"
DEPLOYMENT_STANDALONE = "standalone"


class AzureService(CCEService):
    """Service for onboarding Azure resources."""

    WORKSPACES_PATH = PATH_WORKSPACES

    def _add(self, body: Dict[str, Any], deployment_type: str) -> AddedResource:
        body = dict(body, deploymentType=deployment_type, onboardingType=TERRAFORM_PROVIDER)
        resp = self.client.post(PATH_MANUAL, json=body)
        return AddedResource.from_api(read_json(resp))

    def _get_raw(self, path: str, resource_id: str) -> Dict[str, Any]:
        return read_json(self.client.get(path.format(id=validators.validate_onboarding_id(resource_id))))

    def _reconciler(self, resource: str, operation: str, get_raw, get_details):
        return self.reconciler(
            resource,
            operation,
            get_raw=get_raw,
            add_services=self.add_manual_services,
            remove_services=self.delete_manual_services,
            get_details=get_details,
        )

    def _delete(self, resource_id: str) -> None:
        self.client.delete(PATH_MANUAL_ID.format(id=validators.validate_onboarding_id(resource_id)))

    # ─────────────────────────────────────────────────────────────────────────
    # Shared services endpoint
    # ─────────────────────────────────────────────────────────────────────────
    def add_manual_services(self, resource_id: str, services: List[ServiceInput]) -> None:
        logger.info("Adding services %s to Azure resource [%s]", [s.service_name for s in services], resource_id)
        self.client.post(PATH_MANUAL_SERVICES.format(id=resource_id), json={"services": services_to_api(services)})

    def delete_manual_services(self, resource_id: str, service_names: List[str]) -> None:
        logger.info("Deleting services %s from Azure resource [%s]", service_names, resource_id)
        self.client.delete(PATH_MANUAL_SERVICES.format(id=resource_id), params={"services_names": list(service_names)})

    # ─────────────────────────────────────────────────────────────────────────
    # Entra tenants
    # ─────────────────────────────────────────────────────────────────────────
    def add_entra(self, request: AddEntra) -> AzureEntra:
        """Onboard an Entra tenant and return its full details.

        Raises:
            CCEValidationError: If the Entra ID or services are invalid
            CCEAPIError: If the add call fails
            ConfirmationError: If the tenant was added but could not be fetched
        """
        request.entra_id = validators.validate_entra_id(request.entra_id)
        validators.validate_services(request.services)
        logger.info("Adding Azure Entra tenant [%s]", request.entra_id)
        added = self._add(request.to_api(), DEPLOYMENT_ORGANIZATION)
        return self._entra_reconciler("add_entra").confirm(added.id, "created")

    def get_entra_raw(self, entra_id: str) -> Dict[str, Any]:
        return self._get_raw(PATH_MANUAL_ENTRA, entra_id)

    def get_entra(self, entra_id: str) -> AzureEntra:
        return AzureEntra.from_api(self.get_entra_raw(entra_id))

    def update_entra(self, entra_id: str, services: List[ServiceInput]) -> AzureEntra:
        entra_id = validators.validate_onboarding_id(entra_id)
        validators.validate_services(services)
        return self._entra_reconciler("update_entra").reconcile(entra_id, services)

    def delete_entra(self, entra_id: str) -> None:
        logger.info("Deleting Azure Entra tenant [%s]", entra_id)
        self._delete(entra_id)

    def _entra_reconciler(self, operation: str):
        return self._reconciler("Entra tenant", operation, self.get_entra_raw, self.get_entra)

    # ─────────────────────────────────────────────────────────────────────────
    # Management groups
    # ─────────────────────────────────────────────────────────────────────────
    def add_management_group(self, request: AddManagementGroup) -> AzureManagementGroup:
        """Onboard a management group and return its full details."""
        request.entra_id = validators.validate_entra_id(request.entra_id)
        if not request.management_group_id.strip():
            raise CCEValidationError("Management group ID is required")
        validators.validate_services(request.services)
        logger.info("Adding Azure management group [%s]", request.management_group_id)
        added = self._add(request.to_api(), DEPLOYMENT_FOLDER)
        return self._management_group_reconciler("add_management_group").confirm(added.id, "created")

    def get_management_group_raw(self, group_id: str) -> Dict[str, Any]:
        return self._get_raw(PATH_MANUAL_MGMT_GROUP, group_id)

    def get_management_group(self, group_id: str) -> AzureManagementGroup:
        return AzureManagementGroup.from_api(self.get_management_group_raw(group_id))

    def update_management_group(self, group_id: str, services: List[ServiceInput]) -> AzureManagementGroup:
        group_id = validators.validate_onboarding_id(group_id)
        validators.validate_services(services)
        return self._management_group_reconciler("update_management_group").reconcile(group_id, services)

    def delete_management_group(self, group_id: str) -> None:
        logger.info("Deleting Azure management group [%s]", group_id)
        self._delete(group_id)

    def _management_group_reconciler(self, operation: str):
        return self._reconciler(
            "management group", operation, self.get_management_group_raw, self.get_management_group
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Subscriptions
    # ─────────────────────────────────────────────────────────────────────────
    def add_subscription(self, request: AddSubscription) -> AzureSubscription:
        """Onboard a subscription and return its full details."""
        request.entra_id = validators.validate_entra_id(request.entra_id)
        request.subscription_id = validators.validate_uuid(request.subscription_id, "subscription ID")
        validators.validate_services(request.services)
        logger.info("Adding Azure subscription [%s]", request.subscription_id)
        added = self._add(request.to_api(), DEPLOYMENT_STANDALONE)
        return self._subscription_reconciler("add_subscription").confirm(added.id, "created")

    def get_subscription_raw(self, subscription_id: str) -> Dict[str, Any]:
        return self._get_raw(PATH_MANUAL_SUBSCRIPTION, subscription_id)

    def get_subscription(self, subscription_id: str) -> AzureSubscription:
        return AzureSubscription.from_api(self.get_subscription_raw(subscription_id))

    def update_subscription(self, subscription_id: str, services: List[ServiceInput]) -> AzureSubscription:
        subscription_id = validators.validate_onboarding_id(subscription_id)
        validators.validate_services(services)
        return self._subscription_reconciler("update_subscription").reconcile(subscription_id, services)

    def delete_subscription(self, subscription_id: str) -> None:
        logger.info("Deleting Azure subscription [%s]", subscription_id)
        self._delete(subscription_id)

    def _subscription_reconciler(self, operation: str):
        return self._reconciler("subscription", operation, self.get_subscription_raw, self.get_subscription)

    # ─────────────────────────────────────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────────────────────────────────────
    def identity_params(self) -> Dict[str, Dict[str, Any]]:
        """Return workload federation identity parameters keyed by service name."""
        body = read_json(self.client.get(PATH_IDENTITY_PARAMS))
        return body.get("identity_params") or {}
