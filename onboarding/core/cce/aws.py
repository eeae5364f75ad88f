"""AWS account and organization onboarding operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from onboarding.core import validators

from .base import CCEService
from .cancellation import CancellationToken
from .client import read_json
from .models import (
    AddAccount,
    AddedResource,
    AddOrganization,
    AddOrganizationAccountSync,
    AWSAccount,
    AWSOrganization,
    ServiceInput,
    services_to_api,
)
from .organization_sync import OrganizationAccountSync

logger = logging.getLogger(__name__)

PATH_WORKSPACES = "/api/aws/workspaces"
PATH_ACCOUNT = "/api/aws/programmatic/account"
PATH_ACCOUNT_ID = "/api/aws/programmatic/account/{id}"
PATH_ACCOUNT_SERVICES = "/api/aws/programmatic/account/{id}/services"
PATH_ORGANIZATION = "/api/aws/programmatic/organization"
PATH_ORGANIZATION_ID = "/api/aws/programmatic/organization/{id}"
PATH_ORGANIZATION_SERVICES = "/api/aws/programmatic/organization/{id}/services"
PATH_ORGANIZATION_ACCOUNT = "/api/aws/programmatic/organization/{id}/account"
PATH_ORGANIZATIONS_SCAN = "/api/aws/organizations/scan"
PATH_TENANT_SERVICE_DETAILS = "/api/aws/tenant/service-details"


class AWSService(CCEService):
    """Service for onboarding AWS accounts and organizations.

    Usage:
        service = AWSService(CCEClient(token))
        account = service.update_account("abc123", [ServiceInput("dpa")])
    """

    WORKSPACES_PATH = PATH_WORKSPACES

    # ─────────────────────────────────────────────────────────────────────────
    # Accounts
    # ─────────────────────────────────────────────────────────────────────────
    def add_account(self, request: AddAccount) -> AWSAccount:
        """Onboard a standalone AWS account and return its full details.

        Raises:
            CCEValidationError: If the account ID or services are invalid
            CCEAPIError: If the add call fails
            ConfirmationError: If the account was added but could not be fetched
        """
        validators.validate_account_id(request.account_id)
        validators.validate_services(request.services)
        logger.info("Adding AWS account [%s]", request.account_id)
        resp = self.client.post(PATH_ACCOUNT, json=request.to_api())
        added = AddedResource.from_api(read_json(resp))
        return self._account_reconciler("add_account").confirm(added.id, "created")

    def get_account_raw(self, account_id: str) -> Dict[str, Any]:
        resp = self.client.get(PATH_ACCOUNT_ID.format(id=validators.validate_onboarding_id(account_id)))
        return read_json(resp)

    def get_account(self, account_id: str) -> AWSAccount:
        """Get an onboarded account by onboarding ID."""
        return AWSAccount.from_api(self.get_account_raw(account_id))

    def update_account(self, account_id: str, services: List[ServiceInput]) -> AWSAccount:
        """Reconcile the account's services with ``services``.

        Raises:
            ServiceUpdateError: Reading, adding or removing services failed
            ConfirmationError: Services were updated but the account could not be fetched
        """
        account_id = validators.validate_onboarding_id(account_id)
        validators.validate_services(services)
        return self._account_reconciler("update_account").reconcile(account_id, services)

    def delete_account(self, account_id: str) -> None:
        logger.info("Deleting AWS account [%s]", account_id)
        self.client.delete(PATH_ACCOUNT_ID.format(id=validators.validate_onboarding_id(account_id)))

    def add_account_services(self, account_id: str, services: List[ServiceInput]) -> None:
        logger.info("Adding services %s to AWS account [%s]", [s.service_name for s in services], account_id)
        self.client.post(PATH_ACCOUNT_SERVICES.format(id=account_id), json={"services": services_to_api(services)})

    def delete_account_services(self, account_id: str, service_names: List[str]) -> None:
        logger.info("Deleting services %s from AWS account [%s]", service_names, account_id)
        self.client.delete(PATH_ACCOUNT_SERVICES.format(id=account_id), params={"services_names": list(service_names)})

    def _account_reconciler(self, operation: str):
        return self.reconciler(
            "account",
            operation,
            get_raw=self.get_account_raw,
            add_services=self.add_account_services,
            remove_services=self.delete_account_services,
            get_details=self.get_account,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Organizations
    # ─────────────────────────────────────────────────────────────────────────
    def add_organization(self, request: AddOrganization) -> AWSOrganization:
        """Onboard an AWS organization and return its full details."""
        validators.validate_root_id(request.organization_root_id)
        validators.validate_account_id(request.management_account_id)
        validators.validate_organization_id(request.organization_id)
        validators.validate_role_arn(request.scan_organization_role_arn)
        validators.validate_external_id(request.cross_account_role_external_id)
        validators.validate_services(request.services)
        logger.info("Adding AWS organization with management account ID [%s]", request.management_account_id)
        resp = self.client.post(PATH_ORGANIZATION, json=request.to_api())
        added = AddedResource.from_api(read_json(resp))
        return self._organization_reconciler("add_organization").confirm(added.id, "created")

    def get_organization_raw(self, organization_id: str) -> Dict[str, Any]:
        resp = self.client.get(PATH_ORGANIZATION_ID.format(id=validators.validate_onboarding_id(organization_id)))
        return read_json(resp)

    def get_organization(self, organization_id: str) -> AWSOrganization:
        """Get an onboarded organization by onboarding ID.

        The record includes the service names, per-service status data and
        ``last_successful_scan``.
        """
        return AWSOrganization.from_api(self.get_organization_raw(organization_id))

    def update_organization(self, organization_id: str, services: List[ServiceInput]) -> AWSOrganization:
        """Reconcile the organization's services with ``services``."""
        organization_id = validators.validate_onboarding_id(organization_id)
        validators.validate_services(services)
        return self._organization_reconciler("update_organization").reconcile(organization_id, services)

    def delete_organization(self, organization_id: str) -> None:
        logger.info("Deleting AWS organization [%s]", organization_id)
        self.client.delete(PATH_ORGANIZATION_ID.format(id=validators.validate_onboarding_id(organization_id)))

    def add_organization_services(self, organization_id: str, services: List[ServiceInput]) -> None:
        logger.info("Adding services %s to AWS organization [%s]", [s.service_name for s in services], organization_id)
        self.client.post(
            PATH_ORGANIZATION_SERVICES.format(id=organization_id), json={"services": services_to_api(services)}
        )

    def delete_organization_services(self, organization_id: str, service_names: List[str]) -> None:
        logger.info("Deleting services %s from AWS organization [%s]", service_names, organization_id)
        self.client.delete(
            PATH_ORGANIZATION_SERVICES.format(id=organization_id), params={"services_names": list(service_names)}
        )

    def _organization_reconciler(self, operation: str):
        return self.reconciler(
            "organization",
            operation,
            get_raw=self.get_organization_raw,
            add_services=self.add_organization_services,
            remove_services=self.delete_organization_services,
            get_details=self.get_organization,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Organization accounts and discovery
    # ─────────────────────────────────────────────────────────────────────────
    def add_organization_account(self, organization_id: str, account_id: str, services: List[ServiceInput]) -> AddedResource:
        """Add a discovered account to an organization (single attempt).

        Raises:
            CCEAPIError: 404 if the account is not yet discovered, 400 with
                ``SCAN_IN_PROGRESS`` while a scan runs
        """
        logger.info("Adding AWS account [%s] to organization [%s]", account_id, organization_id)
        body = {"accountId": account_id, "services": services_to_api(services)}
        resp = self.client.post(PATH_ORGANIZATION_ACCOUNT.format(id=organization_id), json=body)
        return AddedResource.from_api(read_json(resp))

    def add_organization_account_sync(
        self,
        request: AddOrganizationAccountSync,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AWSAccount:
        """Add an account to an organization, scanning for it first if needed.

        See ``OrganizationAccountSync`` for the workflow.
        """
        validators.validate_onboarding_id(request.organization_id)
        validators.validate_account_id(request.account_id)
        validators.validate_services(request.services)
        token = cancel_token or self.cancel_token
        sync = OrganizationAccountSync(
            self,
            retry_executor=self.retry_executor(token),
            sleep=self._sleep,
            cancel_token=token,
        )
        return sync.add_account(request)

    def scan_organization(self, organization_id: str = "") -> None:
        """Trigger a discovery scan.

        Args:
            organization_id: Native AWS organization ID (``o-...``); empty scans all
        """
        logger.info("Triggering AWS organization discovery scan [%s]", organization_id or "all")
        body = {"organizationId": organization_id} if organization_id else {}
        self.client.post(PATH_ORGANIZATIONS_SCAN, json=body)

    def tenant_service_details(self) -> Dict[str, Any]:
        """Return the tenant-level service details map."""
        return read_json(self.client.get(PATH_TENANT_SERVICE_DETAILS))
