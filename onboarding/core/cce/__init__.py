"""Cloud onboarding (CCE) API client library.

Architecture:
- client.py: HTTP client with service URL resolution and centralized error handling
- aws.py: AWS account / organization operations
- azure.py: Azure Entra tenant / management group / subscription operations
- reconcile.py: Service-set diff and the update workflow shared by every resource
- organization_sync.py: Add an organization account, scanning for it when needed
- retry.py: Bounded retry with a retryability predicate
- pagination.py: Background page producer for list endpoints
- exceptions.py: Typed exceptions for error handling

Usage:
    from onboarding.core.cce import CCEClient, AWSService, AddOrganizationAccountSync, ServiceInput

    service = AWSService(CCEClient(token))
    account = service.add_organization_account_sync(
        AddOrganizationAccountSync("org-onboarding-id", "123456789012", [ServiceInput("dpa")])
    )
"""
from .aws import AWSService
from .azure import AzureService
from .cancellation import CancellationToken
from .client import CCEClient, REQUEST_TIMEOUT, resolve_service_url
from .exceptions import (
    CCEError,
    CCEValidationError,
    CCEAPIError,
    CCETransportError,
    CCEResponseError,
    RetryExhaustedError,
    OperationCanceledError,
    OperationError,
    ServiceUpdateError,
    ConfirmationError,
    ScanTimeoutError,
)
from .models import (
    AddAccount,
    AddEntra,
    AddManagementGroup,
    AddOrganization,
    AddOrganizationAccountSync,
    AddSubscription,
    AWSAccount,
    AWSOrganization,
    AzureEntra,
    AzureManagementGroup,
    AzureSubscription,
    ScanProbeConfig,
    ServiceInput,
    Workspace,
    WorkspaceFilter,
    WorkspacePage,
)
from .organization_sync import OrganizationAccountSync, ScanErrorKind, classify_add_error
from .reconcile import ReconciliationPlan, ServiceReconciler, diff_services
from .retry import RetryExecutor, RetryPolicy, is_retryable_error

__all__ = [
    # Client
    "CCEClient",
    "REQUEST_TIMEOUT",
    "resolve_service_url",
    # Services
    "AWSService",
    "AzureService",
    # Workflows
    "CancellationToken",
    "OrganizationAccountSync",
    "ScanErrorKind",
    "classify_add_error",
    "ReconciliationPlan",
    "ServiceReconciler",
    "diff_services",
    "RetryExecutor",
    "RetryPolicy",
    "is_retryable_error",
    # Models
    "AddAccount",
    "AddEntra",
    "AddManagementGroup",
    "AddOrganization",
    "AddOrganizationAccountSync",
    "AddSubscription",
    "AWSAccount",
    "AWSOrganization",
    "AzureEntra",
    "AzureManagementGroup",
    "AzureSubscription",
    "ScanProbeConfig",
    "ServiceInput",
    "Workspace",
    "WorkspaceFilter",
    "WorkspacePage",
    # Exceptions
    "CCEError",
    "CCEValidationError",
    "CCEAPIError",
    "CCETransportError",
    "CCEResponseError",
    "RetryExhaustedError",
    "OperationCanceledError",
    "OperationError",
    "ServiceUpdateError",
    "ConfirmationError",
    "ScanTimeoutError",
]
