"""Shared plumbing for the AWS and Azure onboarding services."""
from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional

from .cancellation import CancellationToken
from .client import CCEClient, read_json
from .models import Workspace, WorkspaceFilter, WorkspacePage
from .pagination import PageStream
from .reconcile import ServiceReconciler
from .retry import RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)

WORKSPACES_PAGE_SIZE = 100


class CCEService:
    """Base class holding the client, retry policy and workspace listing.

    Args:
        client: Cloud onboarding HTTP client
        retry_policy: Policy for confirmation fetches (defaults: 3 attempts, 2s apart)
        cancel_token: Default cancellation token for blocking waits
        sleep: Blocking wait used when no cancel token is set
    """

    WORKSPACES_PATH = ""

    def __init__(
        self,
        client: CCEClient,
        retry_policy: Optional[RetryPolicy] = None,
        cancel_token: Optional[CancellationToken] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.cancel_token = cancel_token
        self._sleep = sleep

    def retry_executor(self, cancel_token: Optional[CancellationToken] = None) -> RetryExecutor:
        return RetryExecutor(self.retry_policy, sleep=self._sleep, cancel_token=cancel_token or self.cancel_token)

    def reconciler(self, resource: str, operation: str, get_raw, add_services, remove_services, get_details) -> ServiceReconciler:
        return ServiceReconciler(
            resource=resource,
            operation=operation,
            get_raw=get_raw,
            add_services=add_services,
            remove_services=remove_services,
            get_details=get_details,
            retry_executor=self.retry_executor(),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Workspaces
    # ─────────────────────────────────────────────────────────────────────────
    def workspaces(self, filters: Optional[WorkspaceFilter] = None, page: int = 0, page_size: int = 0) -> WorkspacePage:
        """Fetch a single page of workspaces.

        Args:
            filters: Optional query filters
            page: 1-based page number (0 lets the server decide)
            page_size: Page size (0 lets the server decide)
        """
        params = (filters or WorkspaceFilter()).to_params()
        if page > 0:
            params["page"] = str(page)
        if page_size > 0:
            params["page_size"] = str(page_size)
        resp = self.client.get(self.WORKSPACES_PATH, params=params)
        return WorkspacePage.from_api(read_json(resp))

    def iter_workspace_pages(self, filters: Optional[WorkspaceFilter] = None) -> PageStream[WorkspacePage]:
        """Stream every workspace page, fetched in the background 100 at a time."""
        def fetch(page_number: int) -> WorkspacePage:
            logger.info("Fetching workspaces page %d", page_number)
            return self.workspaces(filters, page=page_number, page_size=WORKSPACES_PAGE_SIZE)

        return PageStream(fetch, lambda page: page.page.is_last_page, name=f"{type(self).__name__}-workspaces")

    def list_workspaces(self, filters: Optional[WorkspaceFilter] = None) -> List[Workspace]:
        """Return workspaces from all pages.

        Raises:
            CCEError: If any page fails; pages already received are discarded
        """
        workspaces: List[Workspace] = []
        page_count = 0
        for page in self.iter_workspace_pages(filters):
            workspaces.extend(page.workspaces)
            page_count += 1
        logger.info("Retrieved %d workspaces across %d page(s)", len(workspaces), page_count)
        return workspaces
