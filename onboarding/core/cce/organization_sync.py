"""Add an AWS account to an onboarded organization, discovering it if needed.

The backend only accepts accounts that an organization scan has already
discovered. When the add is rejected because the account is unknown (404) a
scan is triggered; when it is rejected because a scan is already running
(400 ``SCAN_IN_PROGRESS``) no scan is triggered. Either way the
organization's ``last_successful_scan`` timestamp is polled until it moves
past the moment the workflow started waiting, and the add is tried once more.
"""
from __future__ import annotations
import enum
import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from .cancellation import CancellationToken
from .exceptions import (
    CCEAPIError,
    CCEError,
    ConfirmationError,
    OperationCanceledError,
    OperationError,
    ScanTimeoutError,
)
from .models import AddOrganizationAccountSync, AWSAccount
from .retry import RetryExecutor

logger = logging.getLogger(__name__)

SCAN_IN_PROGRESS_CODE = "SCAN_IN_PROGRESS"
OPERATION = "add_organization_account_sync"

_FRACTION = re.compile(r"\.(\d+)")


class ScanErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    SCAN_IN_PROGRESS = "scan_in_progress"
    OTHER = "other"


def classify_add_error(error: BaseException) -> ScanErrorKind:
    """Classify a failed add from its status code and application error code."""
    if not isinstance(error, CCEAPIError):
        return ScanErrorKind.OTHER
    if error.status_code == 404:
        return ScanErrorKind.NOT_FOUND
    if error.status_code == 400 and error.app_error_code == SCAN_IN_PROGRESS_CODE:
        return ScanErrorKind.SCAN_IN_PROGRESS
    return ScanErrorKind.OTHER


def parse_scan_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp (nanosecond precision allowed).

    Fractional seconds beyond microseconds are truncated. A timestamp
    without a UTC offset is rejected.

    Raises:
        ValueError: If the value is not an RFC 3339 timestamp
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrganizationAccountSync:
    """Add-with-discovery workflow for organization member accounts.

    Args:
        service: Object exposing ``add_organization_account``,
            ``get_organization``, ``scan_organization`` and ``get_account``
            (normally ``AWSService``)
        retry_executor: Wraps the final account fetch
        sleep: Blocking wait between polls when no cancel token is given
        clock: Returns the current time as an aware UTC datetime
        cancel_token: Interrupts polling and retry waits
    """

    def __init__(
        self,
        service,
        retry_executor: Optional[RetryExecutor] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.service = service
        self.retry_executor = retry_executor or RetryExecutor(cancel_token=cancel_token)
        self._sleep = sleep
        self._clock = clock
        self.cancel_token = cancel_token

    def add_account(self, request: AddOrganizationAccountSync) -> AWSAccount:
        """Add the account, scanning and waiting for discovery when required.

        Raises:
            CCEAPIError: The add failed for any other reason, or the retried
                add failed after the scan completed
            OperationError: Fetching the organization or triggering the scan failed
            ScanTimeoutError: The scan did not complete within the probe budget
            ConfirmationError: The account was added but could not be fetched
            OperationCanceledError: Cancelled while waiting
        """
        org_id = request.organization_id
        logger.info("Adding AWS account [%s] to organization [%s] (sync mode)", request.account_id, org_id)

        try:
            added = self._add(request)
        except CCEError as exc:
            kind = classify_add_error(exc)
            if kind is ScanErrorKind.OTHER:
                raise
            if kind is ScanErrorKind.NOT_FOUND:
                logger.info("Account [%s] not discovered yet, triggering organization scan", request.account_id)
            else:
                logger.info("Scan in progress for organization [%s], waiting for it to finish", org_id)

            scan_start_time = self._clock()
            if kind is ScanErrorKind.NOT_FOUND:
                self.trigger_scan(org_id)
            self.wait_for_scan(
                org_id,
                scan_start_time,
                request.scan_probe.resolved_max_retries,
                request.scan_probe.resolved_interval_seconds,
            )

            logger.info("Attempting to add account [%s] after scan completion", request.account_id)
            added = self._add(request)

        logger.info("Fetching full account details for account ID [%s]", added.id)
        try:
            return self.retry_executor.execute(
                lambda: self.service.get_account(added.id),
                description=f"get account {added.id}",
            )
        except OperationCanceledError:
            raise
        except CCEError as exc:
            raise ConfirmationError(
                f"account added with ID {added.id}, but failed to fetch details", OPERATION, added.id, exc
            ) from exc

    def _add(self, request: AddOrganizationAccountSync):
        return self.service.add_organization_account(request.organization_id, request.account_id, request.services)

    def trigger_scan(self, org_id: str) -> None:
        """Start a scan of the organization behind onboarding ID ``org_id``.

        The scan endpoint takes the native ``o-...`` identifier, so the
        organization is fetched first. A 409 from the scan endpoint means a
        scan is already running and counts as success.
        """
        try:
            organization = self.service.get_organization(org_id)
        except CCEError as exc:
            raise OperationError("failed to get organization details", OPERATION, org_id, exc) from exc

        logger.info("Triggering scan for AWS organization ID [%s]", organization.organization_id)
        try:
            self.service.scan_organization(organization.organization_id)
        except CCEAPIError as exc:
            if not exc.is_conflict:
                raise OperationError("failed to trigger organization scan", OPERATION, org_id, exc) from exc
            logger.info("Scan already in progress, will poll for completion")
        except CCEError as exc:
            raise OperationError("failed to trigger organization scan", OPERATION, org_id, exc) from exc
        else:
            logger.info("Scan triggered successfully, polling for completion")

    def wait_for_scan(self, org_id: str, scan_start_time: datetime, max_retries: int, interval: float) -> None:
        """Poll until ``last_successful_scan`` is strictly after ``scan_start_time``.

        Each attempt waits first, then fetches. Fetch and parse failures are
        logged and count as an unsuccessful attempt.

        Raises:
            ScanTimeoutError: After ``max_retries`` unsuccessful attempts
        """
        logger.info("Polling organization [%s] every %ss for up to %d attempts", org_id, interval, max_retries)
        for attempt in range(1, max_retries + 1):
            self._wait(interval)
            logger.debug("Poll attempt %d/%d for organization [%s]", attempt, max_retries, org_id)

            try:
                organization = self.service.get_organization(org_id)
            except OperationCanceledError:
                raise
            except CCEError as exc:
                logger.warning("Failed to get organization details: %s, will retry", exc)
                continue

            if not organization.last_successful_scan:
                logger.info("No successful scan recorded yet, will continue polling")
                continue
            try:
                scan_time = parse_scan_timestamp(organization.last_successful_scan)
            except ValueError as exc:
                logger.warning("Failed to parse last_successful_scan timestamp: %s, will retry", exc)
                continue

            if scan_time > scan_start_time:
                logger.info("Scan completed successfully at %s", scan_time.isoformat())
                return
            logger.info(
                "Scan not yet completed (last scan: %s, waiting since: %s)",
                scan_time.isoformat(),
                scan_start_time.isoformat(),
            )

        raise ScanTimeoutError(OPERATION, org_id, max_retries)

    def _wait(self, seconds: float) -> None:
        if self.cancel_token is not None:
            self.cancel_token.wait(seconds)
        else:
            self._sleep(seconds)
