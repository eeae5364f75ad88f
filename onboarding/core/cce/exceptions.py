"""Cloud onboarding (CCE) exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class CCEError(Exception):
    """Base exception for all cloud onboarding operations."""
    pass


class CCEValidationError(CCEError, ValueError):
    """Caller input rejected before any request was sent. Never retried."""
    pass


class CCEAPIError(CCEError):
    """HTTP error from the cloud onboarding API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        app_error_code: Application error code from the error body, if any
    """

    def __init__(self, status_code: int, message: str, endpoint: str, app_error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.app_error_code = app_error_code
        super().__init__(f"[{status_code}] {endpoint}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class CCETransportError(CCEError):
    """Request never produced an HTTP response (DNS, connect, read timeout...)."""
    pass


class CCEResponseError(CCEError):
    """A successful HTTP response carried a body that is not valid JSON.

    Attributes:
        status_code: HTTP status code of the response
        endpoint: URL that returned the body
    """

    def __init__(self, status_code: int, endpoint: str, detail: str):
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: invalid JSON response body: {detail}")


class RetryExhaustedError(CCEError):
    """Every attempt of a retried operation failed with a retryable error.

    Attributes:
        attempts: Number of attempts made
        last_error: Error raised by the final attempt
    """

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{description} failed after {attempts} attempts: {last_error}")


class OperationCanceledError(CCEError):
    """A blocking wait was interrupted by cancellation or an expired deadline."""
    pass


class OperationError(CCEError):
    """Workflow failure annotated with the operation and resource it concerns.

    Attributes:
        operation: Short operation name (e.g. "update_account")
        resource_id: Onboarding ID the operation was acting on
        cause: Underlying error, kept unmodified
    """

    def __init__(self, message: str, operation: str, resource_id: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.resource_id = resource_id
        self.cause = cause
        self.reason = message
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ServiceUpdateError(OperationError):
    """Reading or mutating the attached service set failed.

    A failure while removing services may follow a successful add; the
    message always names the step that failed.
    """
    pass


class ConfirmationError(OperationError):
    """The mutation likely succeeded but the follow-up fetch failed.

    Callers should re-query the resource instead of repeating the mutation.
    """
    pass


class ScanTimeoutError(OperationError):
    """Organization discovery scan did not complete within the probe budget."""

    def __init__(self, operation: str, resource_id: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"timeout waiting for organization scan to complete after {attempts} attempts",
            operation,
            resource_id,
        )
