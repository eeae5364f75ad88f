"""Service-set reconciliation shared by every update operation.

An update fetches the resource's current service names, computes the set
difference against the desired services, adds the missing ones in a single
batch, removes the surplus ones in a single batch, and finally re-fetches the
resource. The two mutating calls are not transactional: a failed removal after
a successful add leaves the add in place.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .exceptions import CCEError, ConfirmationError, OperationCanceledError, ServiceUpdateError
from .models import ServiceInput, extract_service_names
from .retry import RetryExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationPlan:
    """Services to attach and detach so current matches desired."""
    to_add: Tuple[ServiceInput, ...] = ()
    to_remove: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff_services(current_service_names: Iterable[str], desired_services: Iterable[ServiceInput]) -> ReconciliationPlan:
    """Compute the add/remove plan between current names and desired services.

    Desired entries sharing a name collapse with the last one winning;
    duplicate current names collapse to one. Nothing is compared beyond the
    service name, so a service whose resources changed is left alone.
    """
    desired: Dict[str, ServiceInput] = {}
    for service in desired_services:
        desired[service.service_name] = service
    current = dict.fromkeys(current_service_names)

    to_add = tuple(service for name, service in desired.items() if name not in current)
    to_remove = tuple(name for name in current if name not in desired)
    return ReconciliationPlan(to_add=to_add, to_remove=to_remove)


class ServiceReconciler:
    """Bring a resource's attached services in line with a desired list.

    The collaborators are plain callables so the same workflow serves AWS
    accounts, AWS organizations and the three Azure resource kinds.

    Args:
        resource: Human label used in messages ("account", "Entra tenant"...)
        operation: Operation name recorded on raised errors
        get_raw: ``resource_id -> dict`` returning the snake_cased resource map
        add_services: ``(resource_id, [ServiceInput]) -> None``
        remove_services: ``(resource_id, [name]) -> None``
        get_details: ``resource_id -> record`` used for confirmation
        retry_executor: Wraps the confirmation fetch
    """

    def __init__(
        self,
        resource: str,
        operation: str,
        get_raw: Callable[[str], Any],
        add_services: Callable[[str, List[ServiceInput]], None],
        remove_services: Callable[[str, List[str]], None],
        get_details: Callable[[str], Any],
        retry_executor: Optional[RetryExecutor] = None,
    ):
        self.resource = resource
        self.operation = operation
        self._get_raw = get_raw
        self._add_services = add_services
        self._remove_services = remove_services
        self._get_details = get_details
        self.retry_executor = retry_executor or RetryExecutor()

    def reconcile(self, resource_id: str, desired_services: Sequence[ServiceInput]):
        """Reconcile and return the freshly fetched resource.

        Raises:
            ServiceUpdateError: Reading current state, adding or removing failed
            ConfirmationError: Mutations went through but the re-fetch failed
            OperationCanceledError: Cancelled while waiting between retries
        """
        logger.info("Updating %s [%s]", self.resource, resource_id)
        try:
            raw = self._get_raw(resource_id)
        except CCEError as exc:
            raise ServiceUpdateError(
                f"failed to get current {self.resource} details", self.operation, resource_id, exc
            ) from exc

        current = extract_service_names(raw)
        plan = diff_services(current, desired_services)
        logger.info(
            "%s [%s] services: current=%s add=%s remove=%s",
            self.resource,
            resource_id,
            current,
            [service.service_name for service in plan.to_add],
            list(plan.to_remove),
        )

        if plan.to_add:
            try:
                self._add_services(resource_id, list(plan.to_add))
            except CCEError as exc:
                raise ServiceUpdateError("failed to add services", self.operation, resource_id, exc) from exc

        if plan.to_remove:
            try:
                self._remove_services(resource_id, list(plan.to_remove))
            except CCEError as exc:
                raise ServiceUpdateError("failed to remove services", self.operation, resource_id, exc) from exc

        return self.confirm(resource_id, "updated")

    def confirm(self, resource_id: str, action: str):
        """Fetch the resource after a mutation, retrying transient failures."""
        try:
            return self.retry_executor.execute(
                lambda: self._get_details(resource_id),
                description=f"get {self.resource} {resource_id}",
            )
        except OperationCanceledError:
            raise
        except CCEError as exc:
            raise ConfirmationError(
                f"{self.resource} {action} with ID {resource_id}, but failed to fetch details",
                self.operation,
                resource_id,
                exc,
            ) from exc
