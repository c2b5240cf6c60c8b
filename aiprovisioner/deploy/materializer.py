"""Materializes a deployment plan through a provisioning client."""
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Optional

from .provider import ProvisioningClient
from ..console import debug
from ..errors import DeploymentCancelled, ProvisioningError
from ..plan.models import DeploymentPlan, OutputRef, ResolvedResource, ResourceKind, ResourceSpec
from ..plan.references import resolve_references

class Materializer:
    """Creates each planned resource exactly once, in dependency order.

    With ``max_workers`` above one, resources that do not depend on each
    other are created concurrently; a resource is only dispatched once every
    resource it depends on has been resolved.
    """

    def __init__(self, client: ProvisioningClient, max_workers: int = 1,
                 cancel_event: Optional[threading.Event] = None, debug: bool = False):
        """Initialize the materializer.

        Args:
            client: Provisioning collaborator.
            max_workers: Maximum concurrent provisioning calls.
            cancel_event: When set, no further provisioning calls are started.
            debug: If True, print verbose debug information.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.client = client
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()
        self.debug = debug
        self._lock = threading.Lock()
        self._resolved: Dict[ResourceKind, ResolvedResource] = {}

    @property
    def resolved(self) -> Dict[ResourceKind, ResolvedResource]:
        """Snapshot of the resources materialized so far."""
        with self._lock:
            return dict(self._resolved)

    def run(self, plan: DeploymentPlan) -> Dict[ResourceKind, ResolvedResource]:
        """Materialize every step of ``plan``.

        Returns:
            Dict[ResourceKind, ResolvedResource]: Resolved resources in plan order.

        Raises:
            ProvisioningError: If the client fails for a resource. Resources
                created before the failure are kept.
            DeploymentCancelled: If the cancellation signal is set before all
                resources were dispatched.
        """
        with self._lock:
            self._resolved = {}
        if self.max_workers == 1:
            for spec in plan:
                self._check_cancelled()
                self._materialize(spec)
            return self.resolved
        return self._run_pool(plan)

    def _run_pool(self, plan: DeploymentPlan) -> Dict[ResourceKind, ResolvedResource]:
        pending = list(plan)
        running: Dict[Future, ResourceSpec] = {}
        failure: Optional[ProvisioningError] = None
        cancelled = False

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="materialize") as pool:
            while pending or running:
                if failure is None and not cancelled:
                    done_kinds = set(self.resolved)
                    for spec in list(pending):
                        if len(running) >= self.max_workers:
                            break
                        if not set(plan.dependencies_of(spec.kind)) <= done_kinds:
                            continue
                        if self.cancel_event.is_set():
                            cancelled = True
                            break
                        pending.remove(spec)
                        running[pool.submit(self._materialize, spec)] = spec
                        debug(self.debug, f"Dispatched {spec.identifier}")

                if not running:
                    if failure is None and not cancelled and pending:
                        # Nothing in flight and nothing ready: only possible with a broken plan
                        raise RuntimeError(f"Unschedulable resources: {[s.identifier for s in pending]}")
                    break

                finished, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in finished:
                    running.pop(future)
                    error = future.exception()
                    if isinstance(error, ProvisioningError) and failure is None:
                        failure = error
                    elif error is not None and not isinstance(error, ProvisioningError):
                        raise error

        if failure is not None:
            raise ProvisioningError(failure.resource, failure.cause, self.resolved)
        if cancelled:
            raise DeploymentCancelled(self.resolved)
        return {spec.kind: self._resolved[spec.kind] for spec in plan}

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise DeploymentCancelled(self.resolved)

    def _materialize(self, spec: ResourceSpec) -> ResolvedResource:
        params = self.resolve_parameters(spec)
        debug(self.debug, f"Creating {spec.identifier}")
        try:
            outputs = self.client.create(spec.kind, params)
        except Exception as e:
            raise ProvisioningError(spec.identifier, e, self.resolved) from e

        values = {}
        if spec.connection_name:
            values["connectionName"] = spec.connection_name
        values.update({key: "" if value is None else str(value) for key, value in (outputs or {}).items()})
        resource = ResolvedResource(identifier=spec.identifier, kind=spec.kind, outputs=values)
        with self._lock:
            self._resolved[spec.kind] = resource
        debug(self.debug, f"Created {spec.identifier}")
        return resource

    def resolve_parameters(self, spec: ResourceSpec) -> Dict[str, Any]:
        """Substitute resolved outputs into a spec's parameters.

        References to resources outside the plan resolve to the empty string.
        """
        resolved = self.resolved

        def lookup(ref: OutputRef) -> str:
            resource = resolved.get(ref.kind)
            if resource is None:
                return ""
            return resource.get(ref.output, "")

        return {key: resolve_references(value, lookup) for key, value in spec.parameters.items()}
