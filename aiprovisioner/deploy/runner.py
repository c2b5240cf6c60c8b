"""End-to-end deployment run: plan, materialize, aggregate."""
import json
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from .materializer import Materializer
from .outputs import OutputAggregator
from .provider import ProvisioningClient
from ..console import debug
from ..errors import ProvisioningError
from ..manifest.schema import Manifest
from ..plan.conditions import ConditionEvaluator
from ..plan.graph import DependencyGraphBuilder
from ..plan.loader import SpecificationLoader
from ..plan.models import DeploymentPlan, ResolvedResource, ResourceKind
from ..plan.scheduler import TopologicalScheduler

@dataclass
class DeploymentResult:
    """Outcome of a successful run."""
    plan: DeploymentPlan
    resources: Dict[ResourceKind, ResolvedResource]
    outputs: Dict[str, Dict[str, str]]
    project: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "project": dict(self.project),
            "plan": [spec.identifier for spec in self.plan],
            "resources": {
                kind.value: {
                    "outputs": dict(resource.outputs),
                    "createdAt": resource.created_at.isoformat(),
                } for kind, resource in self.resources.items()
            },
            "dependentResources": self.outputs,
        }

    def save(self, output_path: str) -> None:
        """Save the result to a JSON file.

        Args:
            output_path: Path to write the JSON file.
        """
        with open(output_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

class DeploymentRunner:
    """Plans and runs the deployment of an AI project's dependent resources."""

    def __init__(self, manifest: Manifest, client: ProvisioningClient, debug: bool = False):
        """Initialize the runner.

        Args:
            manifest: Validated manifest.
            client: Provisioning collaborator.
            debug: If True, print verbose debug information.
        """
        self.manifest = manifest
        self.client = client
        self.debug = debug

    def plan(self) -> DeploymentPlan:
        """Compute the deployment plan without provisioning anything.

        Raises:
            ValidationError: If the manifest is incomplete or inconsistent.
            CycleError: If resource references are circular.
        """
        specs = SpecificationLoader(self.manifest).load()
        conditions = ConditionEvaluator(debug=self.debug).evaluate(specs, self.manifest)
        graph = DependencyGraphBuilder(self.manifest.missing_dependency_policy, debug=self.debug).build(
            specs, conditions
        )
        plan = TopologicalScheduler().schedule(specs, graph, conditions)
        debug(self.debug, f"Plan: {', '.join(k.value for k in plan.kinds) or '(empty)'}")
        return plan

    def run(self, cancel_event: Optional[threading.Event] = None,
            max_workers: Optional[int] = None) -> DeploymentResult:
        """Plan, bootstrap the project, materialize and aggregate outputs.

        Args:
            cancel_event: Cancellation signal checked before each resource.
            max_workers: Concurrency limit; defaults to the manifest's maxParallel.

        Raises:
            ValidationError, CycleError: Before any provisioning call.
            ProvisioningError: When a resource fails; carries the resources
                materialized so far.
            DeploymentCancelled: When cancelled between resources.
        """
        plan = self.plan()
        try:
            project = self.client.bootstrap(self.manifest)
        except Exception as e:
            raise ProvisioningError("project", e) from e
        materializer = Materializer(
            self.client,
            max_workers=max_workers or self.manifest.max_parallel,
            cancel_event=cancel_event,
            debug=self.debug,
        )
        resources = materializer.run(plan)
        outputs = OutputAggregator().aggregate(resources)
        return DeploymentResult(plan=plan, resources=resources, outputs=outputs, project=project or {})
