"""Existence conditions for resource specs."""
from typing import Callable, Dict, Mapping

from .models import Condition, Disabled, Enabled, ResourceKind, ResourceSpec
from .references import parse_kind
from ..console import debug
from ..manifest.schema import Manifest

Predicate = Callable[[Manifest], Condition]

def declared_condition(kind: ResourceKind) -> Predicate:
    """Enabled when ``kind`` appears in the manifest's dependent resources."""
    def predicate(manifest: Manifest) -> Condition:
        for item in manifest.dependent_resources:
            if parse_kind(item.resource) == kind:
                return Enabled(f"declared with connection '{item.connection_name}'")
        return Disabled("not declared in dependentResources")
    return predicate

def registry_condition(manifest: Manifest) -> Condition:
    if manifest.existing_container_registry_resource_id:
        return Enabled("connecting existing registry")
    return declared_condition(ResourceKind.REGISTRY)(manifest)

def monitoring_condition(manifest: Manifest) -> Condition:
    if manifest.enable_monitoring:
        return Enabled("enableMonitoring is set")
    return Disabled("enableMonitoring is off")

class ConditionEvaluator:
    """Evaluates every spec's existence condition against the manifest.

    Conditions depend only on the manifest, never on other resources'
    outputs, so all of them are evaluated before anything is created.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def evaluate(self, specs: Mapping[ResourceKind, ResourceSpec], manifest: Manifest) -> Dict[ResourceKind, Condition]:
        """Evaluate conditions for all specs.

        Args:
            specs: Specs keyed by kind.
            manifest: Validated manifest.

        Returns:
            Dict[ResourceKind, Condition]: Enabled or Disabled per kind, in spec order.
        """
        conditions = {}
        for kind, spec in specs.items():
            condition = spec.condition(manifest)
            conditions[kind] = condition
            debug(self.debug, f"{kind.value}: {type(condition).__name__.lower()} ({condition.reason})")
        return conditions
