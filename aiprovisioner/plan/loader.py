"""Builds resource specifications from a validated manifest."""
import re
from typing import Dict

from .catalog import CATALOG
from .conditions import declared_condition, monitoring_condition, registry_condition
from .models import OutputRef, ResourceKind, ResourceSpec
from .references import find_references, parse_kind
from ..errors import ValidationError
from ..manifest.schema import DependentResource, Manifest

REGISTRY_ID_PATTERN = re.compile(
    r"^/subscriptions/[^/]+/resourceGroups/[^/]+/providers/Microsoft\.ContainerRegistry/registries/[^/]+$",
    re.IGNORECASE,
)

class SpecificationLoader:
    """Turns a manifest into one ResourceSpec per resource kind."""

    def __init__(self, manifest: Manifest):
        self.manifest = manifest

    def load(self) -> Dict[ResourceKind, ResourceSpec]:
        """Load specs for every kind, declared kinds first.

        Returns:
            Dict[ResourceKind, ResourceSpec]: Specs keyed by kind, in declaration order.

        Raises:
            ValidationError: If the manifest declares unknown or duplicate kinds,
                is missing required parameters, or references unknown outputs.
        """
        declarations = self._declarations()
        self._validate_registry()
        self._validate_model_deployments()

        order = list(declarations)
        order.extend(kind for kind in CATALOG if kind not in declarations)

        specs = {}
        for index, kind in enumerate(order):
            definition = CATALOG[kind]
            declaration = declarations.get(kind)
            spec = ResourceSpec(
                identifier=kind.value,
                kind=kind,
                condition=self._condition_for(kind),
                parameters=definition.bindings(self.manifest, declaration),
                connection_name=definition.connection_name(self.manifest, declaration),
                declaration_index=index,
                existing=(kind == ResourceKind.REGISTRY
                          and bool(self.manifest.existing_container_registry_resource_id)),
            )
            self._validate_references(spec)
            specs[kind] = spec
        return specs

    def _declarations(self) -> Dict[ResourceKind, DependentResource]:
        declarations: Dict[ResourceKind, DependentResource] = {}
        for idx, item in enumerate(self.manifest.dependent_resources):
            kind = parse_kind(item.resource)
            if kind is None:
                raise ValidationError(
                    f"Dependent resource at index {idx} has unrecognized kind '{item.resource}'"
                )
            if kind == ResourceKind.APP_INSIGHTS:
                raise ValidationError(
                    "app_insights is controlled by enableMonitoring, not dependentResources"
                )
            if kind in declarations:
                raise ValidationError(f"Dependent resource '{kind.value}' is declared more than once")
            declarations[kind] = item
        return declarations

    def _validate_registry(self) -> None:
        registry_id = self.manifest.existing_container_registry_resource_id
        if not registry_id:
            return
        if not self.manifest.existing_container_registry_endpoint:
            raise ValidationError(
                "existingContainerRegistryEndpoint is required when "
                "existingContainerRegistryResourceId is set"
            )
        if not REGISTRY_ID_PATTERN.match(registry_id):
            raise ValidationError(
                f"existingContainerRegistryResourceId is not a container registry resource ID: {registry_id}"
            )

    def _validate_model_deployments(self) -> None:
        seen = set()
        for deployment in self.manifest.model_deployments:
            if deployment.name in seen:
                raise ValidationError(f"Model deployment '{deployment.name}' is declared more than once")
            seen.add(deployment.name)

    def _validate_references(self, spec: ResourceSpec) -> None:
        for name, value in spec.parameters.items():
            for ref in find_references(value):
                if not isinstance(ref, OutputRef):
                    raise ValidationError(
                        f"Parameter '{name}' of '{spec.identifier}' references unknown resource '{ref[0]}'"
                    )
                definition = CATALOG[ref.kind]
                if ref.output not in definition.outputs:
                    raise ValidationError(
                        f"Parameter '{name}' of '{spec.identifier}' references unknown output "
                        f"'{ref.output}' of '{ref.kind.value}' (available: {', '.join(definition.outputs)})"
                    )

    def _condition_for(self, kind: ResourceKind):
        if kind == ResourceKind.APP_INSIGHTS:
            return monitoring_condition
        if kind == ResourceKind.REGISTRY:
            return registry_condition
        return declared_condition(kind)
