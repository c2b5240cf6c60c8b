"""Data models for deployment planning."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..manifest.schema import Manifest

class ResourceKind(str, Enum):
    """Kinds of dependent resources an AI project can be wired to."""
    STORAGE = "storage"
    REGISTRY = "registry"
    SEARCH = "search"
    BING_GROUNDING = "bing_grounding"
    BING_CUSTOM_GROUNDING = "bing_custom_grounding"
    APP_INSIGHTS = "app_insights"

@dataclass(frozen=True)
class Enabled:
    """Condition outcome: the resource is part of this run."""
    reason: str

    @property
    def enabled(self) -> bool:
        return True

@dataclass(frozen=True)
class Disabled:
    """Condition outcome: the resource is skipped in this run."""
    reason: str

    @property
    def enabled(self) -> bool:
        return False

Condition = Union[Enabled, Disabled]

@dataclass(frozen=True)
class OutputRef:
    """Reference to an output of another resource."""
    kind: ResourceKind
    output: str

    def __str__(self) -> str:
        return f"${{{self.kind.value}.{self.output}}}"

@dataclass(frozen=True)
class ResourceSpec:
    """Declarative description of one resource."""
    identifier: str
    kind: ResourceKind
    condition: Callable[[Manifest], Condition] = field(compare=False, repr=False)
    parameters: Mapping[str, Any] = field(default_factory=dict)
    connection_name: str = ""
    declaration_index: int = 0
    existing: bool = False

    def __post_init__(self):
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

@dataclass(frozen=True)
class DependencyEdge:
    """``source`` requires an output of ``target``."""
    source: ResourceKind
    target: ResourceKind

@dataclass(frozen=True)
class DeploymentPlan:
    """Ordered resources to materialize in one run."""
    steps: Tuple[ResourceSpec, ...]
    edges: Tuple[DependencyEdge, ...] = ()
    conditions: Mapping[ResourceKind, Condition] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[ResourceSpec]:
        return iter(self.steps)

    @property
    def kinds(self) -> List[ResourceKind]:
        """Resource kinds in plan order."""
        return [spec.kind for spec in self.steps]

    def dependencies_of(self, kind: ResourceKind) -> List[ResourceKind]:
        """Kinds whose outputs ``kind`` consumes."""
        return [edge.target for edge in self.edges if edge.source == kind]

    def disabled(self) -> Dict[ResourceKind, Condition]:
        """Conditions of the resources left out of the plan."""
        return {kind: cond for kind, cond in self.conditions.items() if not cond.enabled}

@dataclass(frozen=True)
class ResolvedResource:
    """A materialized resource and its outputs."""
    identifier: str
    kind: ResourceKind
    outputs: Mapping[str, str]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        # Freeze a private copy so callers cannot mutate outputs afterwards
        object.__setattr__(self, "outputs", MappingProxyType(dict(self.outputs)))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.outputs.get(name, default)
