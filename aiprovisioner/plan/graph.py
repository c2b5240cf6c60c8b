"""Dependency graph between enabled resources."""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .models import Condition, DependencyEdge, OutputRef, ResourceKind, ResourceSpec
from .references import find_references
from ..console import debug
from ..errors import CycleError, ValidationError

POLICY_ERROR = "error"
POLICY_EMPTY = "empty"

@dataclass
class DependencyGraph:
    """Edges between enabled resource kinds."""
    nodes: List[ResourceKind]
    edges: List[DependencyEdge] = field(default_factory=list)
    # References to disabled kinds, resolved to '' under the "empty" policy
    dangling: List[Tuple[ResourceKind, OutputRef]] = field(default_factory=list)

    def dependencies(self, kind: ResourceKind) -> Set[ResourceKind]:
        return {e.target for e in self.edges if e.source == kind}

    def dependents(self, kind: ResourceKind) -> Set[ResourceKind]:
        return {e.source for e in self.edges if e.target == kind}

    def find_cycle(self) -> Optional[List[ResourceKind]]:
        """Return one cycle as a closed path of kinds, or None if acyclic."""
        WHITE, GREY, BLACK = 0, 1, 2
        color = {node: WHITE for node in self.nodes}
        stack: List[ResourceKind] = []

        def visit(node: ResourceKind) -> Optional[List[ResourceKind]]:
            color[node] = GREY
            stack.append(node)
            for target in sorted(self.dependencies(node), key=self.nodes.index):
                if color[target] == GREY:
                    return stack[stack.index(target):] + [target]
                if color[target] == WHITE:
                    cycle = visit(target)
                    if cycle:
                        return cycle
            stack.pop()
            color[node] = BLACK
            return None

        for node in self.nodes:
            if color[node] == WHITE:
                cycle = visit(node)
                if cycle:
                    return cycle
        return None

class DependencyGraphBuilder:
    """Builds the dependency graph from parameter references."""

    def __init__(self, policy: str = POLICY_ERROR, debug: bool = False):
        if policy not in (POLICY_ERROR, POLICY_EMPTY):
            raise ValueError(f"Unknown missing-dependency policy: {policy}")
        self.policy = policy
        self.debug = debug

    def build(self, specs: Mapping[ResourceKind, ResourceSpec], conditions: Mapping[ResourceKind, Condition]) -> DependencyGraph:
        """Build the graph over enabled specs.

        Raises:
            ValidationError: If an enabled spec references a disabled one and
                the policy is "error".
            CycleError: If the references form a cycle.
        """
        nodes = [kind for kind in specs if conditions[kind].enabled]
        graph = DependencyGraph(nodes=nodes)
        seen = set()

        for kind in nodes:
            spec = specs[kind]
            for name, value in spec.parameters.items():
                for ref in find_references(value):
                    if not conditions[ref.kind].enabled:
                        if self.policy == POLICY_ERROR:
                            raise ValidationError(
                                f"'{kind.value}' parameter '{name}' requires output '{ref.output}' of "
                                f"'{ref.kind.value}', which is not part of this deployment "
                                f"({conditions[ref.kind].reason})"
                            )
                        debug(self.debug, f"{kind.value}.{name} -> {ref} resolves to empty string")
                        graph.dangling.append((kind, ref))
                        continue
                    edge = DependencyEdge(source=kind, target=ref.kind)
                    if edge not in seen:
                        seen.add(edge)
                        graph.edges.append(edge)
                        debug(self.debug, f"{kind.value} depends on {ref.kind.value}")

        cycle = graph.find_cycle()
        if cycle:
            raise CycleError([k.value for k in cycle])
        return graph
