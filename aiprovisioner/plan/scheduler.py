"""Topological ordering of enabled resources."""
import heapq
from typing import Dict, Mapping

from .graph import DependencyGraph
from .models import Condition, DeploymentPlan, ResourceKind, ResourceSpec
from ..errors import CycleError

class TopologicalScheduler:
    """Orders enabled resources so dependencies come first.

    Among resources that are ready at the same time, the one declared
    earlier is scheduled first, so unchanged input yields the same plan.
    """

    def schedule(self, specs: Mapping[ResourceKind, ResourceSpec], graph: DependencyGraph,
                 conditions: Mapping[ResourceKind, Condition]) -> DeploymentPlan:
        in_degree: Dict[ResourceKind, int] = {kind: 0 for kind in graph.nodes}
        for edge in graph.edges:
            in_degree[edge.source] += 1

        ready = [(specs[k].declaration_index, k.value) for k, d in in_degree.items() if d == 0]
        heapq.heapify(ready)

        ordered = []
        while ready:
            _, name = heapq.heappop(ready)
            kind = ResourceKind(name)
            ordered.append(specs[kind])
            for dependent in graph.dependents(kind):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (specs[dependent].declaration_index, dependent.value))

        if len(ordered) != len(graph.nodes):
            remaining = [k.value for k in graph.nodes if k not in {s.kind for s in ordered}]
            raise CycleError(remaining)

        return DeploymentPlan(
            steps=tuple(ordered),
            edges=tuple(graph.edges),
            conditions=dict(conditions),
        )
