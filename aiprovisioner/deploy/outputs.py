"""Aggregates resolved resources into the deployment output map."""
from typing import Dict, Mapping

from ..plan.catalog import published_outputs
from ..plan.models import ResolvedResource, ResourceKind

class OutputAggregator:
    """Builds the fixed-shape output map.

    Every published kind and sub-key is always present; resources that were
    not created contribute empty strings.
    """

    def aggregate(self, resolved: Mapping[ResourceKind, ResolvedResource]) -> Dict[str, Dict[str, str]]:
        result = {}
        for kind, fields in published_outputs().items():
            resource = resolved.get(kind)
            result[kind.value] = {
                name: (resource.get(name, "") if resource else "") for name in fields
            }
        return result
