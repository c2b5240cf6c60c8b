"""Parameter reference parsing and substitution.

Parameters may reference another resource's output either with an
``OutputRef`` value or with ``${<kind>.<output>}`` inside a string. A string
that consists of a single reference resolves to the referenced value; a
reference embedded in a longer string is interpolated.
"""
import re
from typing import Any, Callable, List, Optional

from .models import OutputRef, ResourceKind

REFERENCE_PATTERN = re.compile(r"\$\{\s*([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_]*)\s*\}")

# Names accepted in manifests for each kind
KIND_ALIASES = {
    "azure_ai_search": ResourceKind.SEARCH,
    "ai_search": ResourceKind.SEARCH,
    "container_registry": ResourceKind.REGISTRY,
    "application_insights": ResourceKind.APP_INSIGHTS,
}

def parse_kind(name: str) -> Optional[ResourceKind]:
    """Map a manifest resource name to its kind, or None if unknown."""
    key = name.strip().lower()
    if key in KIND_ALIASES:
        return KIND_ALIASES[key]
    try:
        return ResourceKind(key)
    except ValueError:
        return None

def find_references(value: Any) -> List[Any]:
    """Collect every reference in a parameter value.

    Returns ``OutputRef`` items for references to known kinds and raw
    ``(kind_name, output)`` tuples for names that do not parse.
    """
    found = []
    if isinstance(value, OutputRef):
        found.append(value)
    elif isinstance(value, str):
        for kind_name, output in REFERENCE_PATTERN.findall(value):
            kind = parse_kind(kind_name)
            found.append(OutputRef(kind, output) if kind else (kind_name, output))
    elif isinstance(value, dict):
        for item in value.values():
            found.extend(find_references(item))
    elif isinstance(value, (list, tuple)):
        for item in value:
            found.extend(find_references(item))
    return found

def resolve_references(value: Any, lookup: Callable[[OutputRef], Any]) -> Any:
    """Return ``value`` with every reference replaced using ``lookup``."""
    if isinstance(value, OutputRef):
        return lookup(value)
    if isinstance(value, str):
        match = REFERENCE_PATTERN.fullmatch(value.strip())
        if match:
            return lookup(_to_ref(match))
        return REFERENCE_PATTERN.sub(lambda m: str(lookup(_to_ref(m))), value)
    if isinstance(value, dict):
        return {key: resolve_references(item, lookup) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_references(item, lookup) for item in value]
    return value

def _to_ref(match: "re.Match") -> OutputRef:
    kind = parse_kind(match.group(1))
    if kind is None:
        raise KeyError(f"Unknown resource kind in reference: {match.group(0)}")
    return OutputRef(kind, match.group(2))
