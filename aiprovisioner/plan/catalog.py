"""Catalog of the dependent resource kinds and their default bindings."""
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .models import OutputRef, ResourceKind
from ..manifest.schema import DependentResource, Manifest

@dataclass(frozen=True)
class ResourceDefinition:
    """Static facts about one resource kind."""
    kind: ResourceKind
    prefix: str
    outputs: Tuple[str, ...]
    published: Tuple[str, ...] = ()
    location: Optional[str] = None
    sku: str = ""
    max_name_length: int = 60
    alphanumeric_name: bool = False

    def default_name(self, manifest: Manifest) -> str:
        """Build a resource name from the project name."""
        base = f"{self.prefix}{manifest.project_name}".lower()
        if self.alphanumeric_name:
            base = re.sub(r"[^a-z0-9]", "", base)
        else:
            base = re.sub(r"[^a-z0-9-]", "-", base).strip("-")
        return base[:self.max_name_length]

    def connection_name(self, manifest: Manifest, declaration: Optional[DependentResource]) -> str:
        """Project connection name; an existing registry connected without a declaration gets a derived one."""
        if declaration:
            return declaration.connection_name
        if self.kind == ResourceKind.REGISTRY and manifest.existing_container_registry_resource_id:
            return f"{manifest.project_name}-registry"
        return ""

    def bindings(self, manifest: Manifest, declaration: Optional[DependentResource]) -> Dict[str, Any]:
        """Default parameter bindings, overlaid with the declaration's own parameters."""
        params: Dict[str, Any] = {
            "name": (declaration.name if declaration and declaration.name else self.default_name(manifest)),
            "location": self.location or manifest.location,
            "tags": dict(manifest.tags),
        }
        if self.sku:
            params["skuName"] = self.sku
        if self.kind != ResourceKind.APP_INSIGHTS:
            params.update({
                "aiAccountName": manifest.account_name,
                "aiProjectName": manifest.project_name,
                "connectionName": self.connection_name(manifest, declaration),
            })
        params.update(EXTRA_BINDINGS.get(self.kind, {}))
        if self.kind == ResourceKind.REGISTRY:
            params["existingResourceId"] = manifest.existing_container_registry_resource_id
            params["existingLoginServer"] = manifest.existing_container_registry_endpoint
        if declaration:
            params.update(declaration.parameters)
        return params

EXTRA_BINDINGS = {
    ResourceKind.SEARCH: {"storageAccountId": OutputRef(ResourceKind.STORAGE, "accountId")},
    ResourceKind.APP_INSIGHTS: {"retentionInDays": 30},
}

# Catalog order is the declaration order for kinds the manifest does not list
CATALOG = {
    definition.kind: definition for definition in (
        ResourceDefinition(
            kind=ResourceKind.STORAGE,
            prefix="st",
            outputs=("accountId", "accountName", "blobEndpoint", "connectionName"),
            published=("accountName", "connectionName"),
            sku="Standard_LRS",
            max_name_length=24,
            alphanumeric_name=True,
        ),
        ResourceDefinition(
            kind=ResourceKind.REGISTRY,
            prefix="cr",
            outputs=("registryId", "name", "loginServer", "connectionName"),
            published=("name", "loginServer", "connectionName"),
            sku="Basic",
            max_name_length=50,
            alphanumeric_name=True,
        ),
        ResourceDefinition(
            kind=ResourceKind.SEARCH,
            prefix="srch-",
            outputs=("serviceId", "serviceName", "endpoint", "connectionName"),
            published=("serviceName", "connectionName"),
            sku="basic",
        ),
        ResourceDefinition(
            kind=ResourceKind.BING_GROUNDING,
            prefix="bing-",
            outputs=("accountId", "name", "endpoint", "connectionName"),
            published=("name", "connectionName"),
            location="global",
            sku="G1",
        ),
        ResourceDefinition(
            kind=ResourceKind.BING_CUSTOM_GROUNDING,
            prefix="bingcustom-",
            outputs=("accountId", "name", "endpoint", "connectionName"),
            published=("name", "connectionName"),
            location="global",
            sku="G2",
        ),
        ResourceDefinition(
            kind=ResourceKind.APP_INSIGHTS,
            prefix="appi-",
            outputs=("componentId", "name", "connectionString", "workspaceId"),
        ),
    )
}

# Top-level keys of the aggregated output map, in output order
PUBLISHED_KINDS = (
    ResourceKind.REGISTRY,
    ResourceKind.BING_GROUNDING,
    ResourceKind.BING_CUSTOM_GROUNDING,
    ResourceKind.SEARCH,
    ResourceKind.STORAGE,
)

def published_outputs() -> Dict[ResourceKind, Tuple[str, ...]]:
    """Output contract: kind to the sub-keys it publishes."""
    return {kind: CATALOG[kind].published for kind in PUBLISHED_KINDS}
