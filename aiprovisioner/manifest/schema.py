"""Pydantic models for manifest validation."""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

class ManifestModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""
    model_config = ConfigDict(populate_by_name=True)

class ModelSpec(ManifestModel):
    """Model served by a deployment."""
    name: str
    format: str = "OpenAI"
    version: str

class ModelSku(ManifestModel):
    """Deployment SKU and capacity."""
    name: str = "GlobalStandard"
    capacity: int = Field(default=1, gt=0)

class ModelDeployment(ManifestModel):
    """Model deployment on the AI services account."""
    name: str
    model: ModelSpec
    sku: ModelSku = Field(default_factory=ModelSku)

class DependentResource(ManifestModel):
    """A dependent resource declaration and its project connection."""
    resource: str
    connection_name: str = Field(alias='connectionName', min_length=1)
    name: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)

class Manifest(ManifestModel):
    """Root manifest schema."""
    location: str
    resource_group: str = Field(alias='resourceGroup')
    tags: Dict[str, str] = Field(default_factory=dict)
    ai_services_name: str = Field(default="", alias='aiServicesName')
    project_name: str = Field(alias='projectName', min_length=1)
    project_description: str = Field(default="", alias='projectDescription')
    principal_id: str = Field(default="", alias='principalId')
    principal_type: Literal["User", "ServicePrincipal", "Group"] = Field(default="User", alias='principalType')
    enable_monitoring: bool = Field(default=False, alias='enableMonitoring')
    dependent_resources: List[DependentResource] = Field(default_factory=list, alias='dependentResources')
    model_deployments: List[ModelDeployment] = Field(default_factory=list, alias='modelDeployments')
    existing_container_registry_resource_id: str = Field(default="", alias='existingContainerRegistryResourceId')
    existing_container_registry_endpoint: str = Field(default="", alias='existingContainerRegistryEndpoint')
    missing_dependency_policy: Literal["error", "empty"] = Field(default="error", alias='missingDependencyPolicy')
    max_parallel: int = Field(default=1, ge=1, alias='maxParallel')

    @property
    def account_name(self) -> str:
        """AI services account name, derived from the project name when unset."""
        return self.ai_services_name or f"{self.project_name}-ai"
