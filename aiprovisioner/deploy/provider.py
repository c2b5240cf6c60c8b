"""Provisioning collaborators that create resources."""
import hashlib
import json
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..bicep.generator import BicepGenerator, parameters_document
from ..console import debug
from ..manifest.schema import Manifest
from ..plan.models import ResourceKind

class AzureCliError(Exception):
    """Raised when an Azure CLI command exits with a non-zero status."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"'{' '.join(cmd[:4])}' exited with {returncode}: {stderr.strip()}")

def run_command(cmd: List[str], check: bool = True) -> Tuple[int, str, str]:
    """Run a shell command and return (returncode, stdout, stderr)."""
    try:
        result = subprocess.run(
            cmd,
            check=check,
            text=True,
            capture_output=True
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.CalledProcessError as e:
        return e.returncode, e.stdout, e.stderr

class ProvisioningClient(ABC):
    """Creates one resource and reports its outputs.

    Implementations must treat creation as idempotent: creating a resource
    that already exists returns the existing resource's outputs.
    """

    @abstractmethod
    def create(self, kind: ResourceKind, params: Dict[str, Any]) -> Dict[str, str]:
        """Create a resource of ``kind``.

        Args:
            kind: Resource kind.
            params: Fully resolved parameters.

        Returns:
            Dict[str, str]: Output values of the created resource.
        """
        pass

    def bootstrap(self, manifest: Manifest) -> Dict[str, str]:
        """Create the AI services account, project and model deployments."""
        return {}

class AzureCliProvisioner(ProvisioningClient):
    """Deploys per-resource Bicep modules with ``az deployment group create``."""

    def __init__(self, manifest: Manifest, deployment_prefix: str = "", debug: bool = False):
        """Initialize the provisioner.

        Args:
            manifest: Validated manifest; supplies the resource group.
            deployment_prefix: Prefix for ARM deployment names.
            debug: If True, print the Azure CLI commands being run.
        """
        self.manifest = manifest
        self.resource_group = manifest.resource_group
        self.deployment_prefix = deployment_prefix or manifest.project_name
        self.debug = debug
        self.generator = BicepGenerator(manifest, debug=debug)

    def create(self, kind: ResourceKind, params: Dict[str, Any]) -> Dict[str, str]:
        existing = kind == ResourceKind.REGISTRY and bool(params.get("existingResourceId"))
        template = self.generator.render_module(kind, existing=existing)
        declared = set(self.generator.module_parameters(kind, existing=existing))
        dropped = sorted(set(params) - declared)
        if dropped:
            debug(self.debug, f"Parameters not declared by the {kind.value} module: {', '.join(dropped)}")
        values = {key: value for key, value in params.items() if key in declared}
        return self._deploy(kind.value, template, values)

    def bootstrap(self, manifest: Manifest) -> Dict[str, str]:
        generator = BicepGenerator(manifest, debug=self.debug)
        return self._deploy("project", generator.render_project(), generator.project_parameters())

    def _deploy(self, name: str, template: str, values: Dict[str, Any]) -> Dict[str, str]:
        """Deploy one template and return its outputs as strings.

        Raises:
            AzureCliError: If the deployment command fails.
            ValueError: If the command output cannot be parsed.
        """
        deployment_name = f"{self.deployment_prefix}-{name}"[:64]
        with tempfile.TemporaryDirectory() as tmp:
            template_path = Path(tmp) / f"{name}.bicep"
            params_path = Path(tmp) / f"{name}.parameters.json"
            template_path.write_text(template)
            params_path.write_text(json.dumps(parameters_document(values), indent=2))

            cmd = [
                "az", "deployment", "group", "create",
                "--resource-group", self.resource_group,
                "--name", deployment_name,
                "--template-file", str(template_path),
                "--parameters", f"@{params_path}",
                "-o", "json"
            ]
            debug(self.debug, f"Running command: {' '.join(cmd)}")
            returncode, stdout, stderr = run_command(cmd)

        if returncode != 0:
            raise AzureCliError(cmd, returncode, stderr)
        return deployment_outputs(stdout)

def deployment_outputs(stdout: str) -> Dict[str, str]:
    """Extract ``properties.outputs`` values from ``az deployment`` JSON output."""
    try:
        result = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse deployment result: {e}") from e

    properties = result.get("properties", {})
    state = properties.get("provisioningState")
    if state and state != "Succeeded":
        raise ValueError(f"Deployment finished in state {state}")
    outputs = properties.get("outputs") or {}
    return {name: "" if item.get("value") is None else str(item.get("value")) for name, item in outputs.items()}

class DryRunProvisioner(ProvisioningClient):
    """Returns placeholder outputs without touching Azure.

    Outputs are derived from the parameters only, so repeated runs with the
    same input produce the same outputs.
    """

    def __init__(self, manifest: Manifest):
        self.manifest = manifest
        self.calls: List[Tuple[ResourceKind, Dict[str, Any]]] = []

    def create(self, kind: ResourceKind, params: Dict[str, Any]) -> Dict[str, str]:
        self.calls.append((kind, dict(params)))
        name = str(params.get("name", kind.value))
        resource_id = self._resource_id(RESOURCE_TYPES[kind], name)
        outputs = {
            ResourceKind.STORAGE: {
                "accountId": resource_id,
                "accountName": name,
                "blobEndpoint": f"https://{name}.blob.core.windows.net/",
            },
            ResourceKind.REGISTRY: {
                "registryId": params.get("existingResourceId") or resource_id,
                "name": str(params.get("existingResourceId") or name).rsplit("/", 1)[-1],
                "loginServer": params.get("existingLoginServer") or f"{name}.azurecr.io",
            },
            ResourceKind.SEARCH: {
                "serviceId": resource_id,
                "serviceName": name,
                "endpoint": f"https://{name}.search.windows.net",
            },
            ResourceKind.BING_GROUNDING: {
                "accountId": resource_id,
                "name": name,
                "endpoint": "https://api.bing.microsoft.com/",
            },
            ResourceKind.BING_CUSTOM_GROUNDING: {
                "accountId": resource_id,
                "name": name,
                "endpoint": "https://api.bing.microsoft.com/",
            },
            ResourceKind.APP_INSIGHTS: {
                "componentId": resource_id,
                "name": name,
                "connectionString": f"InstrumentationKey={self._fake_guid(name)}",
                "workspaceId": self._resource_id("Microsoft.OperationalInsights/workspaces", f"log-{name}"),
            },
        }[kind]
        if "connectionName" in params:
            outputs["connectionName"] = params["connectionName"]
        return outputs

    def bootstrap(self, manifest: Manifest) -> Dict[str, str]:
        endpoint = f"https://{manifest.account_name}.services.ai.azure.com"
        return {
            "accountName": manifest.account_name,
            "projectName": manifest.project_name,
            "endpoint": endpoint,
            "projectEndpoint": f"{endpoint}/api/projects/{manifest.project_name}",
        }

    def _resource_id(self, resource_type: str, name: str) -> str:
        return (f"/subscriptions/00000000-0000-0000-0000-000000000000"
                f"/resourceGroups/{self.manifest.resource_group}/providers/{resource_type}/{name}")

    @staticmethod
    def _fake_guid(seed: str) -> str:
        digest = hashlib.sha1(seed.encode()).hexdigest()
        return f"{digest[:8]}-{digest[8:12]}-{digest[12:16]}-{digest[16:20]}-{digest[20:32]}"

RESOURCE_TYPES = {
    ResourceKind.STORAGE: "Microsoft.Storage/storageAccounts",
    ResourceKind.REGISTRY: "Microsoft.ContainerRegistry/registries",
    ResourceKind.SEARCH: "Microsoft.Search/searchServices",
    ResourceKind.BING_GROUNDING: "Microsoft.Bing/accounts",
    ResourceKind.BING_CUSTOM_GROUNDING: "Microsoft.Bing/accounts",
    ResourceKind.APP_INSIGHTS: "Microsoft.Insights/components",
}
