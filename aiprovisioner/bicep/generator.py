"""Bicep template generator."""
import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from jinja2 import DictLoader, Environment, StrictUndefined

from .templates import CONNECTION_API, TEMPLATES
from ..console import debug
from ..manifest.schema import Manifest
from ..plan.catalog import published_outputs
from ..plan.models import DeploymentPlan, OutputRef, ResourceKind
from ..plan.references import REFERENCE_PATTERN, parse_kind

# Template rendering options for kinds that share a module template
MODULE_OPTIONS = {
    ResourceKind.BING_GROUNDING: {
        "template": "bing_grounding.bicep",
        "bing_kind": "Bing.Grounding",
        "connection_type": "bing_grounding",
        "sku": "G1",
    },
    ResourceKind.BING_CUSTOM_GROUNDING: {
        "template": "bing_grounding.bicep",
        "bing_kind": "Bing.GroundingCustomSearch",
        "connection_type": "bing_custom_search",
        "sku": "G2",
    },
}

PARAM_PATTERN = re.compile(r"^param\s+(\w+)\s", re.MULTILINE)

def escape_string(text: str) -> str:
    """Escape text for use inside a single-quoted Bicep string."""
    return text.replace("\\", "\\\\").replace("'", "\\'").replace("${", "\\${")

def bicep_literal(value: Any, indent: int = 0, reference: Optional[Callable[[OutputRef], str]] = None) -> str:
    """Render a Python value as a Bicep expression.

    Args:
        value: str, bool, int, float, None, dict, list or OutputRef.
        indent: Indentation level (two spaces each) of the line holding the value.
        reference: Renders an output reference as a Bicep expression. Without it
            references are rendered as plain strings.

    Returns:
        str: Bicep expression.
    """
    pad = "  " * indent
    if isinstance(value, OutputRef) and reference:
        return reference(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (str, OutputRef)):
        value = str(value)
        if reference is None or not REFERENCE_PATTERN.search(value):
            return f"'{escape_string(value)}'"
        match = REFERENCE_PATTERN.fullmatch(value.strip())
        if match:
            return reference(OutputRef(parse_kind(match.group(1)), match.group(2)))
        # split() yields text, kind, output, text, kind, output, ..., text
        parts = REFERENCE_PATTERN.split(value)
        rendered = escape_string(parts[0])
        for i in range(1, len(parts), 3):
            ref = OutputRef(parse_kind(parts[i]), parts[i + 1])
            rendered += "${" + reference(ref) + "}" + escape_string(parts[i + 2])
        return f"'{rendered}'"
    if isinstance(value, dict):
        if not value:
            return "{}"
        lines = ["{"]
        for key, item in value.items():
            name = key if re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", str(key)) else f"'{escape_string(str(key))}'"
            lines.append(f"{pad}  {name}: {bicep_literal(item, indent + 1, reference)}")
        lines.append(f"{pad}}}")
        return "\n".join(lines)
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        lines = ["["]
        for item in value:
            lines.append(f"{pad}  {bicep_literal(item, indent + 1, reference)}")
        lines.append(f"{pad}]")
        return "\n".join(lines)
    raise TypeError(f"Cannot render {type(value).__name__} as Bicep")

class BicepGenerator:
    """Generates Bicep templates for a deployment plan."""

    def __init__(self, manifest: Manifest, plan: Optional[DeploymentPlan] = None, debug: bool = False):
        """Initialize the generator.

        Args:
            manifest: Validated manifest.
            plan: Deployment plan; only needed for ``main.bicep``.
            debug: If True, print verbose debug information.
        """
        self.manifest = manifest
        self.plan = plan
        self.debug = debug
        self.jinja_env = Environment(
            loader=DictLoader(TEMPLATES),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self.jinja_env.globals["api"] = CONNECTION_API
        self.jinja_env.filters["bicep"] = bicep_literal

    def render_module(self, kind: ResourceKind, existing: bool = False) -> str:
        """Render the module template for one resource kind.

        Args:
            kind: Resource kind.
            existing: Registry only; connect an existing registry instead of creating one.
        """
        options = dict(MODULE_OPTIONS.get(kind, {}))
        template_name = options.pop("template", f"{kind.value}.bicep")
        template = self.jinja_env.get_template(template_name)
        return template.render(existing=existing, **options)

    def render_project(self) -> str:
        """Render the AI services account and project template."""
        return self.jinja_env.get_template("project.bicep").render()

    def module_parameters(self, kind: ResourceKind, existing: bool = False) -> List[str]:
        """Names of the parameters a module template declares."""
        return PARAM_PATTERN.findall(self.render_module(kind, existing))

    def project_parameters(self) -> Dict[str, Any]:
        """Parameter values for ``project.bicep``."""
        return {
            "location": self.manifest.location,
            "tags": dict(self.manifest.tags),
            "aiAccountName": self.manifest.account_name,
            "aiProjectName": self.manifest.project_name,
            "projectDescription": self.manifest.project_description,
            "principalId": self.manifest.principal_id,
            "principalType": self.manifest.principal_type,
            "modelDeployments": [d.model_dump() for d in self.manifest.model_deployments],
        }

    def render_main(self) -> str:
        """Render ``main.bicep`` wiring the project and every plan step."""
        if self.plan is None:
            raise ValueError("A deployment plan is required to render main.bicep")

        steps = []
        for spec in self.plan:
            declared = self.module_parameters(spec.kind, spec.existing)
            params = []
            for key, value in spec.parameters.items():
                if key not in declared:
                    debug(self.debug, f"Skipping parameter {spec.identifier}.{key} not declared by module")
                    continue
                if key == "location" and value == self.manifest.location:
                    params.append((key, "location"))
                elif key == "tags" and value == self.manifest.tags:
                    params.append((key, "tags"))
                else:
                    params.append((key, self._expression(value, 2)))
            steps.append({
                "symbol": spec.kind.value,
                "kind": spec.kind.value,
                "uses_project": "aiProjectName" in declared,
                "params": params,
            })

        return self.jinja_env.get_template("main.bicep").render(
            location=self.manifest.location,
            tags=dict(self.manifest.tags),
            account_name=self.manifest.account_name,
            project_name=self.manifest.project_name,
            project_description=self.manifest.project_description,
            principal_id=self.manifest.principal_id,
            principal_type=self.manifest.principal_type,
            model_deployments=[d.model_dump() for d in self.manifest.model_deployments],
            steps=steps,
            outputs=self._output_expressions(),
        )

    def generate(self, output_dir: str) -> Tuple[str, str]:
        """Write main.bicep, project.bicep, modules and the parameters file.

        Returns:
            Tuple[str, str]: Paths to the main Bicep file and parameters file.
        """
        out = Path(output_dir)
        modules = out / "modules"
        modules.mkdir(parents=True, exist_ok=True)

        main_path = out / "main.bicep"
        main_path.write_text(self.render_main())
        (out / "project.bicep").write_text(self.render_project())
        for spec in self.plan:
            module_path = modules / f"{spec.kind.value}.bicep"
            module_path.write_text(self.render_module(spec.kind, spec.existing))
            debug(self.debug, f"Module written to {module_path}")

        params_path = out / "main.parameters.json"
        params_path.write_text(json.dumps(parameters_document({
            "location": self.manifest.location,
            "tags": dict(self.manifest.tags),
        }), indent=2))

        debug(self.debug, f"Main Bicep file written to {main_path}")
        debug(self.debug, f"Parameters file written to {params_path}")
        return str(main_path), str(params_path)

    def _expression(self, value: Any, indent: int) -> str:
        """Bicep expression for a binding, with references as module outputs."""
        return bicep_literal(value, indent, self._reference)

    def _reference(self, ref: OutputRef) -> str:
        if self.plan.conditions.get(ref.kind) and self.plan.conditions[ref.kind].enabled:
            return f"{ref.kind.value}.outputs.{ref.output}"
        return "''"

    def _output_expressions(self) -> List[Tuple[str, List[Tuple[str, str]]]]:
        """Output object entries; disabled kinds yield '' placeholders."""
        enabled = set(self.plan.kinds)
        return [
            (kind.value, [(name, f"{kind.value}.outputs.{name}" if kind in enabled else "''") for name in fields])
            for kind, fields in published_outputs().items()
        ]
def parameters_document(params: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap parameter values in an ARM deployment parameters document."""
    return {
        "$schema": "https://schema.management.azure.com/schemas/2019-04-01/deploymentParameters.json#",
        "contentVersion": "1.0.0.0",
        "parameters": {key: {"value": value} for key, value in params.items()},
    }
