"""Tests for manifest parser."""
import pytest
from aiprovisioner.errors import ValidationError
from aiprovisioner.manifest.parser import ManifestParser
from aiprovisioner.manifest.schema import Manifest

def test_valid_manifest(tmp_path):
    """Test parsing a valid manifest."""
    yaml_content = """
    location: eastus2
    resourceGroup: test-rg
    projectName: test-project
    enableMonitoring: true
    dependentResources:
      - resource: storage
        connectionName: st1
      - resource: azure_ai_search
        connectionName: search1
    modelDeployments:
      - name: gpt-4o
        model:
          name: gpt-4o
          format: OpenAI
          version: "2024-11-20"
        sku:
          name: GlobalStandard
          capacity: 10
    """
    manifest_path = tmp_path / "test_manifest.yaml"
    manifest_path.write_text(yaml_content)
    
    manifest = ManifestParser.load(str(manifest_path))
    assert isinstance(manifest, Manifest)
    assert manifest.project_name == "test-project"
    assert manifest.resource_group == "test-rg"
    assert manifest.enable_monitoring is True
    assert [d.connection_name for d in manifest.dependent_resources] == ["st1", "search1"]
    assert manifest.model_deployments[0].sku.capacity == 10
    assert manifest.missing_dependency_policy == "error"
    assert manifest.account_name == "test-project-ai"

def test_snake_case_field_names():
    """Field names are accepted alongside camelCase aliases."""
    manifest = ManifestParser.loads("""
    location: westus
    resource_group: rg
    project_name: demo
    ai_services_name: demo-account
    """)
    assert manifest.resource_group == "rg"
    assert manifest.account_name == "demo-account"

def test_invalid_manifest(tmp_path):
    """Missing required fields are reported as ValidationError."""
    manifest_path = tmp_path / "test_manifest.yaml"
    manifest_path.write_text("location: eastus\n")
    
    with pytest.raises(ValidationError):
        ManifestParser.load(str(manifest_path))

def test_invalid_model_capacity():
    """Model deployment capacity must be positive."""
    with pytest.raises(ValidationError):
        ManifestParser.loads("""
        location: eastus
        resourceGroup: rg
        projectName: demo
        modelDeployments:
          - name: gpt
            model: {name: gpt-4o, version: "1"}
            sku: {name: Standard, capacity: 0}
        """)

def test_malformed_yaml():
    """Unparseable YAML is a ValidationError."""
    with pytest.raises(ValidationError):
        ManifestParser.loads("location: [eastus")

def test_non_mapping_manifest():
    with pytest.raises(ValidationError):
        ManifestParser.loads("- just\n- a list\n")

def test_nonexistent_file():
    """Test loading a nonexistent file."""
    with pytest.raises(FileNotFoundError):
        ManifestParser.load("nonexistent.yaml")
