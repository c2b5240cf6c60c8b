"""Shared fixtures."""
import pytest
from aiprovisioner.manifest.schema import Manifest

BASE_MANIFEST = {
    "location": "eastus2",
    "resourceGroup": "test-rg",
    "projectName": "test-project",
    "tags": {"env": "test"},
}

@pytest.fixture
def make_manifest():
    """Build a manifest from the base fields plus overrides."""
    def factory(**overrides) -> Manifest:
        data = dict(BASE_MANIFEST)
        data.update(overrides)
        return Manifest.model_validate(data)
    return factory
