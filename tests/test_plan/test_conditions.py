"""Tests for condition evaluation."""
from aiprovisioner.plan.conditions import ConditionEvaluator
from aiprovisioner.plan.loader import SpecificationLoader
from aiprovisioner.plan.models import Disabled, Enabled, ResourceKind

def test_conditions_follow_declarations(make_manifest):
    manifest = make_manifest(
        enableMonitoring=True,
        dependentResources=[{"resource": "storage", "connectionName": "st1"}],
    )
    specs = SpecificationLoader(manifest).load()
    conditions = ConditionEvaluator().evaluate(specs, manifest)

    assert isinstance(conditions[ResourceKind.STORAGE], Enabled)
    assert isinstance(conditions[ResourceKind.APP_INSIGHTS], Enabled)
    for kind in (ResourceKind.REGISTRY, ResourceKind.SEARCH,
                 ResourceKind.BING_GROUNDING, ResourceKind.BING_CUSTOM_GROUNDING):
        assert isinstance(conditions[kind], Disabled)

def test_monitoring_off(make_manifest):
    manifest = make_manifest(enableMonitoring=False)
    specs = SpecificationLoader(manifest).load()
    conditions = ConditionEvaluator().evaluate(specs, manifest)
    assert not conditions[ResourceKind.APP_INSIGHTS].enabled
    assert all(not c.enabled for c in conditions.values())

def test_existing_registry_enables_registry(make_manifest):
    manifest = make_manifest(
        existingContainerRegistryResourceId="/subscriptions/s/resourceGroups/rg/providers/Microsoft.ContainerRegistry/registries/cr",
        existingContainerRegistryEndpoint="cr.azurecr.io",
    )
    specs = SpecificationLoader(manifest).load()
    conditions = ConditionEvaluator().evaluate(specs, manifest)
    assert conditions[ResourceKind.REGISTRY] == Enabled("connecting existing registry")

def test_evaluation_is_pure(make_manifest):
    """Evaluating twice with identical input yields identical results."""
    manifest = make_manifest(
        enableMonitoring=True,
        dependentResources=[
            {"resource": "bing_custom_grounding", "connectionName": "bc"},
            {"resource": "registry", "connectionName": "cr"},
        ],
    )
    specs = SpecificationLoader(manifest).load()
    evaluator = ConditionEvaluator()

    first = evaluator.evaluate(specs, manifest)
    second = evaluator.evaluate(specs, manifest)
    assert first == second
    assert list(first) == list(specs)
