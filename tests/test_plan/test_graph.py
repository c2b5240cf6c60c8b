"""Tests for the dependency graph builder."""
import pytest
from aiprovisioner.errors import CycleError, ValidationError
from aiprovisioner.plan.conditions import ConditionEvaluator
from aiprovisioner.plan.graph import DependencyGraphBuilder
from aiprovisioner.plan.loader import SpecificationLoader
from aiprovisioner.plan.models import DependencyEdge, OutputRef, ResourceKind

def build(manifest, policy="error"):
    specs = SpecificationLoader(manifest).load()
    conditions = ConditionEvaluator().evaluate(specs, manifest)
    return DependencyGraphBuilder(policy).build(specs, conditions)

def test_search_depends_on_storage(make_manifest):
    manifest = make_manifest(dependentResources=[
        {"resource": "azure_ai_search", "connectionName": "srch"},
        {"resource": "storage", "connectionName": "st1"},
    ])
    graph = build(manifest)
    assert graph.nodes == [ResourceKind.SEARCH, ResourceKind.STORAGE]
    assert graph.edges == [DependencyEdge(ResourceKind.SEARCH, ResourceKind.STORAGE)]
    assert graph.dependencies(ResourceKind.SEARCH) == {ResourceKind.STORAGE}
    assert graph.dependents(ResourceKind.STORAGE) == {ResourceKind.SEARCH}

def test_disabled_specs_are_not_scanned(make_manifest):
    manifest = make_manifest(dependentResources=[{"resource": "storage", "connectionName": "st1"}])
    graph = build(manifest)
    assert graph.nodes == [ResourceKind.STORAGE]
    assert graph.edges == []

def test_missing_prerequisite_is_error_by_default(make_manifest):
    """Search without storage fails validation under the default policy."""
    manifest = make_manifest(dependentResources=[{"resource": "azure_ai_search", "connectionName": "srch"}])
    with pytest.raises(ValidationError, match="storage"):
        build(manifest)

def test_missing_prerequisite_empty_policy(make_manifest):
    manifest = make_manifest(dependentResources=[{"resource": "azure_ai_search", "connectionName": "srch"}])
    graph = build(manifest, policy="empty")
    assert graph.edges == []
    assert graph.dangling == [(ResourceKind.SEARCH, OutputRef(ResourceKind.STORAGE, "accountId"))]

def test_unknown_policy():
    with pytest.raises(ValueError):
        DependencyGraphBuilder("ignore")

def test_circular_reference(make_manifest):
    """Two resources referencing each other form a cycle."""
    manifest = make_manifest(dependentResources=[
        {"resource": "storage", "connectionName": "st1",
         "parameters": {"tags": {"search": "${search.serviceName}"}}},
        {"resource": "azure_ai_search", "connectionName": "srch"},
    ])
    with pytest.raises(CycleError) as excinfo:
        build(manifest)
    assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]
    assert set(excinfo.value.cycle) == {"storage", "search"}

def test_self_reference(make_manifest):
    manifest = make_manifest(dependentResources=[
        {"resource": "registry", "connectionName": "cr", "parameters": {"name": "${registry.name}"}},
    ])
    with pytest.raises(CycleError, match="registry -> registry"):
        build(manifest)
