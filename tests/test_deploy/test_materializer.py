"""Tests for the materializer."""
import threading
import time
import pytest
from unittest.mock import MagicMock
from aiprovisioner.deploy.materializer import Materializer
from aiprovisioner.deploy.provider import DryRunProvisioner, ProvisioningClient
from aiprovisioner.deploy.runner import DeploymentRunner
from aiprovisioner.errors import DeploymentCancelled, ProvisioningError
from aiprovisioner.plan.models import ResourceKind

ALL_DEPENDENTS = [
    {"resource": "storage", "connectionName": "st1"},
    {"resource": "azure_ai_search", "connectionName": "srch"},
    {"resource": "registry", "connectionName": "cr"},
    {"resource": "bing_grounding", "connectionName": "bing"},
    {"resource": "bing_custom_grounding", "connectionName": "bingc"},
]

class RecordingClient(ProvisioningClient):
    """Records calls and the number of calls in flight."""

    def __init__(self, delay=0.0, fail_on=None):
        self.delay = delay
        self.fail_on = fail_on
        self.calls = []
        self.active = 0
        self.peak = 0
        self.lock = threading.Lock()

    def create(self, kind, params):
        with self.lock:
            self.calls.append((kind, params))
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            if kind == self.fail_on:
                raise RuntimeError("quota exceeded")
            return {"accountId": f"id-{kind.value}", "name": params["name"]}
        finally:
            with self.lock:
                self.active -= 1

def make_plan(manifest):
    return DeploymentRunner(manifest, DryRunProvisioner(manifest)).plan()

def test_outputs_are_threaded_into_dependents(make_manifest):
    """Search receives the storage account ID created before it."""
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS[:2])
    client = RecordingClient()
    resolved = Materializer(client).run(make_plan(manifest))

    assert [kind for kind, _ in client.calls] == [ResourceKind.STORAGE, ResourceKind.SEARCH]
    search_params = client.calls[1][1]
    assert search_params["storageAccountId"] == "id-storage"
    assert resolved[ResourceKind.STORAGE].outputs["connectionName"] == "st1"

def test_each_resource_created_once(make_manifest):
    manifest = make_manifest(enableMonitoring=True, dependentResources=ALL_DEPENDENTS)
    client = MagicMock(spec=ProvisioningClient)
    client.create.return_value = {"name": "x"}

    plan = make_plan(manifest)
    resolved = Materializer(client).run(plan)

    assert client.create.call_count == len(plan) == 6
    assert list(resolved) == plan.kinds

def test_interpolated_reference(make_manifest):
    manifest = make_manifest(dependentResources=[
        {"resource": "storage", "connectionName": "st1"},
        {"resource": "registry", "connectionName": "cr",
         "parameters": {"tags": {"storage": "account:${storage.accountId}"}}},
    ])
    client = RecordingClient()
    Materializer(client).run(make_plan(manifest))
    assert client.calls[1][1]["tags"] == {"storage": "account:id-storage"}

def test_empty_policy_resolves_missing_output_to_empty_string(make_manifest):
    manifest = make_manifest(
        missingDependencyPolicy="empty",
        dependentResources=[{"resource": "azure_ai_search", "connectionName": "srch"}],
    )
    client = RecordingClient()
    Materializer(client).run(make_plan(manifest))
    assert client.calls == [(ResourceKind.SEARCH, client.calls[0][1])]
    assert client.calls[0][1]["storageAccountId"] == ""

def test_failure_stops_run_without_rollback(make_manifest):
    """A failing resource halts the run; earlier resources are reported."""
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS)
    client = RecordingClient(fail_on=ResourceKind.REGISTRY)

    with pytest.raises(ProvisioningError) as excinfo:
        Materializer(client).run(make_plan(manifest))

    error = excinfo.value
    assert error.resource == "registry"
    assert isinstance(error.cause, RuntimeError)
    assert set(error.materialized) == {ResourceKind.STORAGE, ResourceKind.SEARCH}
    assert ResourceKind.BING_GROUNDING not in [kind for kind, _ in client.calls]

def test_cancel_before_start(make_manifest):
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS)
    cancel = threading.Event()
    cancel.set()
    client = RecordingClient()

    with pytest.raises(DeploymentCancelled) as excinfo:
        Materializer(client, cancel_event=cancel).run(make_plan(manifest))
    assert client.calls == []
    assert excinfo.value.materialized == {}

def test_cancel_between_resources(make_manifest):
    """Cancellation keeps resources created before the signal."""
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS)
    cancel = threading.Event()

    class CancellingClient(RecordingClient):
        def create(self, kind, params):
            outputs = super().create(kind, params)
            if kind == ResourceKind.SEARCH:
                cancel.set()
            return outputs

    client = CancellingClient()
    with pytest.raises(DeploymentCancelled) as excinfo:
        Materializer(client, cancel_event=cancel).run(make_plan(manifest))
    assert list(excinfo.value.materialized) == [ResourceKind.STORAGE, ResourceKind.SEARCH]
    assert len(client.calls) == 2

def test_worker_pool_cancel_stops_dispatch(make_manifest):
    """In-flight resources finish; nothing is dispatched after the signal."""
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS)
    cancel = threading.Event()

    class CancellingClient(RecordingClient):
        def create(self, kind, params):
            outputs = super().create(kind, params)
            if kind == ResourceKind.STORAGE:
                cancel.set()
            return outputs

    client = CancellingClient(delay=0.05)
    with pytest.raises(DeploymentCancelled) as excinfo:
        Materializer(client, max_workers=2, cancel_event=cancel).run(make_plan(manifest))

    called = {kind for kind, _ in client.calls}
    assert called == {ResourceKind.STORAGE, ResourceKind.REGISTRY}
    assert set(excinfo.value.materialized) == called

def test_worker_pool_respects_limit_and_order(make_manifest):
    manifest = make_manifest(enableMonitoring=True, dependentResources=ALL_DEPENDENTS)
    client = RecordingClient(delay=0.05)
    plan = make_plan(manifest)

    resolved = Materializer(client, max_workers=2).run(plan)

    assert client.peak <= 2
    assert len(client.calls) == len(plan)
    assert list(resolved) == plan.kinds
    called = [kind for kind, _ in client.calls]
    assert called.index(ResourceKind.STORAGE) < called.index(ResourceKind.SEARCH)
    assert client.calls[called.index(ResourceKind.SEARCH)][1]["storageAccountId"] == "id-storage"

def test_worker_pool_failure(make_manifest):
    manifest = make_manifest(dependentResources=ALL_DEPENDENTS)
    client = RecordingClient(delay=0.01, fail_on=ResourceKind.STORAGE)

    with pytest.raises(ProvisioningError) as excinfo:
        Materializer(client, max_workers=3).run(make_plan(manifest))

    assert excinfo.value.resource == "storage"
    # search depends on storage and is never dispatched
    assert ResourceKind.SEARCH not in [kind for kind, _ in client.calls]
    assert ResourceKind.SEARCH not in excinfo.value.materialized

def test_invalid_worker_count():
    with pytest.raises(ValueError):
        Materializer(MagicMock(), max_workers=0)
