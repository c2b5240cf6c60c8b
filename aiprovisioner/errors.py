"""Error types raised while planning and running a deployment."""
from typing import Dict, List, Optional


class DeploymentError(Exception):
    """Base class for all deployment failures."""
    pass


class ValidationError(DeploymentError):
    """Raised when the manifest is malformed or incomplete."""
    pass


class CycleError(DeploymentError):
    """Raised when resource references form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__(f"Circular resource reference: {' -> '.join(self.cycle)}")


class ProvisioningError(DeploymentError):
    """Raised when the provisioning collaborator fails for a resource.

    Resources materialized before the failure are left in place and listed
    in ``materialized``.
    """

    def __init__(self, resource: str, cause: BaseException, materialized: Optional[Dict] = None):
        self.resource = resource
        self.cause = cause
        self.materialized = dict(materialized or {})
        super().__init__(f"Provisioning failed for '{resource}': {cause}")


class DeploymentCancelled(DeploymentError):
    """Raised when a run is cancelled between resource materializations."""

    def __init__(self, materialized: Optional[Dict] = None):
        self.materialized = dict(materialized or {})
        super().__init__(f"Deployment cancelled after {len(self.materialized)} resource(s)")
