"""
Domain models — Pydantic types for the bundle control plane.

All models are re-exported here for convenient access:

    from bundlectl.core.models import ModuleRecord, BundleDetail, OperationResult, ViewState
"""

from bundlectl.core.models.bundle import (
    BundleDetail,
    BundleOperation,
    BundleState,
    ManifestEntry,
    ModuleRecord,
    UpdateRecord,
    allowed_operations,
)
from bundlectl.core.models.result import OperationResult
from bundlectl.core.models.view import ViewState

__all__ = [
    # bundle.py
    "BundleDetail",
    "BundleOperation",
    "BundleState",
    "ManifestEntry",
    "ModuleRecord",
    "UpdateRecord",
    "allowed_operations",
    # result.py
    "OperationResult",
    # view.py
    "ViewState",
]
