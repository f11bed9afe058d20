"""
Runtime dependency models for ltex-ls.

This package provides Pydantic data models for the release catalog and for the
result of an acquisition.
"""

from .runtime_dependencies import (
    ArchiveKind,
    Architecture,
    Platform,
    ReleaseCatalog,
    ReleaseDescriptor,
)
from .resolved_dependency import (
    AcquisitionResult,
    AcquisitionState,
    ProcessLaunchInfo,
    ResolvedDependency,
    VersionInfo,
)

__all__ = [
    # Release catalog
    "ArchiveKind",
    "Architecture",
    "Platform",
    "ReleaseCatalog",
    "ReleaseDescriptor",
    # Acquisition result
    "AcquisitionResult",
    "AcquisitionState",
    "ProcessLaunchInfo",
    "ResolvedDependency",
    "VersionInfo",
]
