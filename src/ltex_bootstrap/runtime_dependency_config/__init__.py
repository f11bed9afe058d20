"""
Runtime dependency configuration management.

This package handles:
1. Resolving the ltex-ls directory from configuration and the installation root
2. Planning the download of the release matching the host platform
"""

from .config_manager import (
    DependencyConfigManager,
    DownloadPlan,
    DownloadStatus,
    PathResolver,
    PathSource,
    ResolvedPath,
)

__all__ = [
    "DependencyConfigManager",
    "DownloadPlan",
    "DownloadStatus",
    "PathResolver",
    "PathSource",
    "ResolvedPath",
]
