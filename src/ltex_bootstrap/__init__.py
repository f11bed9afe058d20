"""
ltex_bootstrap locates, downloads, verifies, installs and test-runs the LTeX+
language server (ltex-ls-plus).
"""

from ltex_bootstrap.language_servers.ltex_ls import AcquisitionSession, DependencyManager
from ltex_bootstrap.ltex_config import LtexConfig
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.runtime_dependency_models import (
    AcquisitionResult,
    ProcessLaunchInfo,
    ResolvedDependency,
)

__all__ = [
    "AcquisitionResult",
    "AcquisitionSession",
    "DependencyManager",
    "LtexConfig",
    "LtexLogger",
    "ProcessLaunchInfo",
    "ResolvedDependency",
]
