"""
Dependency configuration manager.

Decides which on-disk ltex-ls to use and, when none is available, plans the
download of the release matching the host platform.
"""

import logging
import os
import pathlib
from typing import Iterable, NamedTuple, Optional, Tuple

import semver

from ltex_bootstrap.ltex_config import LtexConfig
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.ltex_settings import LtexSettings
from ltex_bootstrap.ltex_utils import PlatformUtils
from ltex_bootstrap.runtime_dependency_models import (
    Architecture,
    Platform,
    ReleaseCatalog,
    ReleaseDescriptor,
)


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DownloadPlan:
    """
    A plan to download a specific release.

    Captures all information needed to download, verify and install it.
    """

    def __init__(
        self,
        descriptor: ReleaseDescriptor,
        url: str,
        name: str,
        installation_root: str,
        lib_dir: str,
        status: str = DownloadStatus.PENDING,
    ):
        """
        Initialize a download plan.

        Args:
            descriptor: The release descriptor looked up in the catalog
            url: URL to download from
            name: Human-readable name used in progress and log messages
            installation_root: Directory the scratch directories are created in
            lib_dir: Directory the extracted release is moved into
            status: Current download status
        """
        self.descriptor = descriptor
        self.url = url
        self.name = name
        self.installation_root = installation_root
        self.lib_dir = lib_dir
        self.status = status
        self.installed_path: Optional[str] = None
        self.error_message: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(archive={self.descriptor.archive_file_name}, "
            f"status={self.status}, url={self.url})"
        )


class PathSource:
    """Where a resolved ltex-ls directory came from."""

    CONFIGURED = "configured"
    INSTALLED = "installed"


class ResolvedPath(NamedTuple):
    path: str
    source: str


class PathResolver:
    """
    Picks the ltex-ls directory to use: an explicitly configured path first, then
    the highest semantic version installed below the lib directory.
    """

    def __init__(self, package_prefix: str):
        self.package_prefix = package_prefix

    def resolve(self, configured_path: Optional[str], lib_dir: str) -> Optional[ResolvedPath]:
        """
        Returns the directory to use and whether it was configured or found below
        ``lib_dir``, or None when neither yields a path.
        """
        configured_path = LtexConfig.normalize_path(configured_path)
        if LtexConfig.is_valid_path(configured_path):
            return ResolvedPath(configured_path, PathSource.CONFIGURED)
        installed_path = self.search_installation_root(lib_dir)
        if installed_path is None:
            return None
        return ResolvedPath(installed_path, PathSource.INSTALLED)

    def search_installation_root(self, lib_dir: str) -> Optional[str]:
        """
        Returns the installed version directory with the highest semantic version,
        or None. Entries whose names do not parse are ignored.
        """
        if not os.path.isdir(lib_dir):
            return None

        versions = []
        for name in os.listdir(lib_dir):
            if not name.startswith(self.package_prefix):
                continue
            if not os.path.isdir(os.path.join(lib_dir, name)):
                continue
            versions.append(name[len(self.package_prefix):])

        latest_version = self.get_latest_version(versions)
        if latest_version is None:
            return None
        return str(pathlib.PurePath(lib_dir, f"{self.package_prefix}{latest_version}"))

    @staticmethod
    def get_latest_version(versions: Iterable[str]) -> Optional[str]:
        valid_versions = [version for version in versions if semver.Version.is_valid(version)]
        if not valid_versions:
            return None
        return max(valid_versions, key=semver.Version.parse)


class DependencyConfigManager:
    """
    Manages the release catalog and the configuration and decides where ltex-ls
    comes from.
    """

    def __init__(
        self,
        release_catalog: ReleaseCatalog,
        ltex_config: LtexConfig,
        installation_root: str,
        logger: LtexLogger,
    ):
        """
        Initialize the dependency config manager.

        Args:
            release_catalog: Loaded release catalog
            ltex_config: Configuration with optional path overrides
            installation_root: Directory owned by the host application
            logger: Logger for messages
        """
        self.release_catalog = release_catalog
        self.ltex_config = ltex_config
        self.installation_root = installation_root
        self.logger = logger
        self.path_resolver = PathResolver(release_catalog.get_package_prefix())

    @property
    def lib_dir(self) -> str:
        return LtexSettings.get_lib_directory(self.installation_root)

    def ensure_lib_dir(self) -> None:
        if not os.path.isdir(self.lib_dir):
            self.logger.log(f"Creating '{self.lib_dir}'", logging.INFO)
            os.makedirs(self.lib_dir, exist_ok=True)

    def resolve_path(self) -> Optional[ResolvedPath]:
        return self.path_resolver.resolve(self.ltex_config.ltex_ls_path, self.lib_dir)

    def get_java_path(self) -> Optional[str]:
        path = LtexConfig.normalize_path(self.ltex_config.java_path)
        return path if LtexConfig.is_valid_path(path) else None

    def search_installed(self) -> Optional[str]:
        return self.path_resolver.search_installation_root(self.lib_dir)

    def create_download_plan(
        self, platform_id: Optional[Tuple[Platform, Architecture]] = None
    ) -> DownloadPlan:
        """
        Create a download plan for the release matching the host (or the given)
        platform and architecture.

        Raises:
            UnsupportedPlatformError: if the catalog has no release for the pair
        """
        if platform_id is None:
            platform_id = PlatformUtils.get_platform_id()
        descriptor = self.release_catalog.get_descriptor(*platform_id)
        return DownloadPlan(
            descriptor=descriptor,
            url=self.release_catalog.get_download_url(descriptor),
            name=f"{self.release_catalog.package_name} {descriptor.version}",
            installation_root=self.installation_root,
            lib_dir=self.lib_dir,
        )

    def mark_download_completed(
        self, plan: DownloadPlan, success: bool = True, error_message: Optional[str] = None
    ) -> None:
        """
        Mark a download plan as completed or failed.
        """
        plan.status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED
        plan.error_message = None if success else (error_message or "Download failed")
