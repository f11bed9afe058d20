"""
Pydantic data models for runtime_dependencies.json.

The file is a static release catalog: one entry per (platform, architecture)
pair naming the release tag, version, archive file name and the SHA-256 digest
the downloaded archive must have.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ltex_bootstrap.ltex_exceptions import ConfigError, UnsupportedPlatformError


class Platform(str, Enum):
    LINUX = "linux"
    MAC = "mac"
    WINDOWS = "windows"


class Architecture(str, Enum):
    X64 = "x64"
    AARCH64 = "aarch64"


class ArchiveKind(str, Enum):
    TAR_GZ = "tar.gz"
    ZIP = "zip"

    @classmethod
    def from_file_name(cls, file_name: str) -> "ArchiveKind":
        """
        ``.zip`` selects the zip decoder, anything else is treated as a gzip-compressed tar.
        """
        return cls.ZIP if file_name.lower().endswith(".zip") else cls.TAR_GZ


class ReleaseDescriptor(BaseModel):
    """
    One downloadable build for a specific OS/CPU combination.
    """

    platform: Platform
    architecture: Architecture
    archive_kind: ArchiveKind = Field(..., alias="archiveType")
    tag: str
    version: str
    archive_file_name: str = Field(..., alias="archiveFileName")
    expected_digest: str = Field(..., alias="sha256", pattern=r"^[0-9a-fA-F]{64}$")

    class Config:
        frozen = True
        populate_by_name = True


class ReleaseCatalog(BaseModel):
    """
    Complete release catalog.

    Structure:
    {
      "_description": "...",
      "packageName": "ltex-ls-plus",
      "baseUrl": "https://.../releases/download/",
      "releases": [ReleaseDescriptor, ...]
    }
    """

    description: Optional[str] = Field(None, alias="_description")
    package_name: str = Field(..., alias="packageName")
    base_url: str = Field(..., alias="baseUrl")
    releases: List[ReleaseDescriptor] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReleaseCatalog":
        return cls(**data)

    @classmethod
    def from_json_file(cls, path: str) -> "ReleaseCatalog":
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    @staticmethod
    def build_archive_file_name(
        package_name: str,
        version: str,
        platform: Platform,
        architecture: Architecture,
        archive_kind: ArchiveKind,
    ) -> str:
        return f"{package_name}-{version}-{platform.value}-{architecture.value}.{archive_kind.value}"

    def supported_pairs(self) -> List[Tuple[Platform, Architecture]]:
        return sorted(
            {(release.platform, release.architecture) for release in self.releases},
            key=lambda pair: (pair[0].value, pair[1].value),
        )

    def get_descriptor(self, platform: Platform, architecture: Architecture) -> ReleaseDescriptor:
        """
        Returns the single descriptor known for the given platform and architecture.

        Raises:
            UnsupportedPlatformError: if the catalog has no entry for the pair
            ConfigError: if the catalog has more than one entry for the pair
        """
        matches = [
            release
            for release in self.releases
            if release.platform == platform and release.architecture == architecture
        ]
        if not matches:
            raise UnsupportedPlatformError(
                f"No {self.package_name} release is available for {platform.value}-{architecture.value}"
            )
        if len(matches) > 1:
            raise ConfigError(
                f"Release catalog lists {len(matches)} entries for {platform.value}-{architecture.value}"
            )
        return matches[0]

    def get_download_url(self, descriptor: ReleaseDescriptor) -> str:
        return f"{self.base_url.rstrip('/')}/{descriptor.tag}/{descriptor.archive_file_name}"

    def get_package_prefix(self) -> str:
        """
        Prefix of the installed version directories, e.g. ``ltex-ls-plus-``.
        """
        return f"{self.package_name}-"
