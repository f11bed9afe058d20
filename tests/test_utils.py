"""
Helpers for building release archives, stub ltex-ls launchers and release
catalogs pointing at a mocked release host.
"""

import hashlib
import io
import stat
import tarfile
import zipfile

from ltex_bootstrap.runtime_dependency_models import ReleaseCatalog

RELEASE_BASE_URL = "https://releases.example.org/download/"
LTEX_LS_VERSION = "18.4.0"
VERSION_OUTPUT = '{"ltex-ls":"18.4.0","java":"21.0.2"}'


def stub_launcher(stdout: str = VERSION_OUTPUT, exit_code: int = 0) -> str:
    return f"#!/bin/sh\necho '{stdout}'\nexit {exit_code}\n"


def write_stub_installation(
    directory, stdout: str = VERSION_OUTPUT, exit_code: int = 0, script_name: str = "ltex-ls-plus"
):
    """Creates ``<directory>/bin/<script_name>`` printing ``stdout``."""
    bin_dir = directory / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    script = bin_dir / script_name
    script.write_text(stub_launcher(stdout, exit_code))
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return directory


def build_archive(archive_kind: str, root_name: str = f"ltex-ls-plus-{LTEX_LS_VERSION}", extra_files=None):
    """
    Returns the bytes of a zip or tar.gz archive holding ``<root_name>/bin/ltex-ls-plus``
    plus any ``extra_files`` (archive path -> content).
    """
    entries = {f"{root_name}/bin/ltex-ls-plus": (stub_launcher(), 0o755)}
    entries[f"{root_name}/lib/ltex-ls-plus.jar"] = ("not really a jar", 0o644)
    for name, content in (extra_files or {}).items():
        entries[name] = (content, 0o644)

    buffer = io.BytesIO()
    if archive_kind == "zip":
        with zipfile.ZipFile(buffer, "w") as zip_ref:
            for name, (content, mode) in entries.items():
                info = zipfile.ZipInfo(name)
                info.external_attr = mode << 16
                zip_ref.writestr(info, content)
    else:
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar_ref:
            for name, (content, mode) in entries.items():
                data = content.encode()
                info = tarfile.TarInfo(name)
                info.size = len(data)
                info.mode = mode
                tar_ref.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def sha256_of(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def make_catalog(archive_file_name: str, digest: str, archive_kind: str = "zip") -> ReleaseCatalog:
    return ReleaseCatalog.from_dict(
        {
            "_description": "test catalog",
            "packageName": "ltex-ls-plus",
            "baseUrl": RELEASE_BASE_URL,
            "releases": [
                {
                    "platform": "linux",
                    "architecture": "x64",
                    "archiveType": archive_kind,
                    "tag": LTEX_LS_VERSION,
                    "version": LTEX_LS_VERSION,
                    "archiveFileName": archive_file_name,
                    "sha256": digest,
                }
            ],
        }
    )
