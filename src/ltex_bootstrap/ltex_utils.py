"""
This file contains various utility functions like platform detection, downloading
files, verifying digests and extracting archives.
"""

import hashlib
import logging
import os
import platform
import tarfile
import time
import zipfile
import zlib
from typing import Optional, Tuple
from urllib.parse import urljoin

import requests

from ltex_bootstrap.ltex_exceptions import (
    ExtractionError,
    HttpStatusError,
    IntegrityError,
    NetworkError,
    RedirectError,
)
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.ltex_settings import LtexSettings
from ltex_bootstrap.progress import CancellationToken, ProgressStack
from ltex_bootstrap.runtime_dependency_models import ArchiveKind, Architecture, Platform

REDIRECT_STATUS_CODES = (301, 302, 307)


class PlatformUtils:
    """
    This class provides utilities for platform detection and identification.
    """

    @staticmethod
    def get_platform_id() -> Tuple[Platform, Architecture]:
        """
        Returns the (platform, architecture) pair of the host, named the way the
        release catalog names them.
        """
        system = platform.system()
        if system == "Windows":
            platform_id = Platform.WINDOWS
        elif system == "Darwin":
            platform_id = Platform.MAC
        else:
            platform_id = Platform.LINUX

        machine = platform.machine().lower()
        architecture = Architecture.AARCH64 if machine in ("arm64", "aarch64") else Architecture.X64
        return platform_id, architecture


class FileUtils:
    """
    Utility functions for downloading, verifying and extracting files
    """

    @staticmethod
    def download_file(
        logger: LtexLogger,
        url: str,
        target_path: str,
        progress: Optional[ProgressStack] = None,
        cancellation: Optional[CancellationToken] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
    ) -> None:
        """
        Downloads the file from the given URL to the given path, following 301/302/307
        redirects by hand so that a redirect without location header can be reported.

        Raises:
            NetworkError: on transport failures
            HttpStatusError: on a status that is neither 2xx nor a followed redirect
            RedirectError: on a redirect without location header or too many redirects
            DownloadCancelledError: if ``cancellation`` was triggered
        """
        if session is None:
            session = requests.Session()
        current_url = url

        for _ in range(LtexSettings.MAX_REDIRECTS + 1):
            if cancellation is not None:
                cancellation.raise_if_cancelled()

            try:
                response = session.get(
                    current_url,
                    headers={"User-Agent": LtexSettings.USER_AGENT},
                    stream=True,
                    allow_redirects=False,
                    timeout=timeout,
                )
            except requests.RequestException as e:
                FileUtils._remove_partial_file(logger, target_path)
                raise NetworkError(f"Could not download {current_url}: {e}") from e

            with response:
                if response.status_code in REDIRECT_STATUS_CODES:
                    location = response.headers.get("location")
                    if not location:
                        raise RedirectError(response.status_code, current_url)
                    current_url = urljoin(current_url, location)
                    logger.log(f"Redirected to '{current_url}'", logging.INFO)
                    continue

                if not 200 <= response.status_code < 300:
                    raise HttpStatusError(response.status_code, current_url)

                FileUtils._write_response(logger, response, target_path, progress, cancellation)
                return

        raise RedirectError(
            302, url, message=f"Exceeded {LtexSettings.MAX_REDIRECTS} redirects while downloading {url}"
        )

    @staticmethod
    def _write_response(
        logger: LtexLogger,
        response: requests.Response,
        target_path: str,
        progress: Optional[ProgressStack],
        cancellation: Optional[CancellationToken],
    ) -> None:
        content_length = response.headers.get("content-length", "")
        total_bytes = int(content_length) if content_length.isdigit() else 0
        total_mb = round(total_bytes / 1e6)
        downloaded_bytes = 0
        orig_task_name = progress.get_task_name() if progress is not None else ""
        last_task_name_update = time.monotonic()

        if progress is not None:
            progress.update_task(
                0, f"{orig_task_name}  0MB/{total_mb}MB" if total_bytes > 0 else orig_task_name
            )

        try:
            with open(target_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=LtexSettings.DOWNLOAD_CHUNK_SIZE):
                    if cancellation is not None:
                        cancellation.raise_if_cancelled()
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded_bytes += len(chunk)

                    if total_bytes > 0 and progress is not None:
                        now = time.monotonic()
                        if now - last_task_name_update >= LtexSettings.PROGRESS_UPDATE_INTERVAL:
                            last_task_name_update = now
                            downloaded_mb = round(downloaded_bytes / 1e6)
                            progress.update_task(
                                downloaded_bytes / total_bytes,
                                f"{orig_task_name}  {downloaded_mb}MB/{total_mb}MB",
                            )
                f.flush()
        except requests.RequestException as e:
            FileUtils._remove_partial_file(logger, target_path)
            raise NetworkError(f"Connection lost while downloading {response.url}: {e}") from e
        except Exception:
            FileUtils._remove_partial_file(logger, target_path)
            raise

        if progress is not None:
            progress.update_task(1, orig_task_name)

    @staticmethod
    def _remove_partial_file(logger: LtexLogger, path: str) -> None:
        if not os.path.exists(path):
            return
        try:
            os.remove(path)
        except OSError as e:
            logger.log(f"Could not delete '{path}', leaving it on disk: {e}", logging.WARNING)

    @staticmethod
    def compute_sha256(path: str, chunk_size: int = 1024 * 1024) -> str:
        digest = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()

    @staticmethod
    def verify_file(path: str, expected_digest: str) -> None:
        """
        Compares the SHA-256 digest of the file with the expected hex digest.

        Raises:
            IntegrityError: if the digests differ
        """
        actual_digest = FileUtils.compute_sha256(path)
        if actual_digest.lower() != expected_digest.strip().lower():
            raise IntegrityError(path, expected_digest.lower(), actual_digest)

    @staticmethod
    def extract_archive(
        logger: LtexLogger, archive_path: str, target_dir: str, archive_kind: Optional[ArchiveKind] = None
    ) -> None:
        """
        Unpacks all entries of the archive into ``target_dir`` keeping the internal
        directory structure. The decoder is chosen from the file extension unless
        ``archive_kind`` is given.

        Raises:
            ExtractionError: if the archive is corrupt or holds unsafe members
        """
        if archive_kind is None:
            archive_kind = ArchiveKind.from_file_name(archive_path)
        logger.log(f"Extracting '{archive_path}' to '{target_dir}'", logging.INFO)
        os.makedirs(target_dir, exist_ok=True)

        try:
            FileUtils._extract(archive_path, target_dir, archive_kind)
        except (tarfile.TarError, zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, zlib.error) as e:
            raise ExtractionError(f"Could not extract '{archive_path}': {e}") from e

    @staticmethod
    def _extract(archive_path: str, target_dir: str, archive_kind: ArchiveKind) -> None:
        if archive_kind == ArchiveKind.ZIP:
            with zipfile.ZipFile(archive_path, "r") as zip_ref:
                for info in zip_ref.infolist():
                    extracted_path = zip_ref.extract(info, target_dir)
                    # zipfile drops the unix permission bits stored by the archiver
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir() and os.name == "posix":
                        os.chmod(extracted_path, mode)
        else:
            with tarfile.open(archive_path, "r:gz") as tar_ref:
                if hasattr(tarfile, "data_filter"):
                    tar_ref.extractall(target_dir, filter="data")
                else:
                    tar_ref.extractall(target_dir)
