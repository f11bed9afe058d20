"""
Dependency downloader implementation.

Runs the download branch of an acquisition: download, verify, extract and
install, strictly in sequence.
"""

import logging
import os
import tempfile
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from ltex_bootstrap.ltex_exceptions import LtexBootstrapException
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.ltex_settings import LtexSettings
from ltex_bootstrap.ltex_utils import FileUtils
from ltex_bootstrap.progress import CancellationToken, ProgressStack
from ltex_bootstrap.runtime_dependency_config.config_manager import (
    DependencyConfigManager,
    DownloadPlan,
    DownloadStatus,
)
from ltex_bootstrap.runtime_dependency_downloader.installer import DependencyInstaller
from ltex_bootstrap.runtime_dependency_models import AcquisitionState, ArchiveKind


class DependencyDownloader:
    """
    Downloads, verifies, extracts and installs a planned release.
    """

    def __init__(
        self,
        config_manager: DependencyConfigManager,
        logger: LtexLogger,
        installer: Optional[DependencyInstaller] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the dependency downloader.

        Args:
            config_manager: The DependencyConfigManager creating the download plans
            logger: Logger for progress and error messages
            installer: Installer moving the extracted release into place
            session: requests session used for the download
        """
        self.config_manager = config_manager
        self.logger = logger
        self.installer = installer or DependencyInstaller(logger)
        self.session = session

    def download_dependency(
        self,
        plan: DownloadPlan,
        progress: ProgressStack,
        cancellation: Optional[CancellationToken] = None,
        on_state: Optional[Callable[[AcquisitionState], None]] = None,
    ) -> str:
        """
        Execute a download plan.

        Any failure aborts the whole plan; the scratch directory is removed on a
        best-effort basis and the error propagates.

        Returns:
            Path of the installed release directory
        """

        def enter(state: AcquisitionState) -> None:
            if on_state is not None:
                on_state(state)

        plan.status = DownloadStatus.IN_PROGRESS
        scratch_dir: Optional[str] = None

        try:
            with progress.task(0.1, f"Downloading {plan.name}"):
                archive_name = os.path.basename(urlparse(plan.url).path)
                if not archive_name:
                    raise LtexBootstrapException(f"Could not get path name from URL '{plan.url}'")
                self.config_manager.ensure_lib_dir()
                scratch_dir = tempfile.mkdtemp(
                    prefix=LtexSettings.TEMP_DIR_PREFIX, dir=plan.installation_root
                )
                archive_path = os.path.join(scratch_dir, archive_name)

            enter(AcquisitionState.DOWNLOADING)
            with progress.task(0.7, f"Downloading {plan.name}"):
                self.logger.log(
                    f"Downloading {plan.name} from '{plan.url}' to '{archive_path}'", logging.INFO
                )
                FileUtils.download_file(
                    self.logger,
                    plan.url,
                    archive_path,
                    progress=progress,
                    cancellation=cancellation,
                    session=self.session,
                )

            enter(AcquisitionState.VERIFYING)
            with progress.task(0.1, f"Verifying {plan.name}"):
                FileUtils.verify_file(archive_path, plan.descriptor.expected_digest)

            enter(AcquisitionState.EXTRACTING)
            with progress.task(0.05, f"Extracting {plan.name}"):
                FileUtils.extract_archive(
                    self.logger, archive_path, scratch_dir, ArchiveKind.from_file_name(archive_name)
                )

            enter(AcquisitionState.INSTALLING)
            with progress.task(0.05, f"Installing {plan.name}"):
                installed_path = self.installer.install(scratch_dir, plan.lib_dir)

        except Exception as e:
            self.logger.log(f"Failed to download {plan.name}: {e}", logging.ERROR)
            self.config_manager.mark_download_completed(plan, success=False, error_message=str(e))
            if scratch_dir is not None:
                self.installer.remove_scratch_directory(scratch_dir)
            raise

        plan.installed_path = installed_path
        self.config_manager.mark_download_completed(plan, success=True)
        self.logger.log(f"Successfully installed {plan.name} to '{installed_path}'", logging.INFO)
        return installed_path
