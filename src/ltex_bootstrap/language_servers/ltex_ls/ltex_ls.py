"""
Provides the acquisition of ltex-ls: locating, downloading, verifying, installing
and test-running the language server, and building the launch descriptor used to
start it.
"""

import dataclasses
import logging
import os
import threading
import webbrowser
from pathlib import PurePath
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import requests

from ltex_bootstrap.ltex_config import LtexConfig
from ltex_bootstrap.ltex_exceptions import (
    ConfigError,
    DownloadCancelledError,
    LayoutError,
    LtexBootstrapException,
    ValidationError,
)
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.ltex_settings import LtexSettings
from ltex_bootstrap.ltex_utils import PlatformUtils
from ltex_bootstrap.progress import CancellationToken, ProgressSink, ProgressStack
from ltex_bootstrap.runtime_dependency_config import DependencyConfigManager, DownloadPlan, PathSource
from ltex_bootstrap.runtime_dependency_downloader import DependencyDownloader, DependencyInstaller
from ltex_bootstrap.runtime_dependency_models import (
    AcquisitionResult,
    AcquisitionState,
    Architecture,
    Platform,
    ProcessLaunchInfo,
    ReleaseCatalog,
    ResolvedDependency,
)
from ltex_bootstrap.language_servers.ltex_ls.runtime_validator import RuntimeValidator

TRY_AGAIN = "Try again"
OFFLINE_INSTRUCTIONS = "Offline instructions"


class RetryPrompt(Protocol):
    """
    Asks the user how to continue after a failed acquisition. Returns the selected
    choice or None if the prompt was dismissed.
    """

    def ask(self, message: str, choices: List[str]) -> Optional[str]:
        ...


class NonInteractivePrompt:
    def ask(self, message: str, choices: List[str]) -> Optional[str]:
        return None


@dataclasses.dataclass
class AcquisitionSession:
    """
    State owned by one host session. A new acquisition supersedes the previous
    resolved dependency instead of mutating it.
    """

    resolved_dependency: Optional[ResolvedDependency] = None
    last_result: Optional[AcquisitionResult] = None


class DependencyManager:
    """
    Ensures that a working ltex-ls is present.

    Resolution order: the configured ``ltex-ls.path``, the newest version already
    installed below ``<installation root>/lib``, and finally a download of the
    release matching the host platform. The resolved ltex-ls is then run once with
    ``--version``. A failed attempt is offered for retry through the RetryPrompt,
    at most ``max_attempts`` times.
    """

    def __init__(
        self,
        config: LtexConfig,
        logger: LtexLogger,
        installation_root: Optional[str] = None,
        release_catalog: Optional[ReleaseCatalog] = None,
        prompt: Optional[RetryPrompt] = None,
        validator: Optional[RuntimeValidator] = None,
        progress_sink: Optional[ProgressSink] = None,
        http_session: Optional[requests.Session] = None,
        platform_id: Optional[Tuple[Platform, Architecture]] = None,
        open_url: Callable[[str], Any] = webbrowser.open,
        max_attempts: int = 3,
        tolerate_extra_directories: bool = False,
    ):
        self.config = config
        self.logger = logger
        self.installation_root = (
            installation_root or config.installation_root or LtexSettings.get_installation_root()
        )
        self.release_catalog = release_catalog or self.load_release_catalog()
        self.prompt = prompt or NonInteractivePrompt()
        self.validator = validator or RuntimeValidator(logger)
        self.progress_sink = progress_sink
        self.platform_id = platform_id or PlatformUtils.get_platform_id()
        self.open_url = open_url
        self.max_attempts = max_attempts
        self.session = AcquisitionSession()
        self.download_plan: Optional[DownloadPlan] = None
        self._install_lock = threading.Lock()

        self.config_manager = DependencyConfigManager(
            release_catalog=self.release_catalog,
            ltex_config=config,
            installation_root=self.installation_root,
            logger=logger,
        )
        self.downloader = DependencyDownloader(
            self.config_manager,
            logger,
            installer=DependencyInstaller(logger, tolerate_extra_directories),
            session=http_session,
        )

    @staticmethod
    def load_release_catalog() -> ReleaseCatalog:
        return ReleaseCatalog.from_json_file(
            str(PurePath(os.path.dirname(__file__), "runtime_dependencies.json"))
        )

    @property
    def is_windows(self) -> bool:
        return self.platform_id[0] == Platform.WINDOWS

    def install(
        self,
        session: Optional[AcquisitionSession] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> AcquisitionResult:
        """
        Runs acquisition attempts until one succeeds, the user does not ask for a
        retry, or ``max_attempts`` is reached. The outcome is recorded in ``session``.
        Concurrent calls are serialized, only one acquisition runs at a time.
        """
        with self._install_lock:
            return self._install(session, cancellation)

    def _install(
        self,
        session: Optional[AcquisitionSession],
        cancellation: Optional[CancellationToken],
    ) -> AcquisitionResult:
        if session is not None:
            self.session = session

        attempts = 0
        while True:
            attempts += 1
            result = self._attempt(cancellation)
            result.attempts = attempts
            self.session.last_result = result

            if result.success:
                self.session.resolved_dependency = result.dependency
                return result
            result.log = self.logger.content

            if result.cancelled:
                return result

            if attempts >= self.max_attempts:
                self.logger.log(
                    f"Giving up after {attempts} failed attempts to install ltex-ls", logging.ERROR
                )
                return result

            choice = self.prompt.ask(
                f"{result.message} You might want to try offline installation.",
                [TRY_AGAIN, OFFLINE_INSTRUCTIONS],
            )
            if choice == TRY_AGAIN:
                continue
            if choice == OFFLINE_INSTRUCTIONS:
                self.open_url(LtexSettings.OFFLINE_INSTRUCTIONS_URL)
            return result

    def reset(self) -> AcquisitionSession:
        """
        Drops the resolved dependency by starting a new session.
        """
        self.session = AcquisitionSession()
        return self.session

    def _attempt(self, cancellation: Optional[CancellationToken]) -> AcquisitionResult:
        states: List[AcquisitionState] = []

        def enter(state: AcquisitionState) -> None:
            states.append(state)
            self.logger.log(f"Acquisition state: {state.value}", logging.DEBUG)

        enter(AcquisitionState.RESOLVING_PATH)
        try:
            ltex_ls_path = self._resolve_ltex_ls_path(enter, cancellation)
        except DownloadCancelledError as e:
            enter(AcquisitionState.FAILED)
            self.logger.log(f"Download of ltex-ls was cancelled: {e}", logging.INFO)
            return AcquisitionResult(
                success=False, message="Download of ltex-ls was cancelled.", cancelled=True, states=states
            )
        except (LtexBootstrapException, OSError) as e:
            enter(AcquisitionState.FAILED)
            self.logger.log(f"Download or extraction of ltex-ls failed: {e}", logging.ERROR)
            self._log_offline_hint()
            return AcquisitionResult(
                success=False, message=f"Could not install ltex-ls: {e}", states=states
            )

        self.logger.log(f"Using ltex-ls from '{ltex_ls_path}'", logging.INFO)
        java_path = self.config_manager.get_java_path()
        if java_path is not None:
            self.logger.log(f"Using Java from '{java_path}' (set in ltex.java.path)", logging.INFO)
        else:
            self.logger.log("Using Java bundled with ltex-ls", logging.INFO)

        enter(AcquisitionState.VALIDATING)
        launch_info = self.build_launch_info(ltex_ls_path, java_path)
        validation = self.validator.validate(launch_info)
        try:
            validation.raise_for_failure()
        except ValidationError as e:
            enter(AcquisitionState.FAILED)
            self._log_offline_hint()
            return AcquisitionResult(
                success=False,
                message=f"Could not run ltex-ls: {e}",
                stdout=e.stdout,
                stderr=e.stderr,
                states=states,
            )

        enter(AcquisitionState.READY)
        version_info = validation.version_info
        dependency = ResolvedDependency(
            ltex_ls_path=ltex_ls_path,
            executable_path=self.get_script_path(ltex_ls_path),
            java_path=java_path,
            reported_version=version_info.ltex_ls_version,
            java_version=version_info.java_version,
            java_major_version=version_info.java_major_version,
        )
        return AcquisitionResult(
            success=True,
            dependency=dependency,
            stdout=validation.stdout,
            stderr=validation.stderr,
            states=states,
        )

    def _resolve_ltex_ls_path(
        self,
        enter: Callable[[AcquisitionState], None],
        cancellation: Optional[CancellationToken],
    ) -> str:
        # try 0: use ltex-ls.path
        # try 1: use lib/ (don't download)
        # try 2: download and use lib/
        self.config_manager.ensure_lib_dir()
        lib_dir = self.config_manager.lib_dir

        resolved = self.config_manager.resolve_path()
        if resolved is not None and resolved.source == PathSource.CONFIGURED:
            self.logger.log(f"ltex.ltex-ls.path set to '{resolved.path}'", logging.INFO)
            if not os.path.isdir(resolved.path):
                raise ConfigError(f"ltex.ltex-ls.path '{resolved.path}' is not a directory")
            enter(AcquisitionState.USING_CONFIGURED)
            return resolved.path

        self.logger.log("ltex.ltex-ls.path not set", logging.INFO)
        self.logger.log(f"Searching for ltex-ls in '{lib_dir}'", logging.INFO)
        if resolved is not None:
            self.logger.log(f"ltex-ls found in '{resolved.path}'", logging.INFO)
            enter(AcquisitionState.USING_BUNDLED)
            return resolved.path

        self.logger.log(f"Could not find a version of ltex-ls in '{lib_dir}'", logging.INFO)
        self.logger.log("Initiating download of ltex-ls", logging.INFO)
        plan = self.config_manager.create_download_plan(self.platform_id)
        self.download_plan = plan
        progress = ProgressStack(f"Downloading and extracting {plan.name}", self.progress_sink)
        self.downloader.download_dependency(plan, progress, cancellation, on_state=enter)
        progress.finish_task()

        installed_path = self.config_manager.search_installed()
        if installed_path is None:
            raise LayoutError(f"Could not download or extract ltex-ls to '{lib_dir}'")
        self.logger.log(f"ltex-ls found in '{installed_path}'", logging.INFO)
        return installed_path

    def _log_offline_hint(self) -> None:
        self.logger.log(
            f"You might want to try offline installation, see {LtexSettings.OFFLINE_INSTRUCTIONS_URL}",
            logging.INFO,
        )

    def get_script_path(self, ltex_ls_path: str) -> str:
        script_name = self.release_catalog.package_name + (".bat" if self.is_windows else "")
        return str(PurePath(ltex_ls_path, "bin", script_name))

    def build_launch_info(self, ltex_ls_path: str, java_path: Optional[str]) -> ProcessLaunchInfo:
        """
        Builds the command line and environment used to start ltex-ls.
        """
        env = {name: value for name, value in os.environ.items() if name != "JAVA_HOME"}
        if java_path is not None:
            env["JAVA_HOME"] = java_path

        java_arguments = []
        if self.config.java_initial_heap_size is not None:
            java_arguments.append(f"-Xms{self.config.java_initial_heap_size}m")
        if self.config.java_maximum_heap_size is not None:
            java_arguments.append(f"-Xmx{self.config.java_maximum_heap_size}m")
        env["JAVA_OPTS"] = " ".join(java_arguments)

        script_path = self.get_script_path(ltex_ls_path)
        if self.is_windows:
            return ProcessLaunchInfo(cmd=f'"{script_path}"', args=[], env=env, shell=True)
        return ProcessLaunchInfo(cmd=script_path, args=[], env=env)

    def get_executable(self) -> ProcessLaunchInfo:
        """
        Returns the launch descriptor of the resolved ltex-ls.

        Raises:
            ConfigError: if no ltex-ls has been resolved in this session
        """
        dependency = self.session.resolved_dependency
        if dependency is None:
            raise ConfigError("Could not get ltex-ls executable, ltex-ls has not been installed")
        return self.build_launch_info(dependency.ltex_ls_path, dependency.java_path)

    def status(self) -> Dict[str, Any]:
        dependency = self.session.resolved_dependency
        return {
            "installation_root": self.installation_root,
            "lib_dir": self.config_manager.lib_dir,
            "ltex_ls_path": dependency.ltex_ls_path if dependency else None,
            "java_path": dependency.java_path if dependency else None,
            "ltex_ls_version": dependency.reported_version if dependency else None,
            "java_version": dependency.java_version if dependency else None,
            "java_major_version": dependency.java_major_version if dependency else None,
            "download_status": self.download_plan.status if self.download_plan else None,
            "download_error": self.download_plan.error_message if self.download_plan else None,
        }

    def format_status(self) -> str:
        return "\n".join(
            f"{key}: {value if value is not None else 'n/a'}" for key, value in self.status().items()
        )
