"""
Runs an installed ltex-ls once with ``--version`` and checks that it starts and
reports its own version and the version of the Java runtime it runs on.

The output of the process is untrusted: parsing never raises, it returns a
failed ValidationResult carrying the raw stdout and stderr instead.
"""

import dataclasses
import json
import logging
import re
import subprocess
from typing import Any, Optional, Tuple, Union

from ltex_bootstrap.ltex_exceptions import ValidationError
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.ltex_settings import LtexSettings
from ltex_bootstrap.runtime_dependency_models import ProcessLaunchInfo, VersionInfo

VERSION_FLAG = "--version"
VERSION_MARKER = "ltex-ls"
LTEX_LS_VERSION_KEY = "ltex-ls"
JAVA_VERSION_KEY = "java"

_JAVA_VERSION_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?")


@dataclasses.dataclass
class ValidationResult:
    """
    Outcome of running ltex-ls with ``--version``.
    """

    success: bool
    version_info: Optional[VersionInfo] = None
    exit_code: Optional[int] = None
    signal: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    reason: Optional[str] = None

    def raise_for_failure(self) -> None:
        if not self.success:
            raise ValidationError(self.reason or "ltex-ls could not be validated", self.stdout, self.stderr)


def parse_java_major_version(java_version: str) -> Optional[int]:
    """
    Extracts the major version from a Java version string. Legacy versions are
    numbered ``1.x``, in which case the minor component is the real major version.
    """
    match = _JAVA_VERSION_PATTERN.search(java_version)
    if match is None:
        return None
    major_version = int(match.group(1))
    if major_version == 1 and match.group(2) is not None:
        major_version = int(match.group(2))
    return major_version


def parse_version_output(stdout: str) -> Tuple[Optional[VersionInfo], Optional[str]]:
    """
    Parses the JSON object printed by ``ltex-ls --version``.

    Returns:
        (version info, None) on success, (None, reason) otherwise
    """
    if VERSION_MARKER not in stdout:
        return None, "ltex-ls did not print expected version information"

    try:
        version_data: Any = json.loads(stdout)
    except ValueError:
        return None, "ltex-ls did not print valid JSON version information"

    if not isinstance(version_data, dict):
        return None, "ltex-ls did not print a JSON object"

    ltex_ls_version = version_data.get(LTEX_LS_VERSION_KEY)
    java_version = version_data.get(JAVA_VERSION_KEY)

    if not isinstance(ltex_ls_version, str) or not ltex_ls_version:
        return None, f"'{LTEX_LS_VERSION_KEY}' is missing from the version information"
    if not isinstance(java_version, str) or not java_version:
        return None, f"'{JAVA_VERSION_KEY}' is missing from the version information"

    java_major_version = parse_java_major_version(java_version)
    if java_major_version is None:
        return None, f"Could not parse Java version '{java_version}'"

    return (
        VersionInfo(
            ltex_ls_version=ltex_ls_version,
            java_version=java_version,
            java_major_version=java_major_version,
        ),
        None,
    )


def _to_text(output: Union[str, bytes, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class RuntimeValidator:
    """
    Spawns ltex-ls with ``--version`` and classifies the result.
    """

    def __init__(self, logger: LtexLogger, timeout: float = LtexSettings.VALIDATION_TIMEOUT):
        self.logger = logger
        self.timeout = timeout

    def validate(self, launch_info: ProcessLaunchInfo) -> ValidationResult:
        """
        Blocks for up to ``timeout`` seconds. Never raises for process failures.
        """
        launch_info = launch_info.with_args(VERSION_FLAG)
        self.logger.log("Testing ltex-ls...", logging.INFO)
        self.logger.log_executable(launch_info)

        if launch_info.shell:
            command: Union[str, list] = " ".join([launch_info.cmd, *launch_info.args])
        else:
            command = [launch_info.cmd, *launch_info.args]

        try:
            completed = subprocess.run(
                command,
                cwd=launch_info.cwd,
                env=launch_info.env or None,
                shell=launch_info.shell,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            result = ValidationResult(
                success=False,
                stdout=_to_text(e.stdout),
                stderr=_to_text(e.stderr),
                reason=f"ltex-ls did not terminate within {self.timeout} seconds",
            )
            self._log_failure(result)
            return result
        except OSError as e:
            result = ValidationResult(success=False, reason=f"Could not start ltex-ls: {e}")
            self._log_failure(result)
            return result

        result = self.classify(completed.returncode, completed.stdout, completed.stderr)
        if result.success:
            self.logger.log("Test successful!", logging.INFO)
        else:
            self._log_failure(result)
        return result

    @staticmethod
    def classify(returncode: int, stdout: Optional[str], stderr: Optional[str]) -> ValidationResult:
        stdout = stdout or ""
        stderr = stderr or ""

        if returncode < 0:
            return ValidationResult(
                success=False,
                signal=-returncode,
                stdout=stdout,
                stderr=stderr,
                reason=f"ltex-ls terminated due to signal {-returncode}",
            )
        if returncode != 0:
            return ValidationResult(
                success=False,
                exit_code=returncode,
                stdout=stdout,
                stderr=stderr,
                reason=f"ltex-ls terminated with non-zero exit code {returncode}",
            )

        version_info, reason = parse_version_output(stdout)
        return ValidationResult(
            success=version_info is not None,
            version_info=version_info,
            exit_code=returncode,
            stdout=stdout,
            stderr=stderr,
            reason=reason,
        )

    def _log_failure(self, result: ValidationResult) -> None:
        self.logger.log(f"Test failed: {result.reason}", logging.ERROR)
        self.logger.log("Stdout of ltex-ls:", logging.INFO)
        self.logger.log(result.stdout, logging.INFO)
        self.logger.log("Stderr of ltex-ls:", logging.INFO)
        self.logger.log(result.stderr, logging.INFO)
