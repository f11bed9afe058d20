"""
Models describing the outcome of an acquisition: the validated dependency and
the information needed to launch it.
"""

import dataclasses
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


@dataclasses.dataclass
class ProcessLaunchInfo:
    """
    This class is used to store the information required to launch a process.
    """

    # The command to launch the process
    cmd: str

    # The arguments passed to the command
    args: List[str] = dataclasses.field(default_factory=list)

    # The environment variables to set for the process
    env: Dict[str, str] = dataclasses.field(default_factory=dict)

    # The working directory for the process
    cwd: Optional[str] = None

    # Whether the command has to be run through the shell (Windows .bat launchers)
    shell: bool = False

    def with_args(self, *args: str) -> "ProcessLaunchInfo":
        return dataclasses.replace(self, args=[*self.args, *args])

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


class VersionInfo(BaseModel):
    """
    Versions reported by ltex-ls when run with ``--version``.
    """

    ltex_ls_version: str
    java_version: str
    java_major_version: int


class ResolvedDependency(BaseModel):
    """
    A validated, runnable local copy of ltex-ls. Superseded, never mutated.
    """

    ltex_ls_path: str
    executable_path: str
    java_path: Optional[str] = None
    reported_version: Optional[str] = None
    java_version: Optional[str] = None
    java_major_version: Optional[int] = None

    class Config:
        frozen = True


class AcquisitionState(str, Enum):
    """
    States traversed by one acquisition attempt.
    """

    RESOLVING_PATH = "resolving_path"
    USING_CONFIGURED = "using_configured"
    USING_BUNDLED = "using_bundled"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    VALIDATING = "validating"
    READY = "ready"
    FAILED = "failed"


@dataclasses.dataclass
class AcquisitionResult:
    """
    Outcome of DependencyManager.install(): either a resolved dependency or a
    diagnostic message with the raw output captured while validating.
    """

    success: bool
    dependency: Optional[ResolvedDependency] = None
    message: Optional[str] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    attempts: int = 0
    cancelled: bool = False
    # log history at the time of a failed attempt
    log: Optional[str] = None
    states: List[AcquisitionState] = dataclasses.field(default_factory=list)
