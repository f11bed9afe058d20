"""
Multi-purpose logger used throughout ltex_bootstrap.

Every line is serialized as JSON and forwarded to the standard logging module. A
bounded in-memory history is kept so that failure reports can include the
diagnostics gathered during an acquisition attempt.
"""

import inspect
import json
import logging
import os
import time
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel

from ltex_bootstrap.runtime_dependency_models.resolved_dependency import ProcessLaunchInfo


class LogLine(BaseModel):
    """
    Represents a line in the log
    """

    time: str
    level: str
    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class HistoryEntry(BaseModel):
    timestamp: float
    text: str


class LtexLogger:
    """
    Logger class
    """

    # entries older than this many seconds are dropped from the history
    PRUNE_DURATION = 86400

    def __init__(self, name: str = "ltex_bootstrap") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self._entries: List[HistoryEntry] = []

    def log(self, debug_message: str, level: int) -> None:
        """
        Log the debug message using the logger
        """

        debug_message = debug_message.replace("'", '"').replace("\n", " ")

        # Collect details about the callee
        curframe = inspect.currentframe()
        calframe = inspect.getouterframes(curframe, 2)
        caller_file = calframe[1][1].split("/")[-1]
        caller_line = calframe[1][2]
        caller_name = calframe[1][3]

        self.logger.log(
            level=level,
            msg=json.dumps(
                LogLine(
                    time=time.strftime("%Y-%m-%d %H:%M:%S"),
                    level=logging.getLevelName(level),
                    caller_file=caller_file,
                    caller_name=caller_name,
                    caller_line=caller_line,
                    message=debug_message,
                ).model_dump()
            ),
        )
        self._append(debug_message)

    def log_executable(self, launch_info: ProcessLaunchInfo, level: int = logging.INFO) -> None:
        """
        Logs the command line, working directory and the environment variables that
        differ from the environment of the current process.
        """
        self.log(f"  Command: {json.dumps(launch_info.cmd)}", level)
        self.log(f"  Arguments: {json.dumps(list(launch_info.args))}", level)
        self.log(f"  cwd: {json.dumps(launch_info.cwd)}", level)
        self.log(f"  env: {json.dumps(self._changed_environment(launch_info.env))}", level)

    @staticmethod
    def _changed_environment(env: Optional[Mapping[str, str]]) -> Dict[str, str]:
        if env is None:
            return {}
        return {
            name: value for name, value in env.items() if os.environ.get(name) != value
        }

    def _append(self, text: str) -> None:
        now = time.time()
        while self._entries and now - self._entries[0].timestamp >= self.PRUNE_DURATION:
            self._entries.pop(0)
        self._entries.append(HistoryEntry(timestamp=now, text=text + "\n"))

    @property
    def content(self) -> str:
        """Concatenated history of all lines logged in the last day."""
        return "".join(entry.text for entry in self._entries)

    def clear(self) -> None:
        self._entries = []
