"""
Progress reporting for long-running acquisition steps.

A ProgressStack represents one logical task. Sub-tasks are started with a weight
(fraction of the parent's span); when a sub-task finishes normally the parent
advances by the full weight, regardless of how many intermediate updates the
sub-task made.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol

from ltex_bootstrap.ltex_exceptions import DownloadCancelledError


class ProgressSink(Protocol):
    """
    Receives progress events. ``increment`` is in percent of the whole task.
    """

    def report(self, increment: float, message: str) -> None:
        ...


class NullProgressSink:
    def report(self, increment: float, message: str) -> None:
        pass


class LoggingProgressSink:
    """
    Forwards progress events to a LtexLogger at DEBUG level.
    """

    def __init__(self, logger):
        self.logger = logger
        self.percentage = 0.0

    def report(self, increment: float, message: str) -> None:
        self.percentage += increment
        self.logger.log(f"{message} ({self.percentage:.0f}%)", logging.DEBUG)


@dataclass
class _Task:
    name: str
    size: float
    progress: float = 0.0


class ProgressStack:
    """
    Stack of nested weighted tasks reporting to a ProgressSink.
    """

    def __init__(self, name: str, sink: Optional[ProgressSink] = None):
        self.sink = sink if sink is not None else NullProgressSink()
        self._tasks: List[_Task] = []
        self._last_reported = 0.0
        self.start_task(1.0, name)

    def start_task(self, size: float, name: str) -> None:
        self._tasks.append(_Task(name=name, size=size))
        self._show_progress()

    def update_task(self, progress: float, name: Optional[str] = None) -> None:
        task = self._tasks[-1]
        task.progress = min(max(progress, 0.0), 1.0)
        if name is not None:
            task.name = name
        self._show_progress()

    def finish_task(self) -> None:
        """
        Completes the innermost task and advances its parent by the task's weight.
        """
        task = self._tasks.pop()
        if self._tasks:
            parent = self._tasks[-1]
            parent.progress = min(parent.progress + task.size, 1.0)
        else:
            self._tasks.append(_Task(name=task.name, size=task.size, progress=1.0))
        self._show_progress()

    def abort_task(self) -> None:
        """
        Removes the innermost task without advancing its parent.
        """
        if len(self._tasks) > 1:
            self._tasks.pop()

    @contextmanager
    def task(self, size: float, name: str) -> Iterator["ProgressStack"]:
        self.start_task(size, name)
        try:
            yield self
        except BaseException:
            self.abort_task()
            raise
        self.finish_task()

    def get_task_name(self) -> str:
        return self._tasks[-1].name

    def get_progress(self) -> float:
        """
        Completion fraction of the outermost task.
        """
        total = 0.0
        span = 1.0
        for i, task in enumerate(self._tasks):
            if i > 0:
                span *= task.size
            total += span * task.progress
        return min(total, 1.0)

    def _show_progress(self) -> None:
        progress = self.get_progress()
        increment = 100 * (progress - self._last_reported)
        self._last_reported = progress
        self.sink.report(increment, self.get_task_name())


class CancellationToken:
    """
    Thread-safe flag a caller sets to stop a running download.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise DownloadCancelledError("Download was cancelled")
