"""madOS iwd backend - Task runners.

A task runner executes blocking work (daemon queries) and reports the
outcome through callbacks.  The dispatcher only ever sees the callbacks,
so it does not care whether the work ran inline or on a worker thread.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class TaskRunner(ABC):
    """Abstract interface for running blocking work."""

    @abstractmethod
    def run(self, work: Callable[[], Any],
            on_success: SuccessCallback,
            on_error: ErrorCallback) -> None:
        """Run *work* and pass its result or exception to a callback."""


class InlineTaskRunner(TaskRunner):
    """Run work synchronously in the calling thread."""

    def run(self, work, on_success, on_error):
        try:
            result = work()
        except Exception as exc:
            on_error(exc)
            return
        on_success(result)
