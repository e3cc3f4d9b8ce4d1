"""madOS iwd backend - GLib main loop integration.

Blocking work runs in a background thread; its outcome is marshalled
back to the GLib main loop via GLib.idle_add, the same thread that
delivers D-Bus signals, so callbacks never race with dispatch.
"""

import threading
from typing import Optional

from gi.repository import GLib

from .tasks import TaskRunner


class GLibTaskRunner(TaskRunner):
    """Run work in a daemon thread, call back on the GLib main loop."""

    def run(self, work, on_success, on_error):
        def _deliver(callback, value):
            callback(value)
            return GLib.SOURCE_REMOVE

        def _worker():
            try:
                result = work()
            except Exception as exc:
                GLib.idle_add(_deliver, on_error, exc)
                return
            GLib.idle_add(_deliver, on_success, result)

        thread = threading.Thread(target=_worker, daemon=True)
        thread.start()


class MainLoop:
    """Thin wrapper around GLib.MainLoop with an optional timeout."""

    def __init__(self):
        self._loop = GLib.MainLoop()
        self.timed_out = False

    def quit(self) -> None:
        self._loop.quit()

    def run(self, timeout: Optional[int] = None) -> bool:
        """Run until quit() is called, *timeout* seconds pass or Ctrl-C.

        Returns:
            False if the loop stopped because of the timeout.
        """
        def _on_timeout():
            self.timed_out = True
            self._loop.quit()
            return GLib.SOURCE_REMOVE

        source_id = None
        if timeout is not None:
            source_id = GLib.timeout_add_seconds(timeout, _on_timeout)
        try:
            self._loop.run()
        except KeyboardInterrupt:
            pass
        finally:
            if source_id is not None and not self.timed_out:
                GLib.source_remove(source_id)
        return not self.timed_out
