"""A worker thread that moves messages from a source to a sink."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

WorkFunction = Callable[[Any, Any], bool]


class Transfer:
    """Calls ``work(source, sink)`` in a thread until it returns False or is stopped."""

    def __init__(self, work: WorkFunction) -> None:
        self._work = work
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._running.set()
        self._error: BaseException | None = None

    def start(self, name: str, source: Any, sink: Any) -> None:
        """Start the worker thread, named ``name``."""
        if self._thread is not None:
            raise RuntimeError("transfer already started")
        self._thread = threading.Thread(
            target=self._run, args=(source, sink), name=name, daemon=True
        )
        self._thread.start()

    def _run(self, source: Any, sink: Any) -> None:
        try:
            while self._running.is_set():
                if not self._work(source, sink):
                    break
        except BaseException as exc:  # re-raised from join()
            self._error = exc
        finally:
            self._running.clear()

    def stop(self) -> None:
        """Ask the worker to finish after its current step."""
        self._running.clear()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker; True once it has finished.

        An exception raised by the work function is raised here.
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            return False
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        return True

    def is_running(self) -> bool:
        return self._running.is_set()