"""Re-check a notebook whenever its file changes on disk."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from nbaltcheck.check_logger import log_error_policy
from nbaltcheck.controller import IndicatorController
from nbaltcheck.errors import NotebookLoadError
from nbaltcheck.notebook import NotebookDocument

logger = logging.getLogger(__name__)


class NotebookChangeHandler(FileSystemEventHandler):
    """Calls ``on_change`` once the watched notebook file stops changing.

    Every matching event restarts a ``delay`` second quiet period, so a burst
    of writes from one save yields a single call after the last write.
    """

    def __init__(self, path: Path, on_change: Callable[[], None], delay: float = 0.5) -> None:
        self.path = path.resolve()
        self.on_change = on_change
        self.delay = delay
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _matches(self, raw_path: str | bytes) -> bool:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        return Path(raw_path).resolve() == self.path

    def _handle(self, raw_path: str | bytes) -> None:
        if not self._matches(raw_path):
            return
        logger.debug("Change detected in %s", self.path)
        if self.delay <= 0:
            self.on_change()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        self.on_change()

    def cancel(self) -> None:
        """Drop a pending call, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors often save by writing a temp file and renaming it into place
        if not event.is_directory:
            self._handle(event.dest_path)


class NotebookWatcher:
    """Reloads a notebook on change so the controller receives cell events.

    The document dispatches events on the event loop thread; the watchdog
    observer thread only wakes the loop up.
    """

    def __init__(
        self,
        document: NotebookDocument,
        controller: IndicatorController,
        on_update: Callable[[], None] | None = None,
        delay: float = 0.5,
    ) -> None:
        self.document = document
        self.controller = controller
        self.on_update = on_update
        self.delay = delay
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None
        self._stopping = False

    def notify_changed(self) -> None:
        """Thread-safe signal that the notebook file changed."""
        if self._loop is not None and self._wakeup is not None:
            self._loop.call_soon_threadsafe(self._wakeup.set)

    def stop(self) -> None:
        self._stopping = True
        self.notify_changed()

    async def refresh(self, *, retry: bool = True) -> None:
        """Reload the notebook and wait for the analyses it triggers.

        A file that cannot be parsed is usually a save still in progress; it
        is read once more after ``delay`` before giving up.
        """
        try:
            changes = self.document.reload()
        except NotebookLoadError as exc:
            if retry:
                log_error_policy("Watch", "notebook_load_failed", "retry", str(exc))
                await asyncio.sleep(self.delay)
                await self.refresh(retry=False)
            else:
                log_error_policy("Watch", "notebook_load_failed", "skip", str(exc))
            return
        await self.controller.wait_idle()
        if changes and self.on_update is not None:
            self.on_update()

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        detach = self.controller.attach(self.document)

        handler = NotebookChangeHandler(self.document.path, self.notify_changed, self.delay)
        observer = Observer()
        observer.schedule(handler, str(self.document.path.resolve().parent), recursive=False)
        observer.start()
        logger.info("Watching %s for changes...", self.document.path)
        try:
            while not self._stopping:
                await self._wakeup.wait()
                self._wakeup.clear()
                if self._stopping:
                    break
                await self.refresh()
        finally:
            handler.cancel()
            observer.stop()
            observer.join()
            detach()
