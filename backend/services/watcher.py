"""Folder watcher that ingests statements dropped into a directory.

The directory is polled rather than observed through OS events, which keeps
it working on network shares and synced folders (Dropbox, iCloud) where
change notifications are unreliable.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from backend.config import settings
from backend.models import WatcherStatus

logger = logging.getLogger(__name__)

FileCallback = Callable[[Path], Awaitable[Any]]

# (size, mtime_ns) of a file at the last poll
FileSignature = tuple[int, int]


@dataclass(eq=False)
class WatcherHandle:
    """A running watch loop; pass it back to ``DirectoryWatcher.stop``."""

    path: Path
    extensions: frozenset[str]
    poll_interval: float  # seconds
    task: asyncio.Task | None = field(default=None, repr=False)


class DirectoryWatcher:
    """
    Poll a directory and call ``on_file`` once for each new, fully written file.

    Files present when watching starts are never processed. A new file is
    handed over once its size and modification time have stayed the same for
    ``stability_threshold`` milliseconds, so half-copied files are not read.
    Dotfiles and anything under a dot-directory are ignored. A file that is
    deleted and later re-created at the same path is processed again, as long
    as a poll saw it missing in between.
    """

    def __init__(self, on_file: FileCallback, stability_threshold: int | None = None):
        self.on_file = on_file
        threshold_ms = settings.watch_stability_ms if stability_threshold is None else stability_threshold
        self.stability_threshold = threshold_ms / 1000

        self._handle: WatcherHandle | None = None
        self._seen: set[Path] = set()
        self._pending: dict[Path, tuple[FileSignature, float]] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_watching(self) -> bool:
        return self._handle is not None

    def start(
        self,
        path: Path | str,
        extensions: list[str] | None = None,
        poll_interval: int | None = None,
    ) -> WatcherHandle:
        """
        Start polling ``path``. Must be called from a running event loop.

        Args:
            path: Directory to watch (subdirectories included)
            extensions: Allowed file extensions; defaults to the configured list
            poll_interval: Milliseconds between scans; defaults to the configured interval

        Returns:
            The handle of the running loop, or the existing one if already watching

        Raises:
            NotADirectoryError: If ``path`` is not an existing directory
        """
        if self._handle is not None:
            logger.info(f"File watcher is already running on {self._handle.path}")
            return self._handle

        extensions = extensions or settings.watch_extensions
        interval_ms = settings.watch_poll_interval_ms if poll_interval is None else poll_interval

        handle = WatcherHandle(
            path=Path(path),
            extensions=frozenset(ext.lower() for ext in extensions),
            poll_interval=interval_ms / 1000,
        )

        self._pending.clear()
        self._seen = set(self._list_files(handle))

        handle.task = asyncio.create_task(self._run(handle))
        self._handle = handle

        logger.info(f"Started file watcher on {handle.path} ({len(self._seen)} existing files ignored)")
        logger.info(f"Watching for: {', '.join(sorted(handle.extensions))}")
        return handle

    async def stop(self, handle: WatcherHandle) -> None:
        """Stop the loop owned by ``handle``. Ingestions already running are left to finish."""
        if handle is not self._handle:
            logger.debug("Ignoring stop for a watcher handle that is not running")
            return

        self._handle = None
        if handle.task is not None:
            handle.task.cancel()
            try:
                await handle.task
            except asyncio.CancelledError:
                pass

        logger.info(f"Stopped file watcher on {handle.path}")

    def status(self) -> WatcherStatus:
        return WatcherStatus(
            is_watching=self.is_watching,
            path=str(self._handle.path) if self._handle else None,
        )

    async def _run(self, handle: WatcherHandle) -> None:
        while True:
            try:
                # Directory listing can be slow on network shares; keep it off the event loop
                snapshot = await asyncio.to_thread(self._snapshot, handle)
            except OSError as e:
                logger.error(f"File watcher error scanning {handle.path}: {e}")
            else:
                self._scan(snapshot)
            await asyncio.sleep(handle.poll_interval)

    def _scan(self, snapshot: dict[Path, FileSignature]) -> None:
        now = time.monotonic()

        # A file deleted and later re-created at the same path counts as new
        self._seen.intersection_update(snapshot)

        for file_path, signature in snapshot.items():
            if file_path in self._seen:
                continue

            pending = self._pending.get(file_path)
            if pending is None or pending[0] != signature:
                # New or still being written; restart the quiet period
                self._pending[file_path] = (signature, now)
                continue

            if now - pending[1] >= self.stability_threshold:
                del self._pending[file_path]
                self._seen.add(file_path)
                self._dispatch(file_path)

        for gone in self._pending.keys() - snapshot.keys():
            del self._pending[gone]

    def _snapshot(self, handle: WatcherHandle) -> dict[Path, FileSignature]:
        """Signature of every qualifying file. Runs in a worker thread."""
        snapshot = {}
        for file_path in self._list_files(handle):
            try:
                stat = file_path.stat()
            except FileNotFoundError:
                continue
            snapshot[file_path] = (stat.st_size, stat.st_mtime_ns)
        return snapshot

    def _list_files(self, handle: WatcherHandle) -> list[Path]:
        if not handle.path.is_dir():
            raise NotADirectoryError(f"Watch directory does not exist: {handle.path}")

        files = []
        for file_path in handle.path.rglob("*"):
            relative = file_path.relative_to(handle.path)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if file_path.suffix.lower() in handle.extensions and file_path.is_file():
                files.append(file_path)
        return files

    def _dispatch(self, file_path: Path) -> None:
        logger.info(f"New file detected: {file_path}")
        task = asyncio.create_task(self.on_file(file_path))
        self._tasks.add(task)

        def handle_task_error(task: asyncio.Task) -> None:
            self._tasks.discard(task)
            if task.cancelled():
                return
            error = task.exception()
            if error is not None:
                logger.error(f"Error processing {file_path.name}: {error}", exc_info=error)

        task.add_done_callback(handle_task_error)
