from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Callable, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from contracts import ObserverSignal, SignalKind, WatchEvent, WatchEventKind

from .contracts import ObserverConfig
from .stability import wait_for_write_settled

logger = logging.getLogger("pdfwatch.observer")

ChannelItem = Union[WatchEvent, ObserverSignal, None]


def is_hidden_path(path: Path, root: Path) -> bool:
    """True if any segment of `path` below `root` starts with a dot."""

    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part.startswith(".") for part in parts)


def enumerate_files(root: Path) -> list[Path]:
    """Pre-existing, non-hidden files under `root`, in a stable order."""

    found: list[Path] = []

    def _raise(err: OSError) -> None:
        raise err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if not name.startswith("."):
                found.append(Path(dirpath) / name)
    return found


class _ChannelHandler(FileSystemEventHandler):
    """Runs on the watchdog thread; hands every event over to the event loop."""

    def __init__(self, owner: FolderObserver) -> None:
        super().__init__()
        self._owner = owner

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._owner.call_from_thread(self._owner.file_created, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._owner.call_from_thread(self._owner.file_created, os.fsdecode(event.dest_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._owner.call_from_thread(self._owner.file_modified, os.fsdecode(event.src_path))


class FolderObserver:
    """
    Watches a folder tree and feeds an ordered asyncio channel.

    Emits, in order: ADDED for every pre-existing file, READY, then ADDED /
    CHANGED for live activity. New files are reported only after their size
    has settled; modifications of a file that is still settling are folded
    into its pending ADDED. Hidden entries are never reported.
    """

    def __init__(self, config: ObserverConfig, channel: asyncio.Queue[ChannelItem]) -> None:
        self._config = config
        self._channel = channel
        self._root = Path(config.watch_folder).resolve()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | PollingObserver | None = None
        self._settling: set[Path] = set()
        self._tasks: set[asyncio.Task] = set()
        self._stopping = False

    @property
    def root(self) -> Path:
        return self._root

    async def start(self) -> None:
        """Start watching; raises OSError if the folder cannot be watched."""

        self._loop = asyncio.get_running_loop()
        if self._config.use_polling:
            observer = PollingObserver(timeout=self._config.polling_interval_s)
        else:
            observer = Observer()
        observer.schedule(_ChannelHandler(self), str(self._root), recursive=True)
        observer.start()
        self._observer = observer

        mode = "polling" if self._config.use_polling else "native"
        logger.info("Watching %s (%s mode)", self._root, mode)

        self._spawn(self._initial_scan())
        self._spawn(self._monitor())

    def stop(self) -> None:
        self._stopping = True
        for task in list(self._tasks):
            task.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def call_from_thread(self, fn: Callable[[str], None], path: str) -> None:
        loop = self._loop
        if loop is None or self._stopping:
            return
        try:
            loop.call_soon_threadsafe(fn, path)
        except RuntimeError:
            # Loop already closed during shutdown.
            logger.debug("Dropped event for %s after loop shutdown", path)

    def file_created(self, raw_path: str) -> None:
        path = Path(raw_path)
        if is_hidden_path(path, self._root) or path in self._settling:
            return
        self._settling.add(path)
        self._spawn(self._settle_then_emit(path))

    def file_modified(self, raw_path: str) -> None:
        path = Path(raw_path)
        if is_hidden_path(path, self._root) or path in self._settling:
            return
        self._emit(WatchEvent(path=path, kind=WatchEventKind.CHANGED, observed_at=time.time()))

    def _emit(self, item: ChannelItem) -> None:
        self._channel.put_nowait(item)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _settle_then_emit(self, path: Path) -> None:
        try:
            settled = await wait_for_write_settled(
                path,
                settle_s=self._config.settle_s,
                poll_s=self._config.settle_poll_s,
                max_wait_s=self._config.settle_max_wait_s,
            )
        finally:
            self._settling.discard(path)

        if settled:
            self._emit(WatchEvent(path=path, kind=WatchEventKind.ADDED, observed_at=time.time()))
        else:
            logger.debug("File disappeared before settling: %s", path)

    async def _initial_scan(self) -> None:
        try:
            existing = await asyncio.to_thread(enumerate_files, self._root)
        except OSError as e:
            self._emit(ObserverSignal(kind=SignalKind.ERROR, error=f"initial scan failed: {e}"))
        else:
            for path in existing:
                self._emit(WatchEvent(path=path, kind=WatchEventKind.ADDED, observed_at=time.time()))
        self._emit(ObserverSignal(kind=SignalKind.READY))

    async def _monitor(self) -> None:
        while not self._stopping:
            await asyncio.sleep(self._config.health_check_interval_s)
            observer = self._observer
            if observer is not None and not observer.is_alive() and not self._stopping:
                self._emit(ObserverSignal(kind=SignalKind.ERROR, error="observer thread stopped unexpectedly"))
                return
