from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from contracts import ObserverSignal, ProcessingOutcome, SignalKind, WatcherState, WatchEvent, WatchEventKind
from normalize_page import find_existing_outputs, remove_existing_outputs

from .contracts import WATCHED_SUFFIX, WatcherConfig
from .observer import ChannelItem
from .registry import ProcessingRegistry
from .stability import wait_for_file_ready

logger = logging.getLogger("pdfwatch.watcher")

ConvertFn = Callable[[Path], ProcessingOutcome]


class ArrivalWatcher:
    """
    Turns observer events into per-file conversion tasks.

    Starts in INITIAL_SCAN, where files that already have output pages are
    skipped, and moves to STEADY_STATE on the observer's READY signal.
    Every accepted event runs as its own task; the registry keeps a single
    attempt per path. Blocking conversions run on the watcher's own thread
    pool, which `close()` shuts down without waiting for them.
    """

    def __init__(
        self,
        config: WatcherConfig,
        convert: ConvertFn,
        *,
        registry: ProcessingRegistry | None = None,
    ) -> None:
        self._config = config
        self._convert = convert
        self.registry = registry if registry is not None else ProcessingRegistry()
        self.state = WatcherState.INITIAL_SCAN
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self._executor = ThreadPoolExecutor(thread_name_prefix="pdf-convert")

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, channel: asyncio.Queue[ChannelItem]) -> None:
        """Consume `channel` until a None sentinel arrives."""

        while True:
            item = await channel.get()
            if item is None:
                return
            self.dispatch(item)

    async def drain(self) -> None:
        """Wait for every spawned processing task to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """
        Stop accepting events and release the conversion pool.

        Queued conversions are cancelled; one already running finishes in its
        thread but is no longer awaited, so shutdown does not block on it.
        """

        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)

    def dispatch(self, item: WatchEvent | ObserverSignal) -> asyncio.Task | None:
        if self._closed:
            return None
        if isinstance(item, ObserverSignal):
            self._on_signal(item)
            return None
        return self._on_event(item)

    def _on_signal(self, signal: ObserverSignal) -> None:
        if signal.kind == SignalKind.READY:
            if self.state == WatcherState.INITIAL_SCAN:
                self.state = WatcherState.STEADY_STATE
                logger.info("Watcher ready. Waiting for new PDF files...")
        elif signal.kind == SignalKind.ERROR:
            logger.error("Watcher error: %s", signal.error)

    def _on_event(self, event: WatchEvent) -> asyncio.Task | None:
        path = event.path
        if path.suffix.lower() != WATCHED_SUFFIX:
            return None

        if event.kind == WatchEventKind.CHANGED:
            logger.info("PDF changed: %s", path.name)
            # A modified file is a new version, not a duplicate of the one in flight.
            self.registry.discard(path)
            return self._start(path, clean_old_outputs=True, skip_if_converted=False)

        if self.state == WatcherState.INITIAL_SCAN:
            logger.debug("Existing PDF found: %s", path.name)
            return self._start(path, clean_old_outputs=False, skip_if_converted=True)

        logger.info("New PDF detected: %s", path.name)
        return self._start(path, clean_old_outputs=True, skip_if_converted=False)

    def _start(self, path: Path, *, clean_old_outputs: bool, skip_if_converted: bool) -> asyncio.Task | None:
        marker = self.registry.try_register(path)
        if marker is None:
            logger.debug("Already processing: %s", path.name)
            return None

        task = asyncio.get_running_loop().create_task(
            self._process(
                path,
                marker,
                clean_old_outputs=clean_old_outputs,
                skip_if_converted=skip_if_converted,
            ),
            name=f"process:{path.name}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _process(
        self,
        path: Path,
        marker: object | None,
        *,
        clean_old_outputs: bool,
        skip_if_converted: bool,
    ) -> ProcessingOutcome | None:
        attempt = 0
        try:
            while True:
                outcome = await self._attempt(
                    path, clean_old_outputs=clean_old_outputs, skip_if_converted=skip_if_converted
                )
                if outcome is None or outcome.success:
                    return outcome

                if attempt >= self._config.max_retries:
                    logger.error(
                        "Giving up on %s after %d attempt(s): %s", path.name, attempt + 1, outcome.error
                    )
                    return outcome

                attempt += 1
                logger.info("Retrying %s (%d/%d)...", path.name, attempt, self._config.max_retries)
                self.registry.release(path, marker)
                await asyncio.sleep(self._config.retry_interval_s)
                if self._closed:
                    return outcome

                marker = self.registry.try_register(path)
                if marker is None:
                    logger.debug("%s was picked up by another attempt; dropping retry", path.name)
                    return outcome

                # Pages written by the failed attempt are stale now.
                clean_old_outputs, skip_if_converted = True, False
        except Exception:
            logger.exception("Unexpected error while processing %s", path.name)
            return None
        finally:
            if marker is not None:
                self._schedule_release(path, marker)

    async def _attempt(
        self,
        path: Path,
        *,
        clean_old_outputs: bool,
        skip_if_converted: bool,
    ) -> ProcessingOutcome | None:
        ready = await wait_for_file_ready(
            path,
            max_wait_s=self._config.ready_max_wait_s,
            interval_s=self._config.ready_interval_s,
            missing_retry_s=self._config.ready_missing_retry_s,
        )
        if not ready:
            logger.warning("Timed out waiting for file to be ready: %s", path.name)
            return None

        output_folder = self._config.output_folder
        base_name = path.stem

        if skip_if_converted:
            existing = await asyncio.to_thread(find_existing_outputs, output_folder, base_name)
            if existing:
                logger.info("Skipping %s: %d page image(s) already in output folder", path.name, len(existing))
                return None

        if clean_old_outputs:
            removed = await asyncio.to_thread(remove_existing_outputs, output_folder, base_name)
            if removed:
                logger.info("Removed %d old page image(s) of %s", removed, path.name)

        if self._closed:
            return None

        logger.info("Processing PDF: %s", path.name)
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(self._executor, self._convert, path)

        if outcome.success:
            logger.info(
                "PDF processed successfully: %s (%d/%d pages)",
                path.name,
                outcome.processed_pages,
                outcome.total_pages,
            )
        else:
            logger.error("Error processing PDF %s: %s", path.name, outcome.error)
        return outcome

    def _schedule_release(self, path: Path, marker: object) -> None:
        if self._config.cooldown_s <= 0:
            self.registry.release(path, marker)
            return
        asyncio.get_running_loop().call_later(self._config.cooldown_s, self.registry.release, path, marker)
