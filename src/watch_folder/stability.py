from __future__ import annotations

import asyncio
import os
from pathlib import Path


async def _file_size(path: Path) -> int:
    st = await asyncio.to_thread(os.stat, path)
    return st.st_size


async def wait_for_file_ready(
    path: Path,
    *,
    max_wait_s: float = 30.0,
    interval_s: float = 1.0,
    missing_retry_s: float = 0.5,
) -> bool:
    """
    Wait until `path` stops growing.

    Ready means two size readings `interval_s` apart are equal and non-zero.
    A file that cannot be stat'ed yet is retried after `missing_retry_s`.
    Returns False once `max_wait_s` has elapsed without the file settling.
    """

    loop = asyncio.get_running_loop()
    deadline = loop.time() + max_wait_s

    while loop.time() < deadline:
        try:
            first = await _file_size(path)
            await asyncio.sleep(interval_s)
            second = await _file_size(path)
        except OSError:
            await asyncio.sleep(missing_retry_s)
            continue

        if first == second and first > 0:
            return True

    return False


async def wait_for_write_settled(
    path: Path,
    *,
    settle_s: float,
    poll_s: float,
    max_wait_s: float,
) -> bool:
    """
    Wait until the size of `path` has not changed for `settle_s` seconds.

    Returns False if the file disappears; returns True once settled or once
    `max_wait_s` has elapsed (the caller applies its own readiness check).
    """

    loop = asyncio.get_running_loop()
    deadline = loop.time() + max_wait_s
    last_size: int | None = None
    stable_since = loop.time()

    while True:
        try:
            size: int | None = await _file_size(path)
        except FileNotFoundError:
            return False
        except OSError:
            size = None

        now = loop.time()
        if size != last_size:
            last_size = size
            stable_since = now
        elif now - stable_since >= settle_s:
            return True
        if now >= deadline:
            return True
        await asyncio.sleep(poll_s)
