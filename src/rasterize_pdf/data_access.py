from __future__ import annotations

import os
import re
import stat
import time
from pathlib import Path
from typing import Callable

from .contracts import RASTER_INPUT_EMPTY, RASTER_INPUT_NOT_ACCESSIBLE

RASTER_EXTENSIONS = ("jpg", "jpeg")


def check_pdf_readable(pdf_file: Path) -> tuple[str, str] | None:
    """
    Return (error_code, message) when the PDF cannot be rasterized, else None.

    Checked before any backend is invoked so that an empty or vanished file
    fails fast with a descriptive error.
    """

    try:
        st = pdf_file.stat()
    except OSError as e:
        return RASTER_INPUT_NOT_ACCESSIBLE, f"PDF not accessible: {pdf_file} ({e.strerror or e})"

    if not stat.S_ISREG(st.st_mode):
        return RASTER_INPUT_NOT_ACCESSIBLE, f"PDF not accessible: {pdf_file} (not a regular file)"
    if st.st_size == 0:
        return RASTER_INPUT_EMPTY, f"PDF is empty: {pdf_file}"
    if not os.access(pdf_file, os.R_OK):
        return RASTER_INPUT_NOT_ACCESSIBLE, f"PDF not accessible: {pdf_file} (permission denied)"
    return None


def raster_output_pattern(base_name: str) -> re.Pattern[str]:
    """
    `{base}-{n}.jpg` where the base name is matched literally.

    pdftoppm zero-pads `n` to the width of the last page number, so `n` is
    parsed as an integer rather than compared as text.
    """

    exts = "|".join(RASTER_EXTENSIONS)
    return re.compile(rf"^{re.escape(base_name)}-(\d+)\.(?:{exts})$", re.IGNORECASE)


def collect_raster_outputs(out_dir: Path, base_name: str) -> list[Path]:
    pattern = raster_output_pattern(base_name)
    numbered: list[tuple[int, Path]] = []
    try:
        entries = list(out_dir.iterdir())
    except FileNotFoundError:
        return []
    for entry in entries:
        m = pattern.match(entry.name)
        if m and entry.is_file():
            numbered.append((int(m.group(1)), entry))
    return [p for _, p in sorted(numbered)]


def wait_for_stable_outputs(
    out_dir: Path,
    base_name: str,
    *,
    poll_interval_s: float,
    stable_cycles: int,
    timeout_s: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> tuple[list[Path], bool]:
    """
    Poll `out_dir` until the number of page images stops changing.

    Returns (paths, settled). `settled` is False when `timeout_s` elapsed
    first; the paths found at that moment are returned as final.
    """

    deadline = clock() + timeout_s
    last_count = -1
    unchanged = 0
    while True:
        found = collect_raster_outputs(out_dir, base_name)
        if len(found) == last_count:
            unchanged += 1
        else:
            last_count = len(found)
            unchanged = 0
        if unchanged >= stable_cycles:
            return found, True
        if clock() >= deadline:
            return found, False
        sleep(poll_interval_s)
