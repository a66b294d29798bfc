"""
Output naming convention: `{base_name}_{page_number}.jpg`, 1-indexed.

The output folder carries no manifest; these names are the index of what
has already been converted.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger("pdfwatch.normalize")

OUTPUT_SUFFIX = ".jpg"


def output_filename(base_name: str, page_index: int) -> str:
    return f"{base_name}_{page_index + 1}{OUTPUT_SUFFIX}"


def output_pattern(base_name: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(base_name)}_(\d+){re.escape(OUTPUT_SUFFIX)}$")


def find_existing_outputs(output_folder: Path, base_name: str) -> list[Path]:
    """Existing page images for `base_name`, ordered by page number."""

    pattern = output_pattern(base_name)
    try:
        entries = list(Path(output_folder).iterdir())
    except FileNotFoundError:
        return []

    numbered: list[tuple[int, Path]] = []
    for entry in entries:
        m = pattern.match(entry.name)
        if m and entry.is_file():
            numbered.append((int(m.group(1)), entry))
    return [p for _, p in sorted(numbered)]


def remove_existing_outputs(output_folder: Path, base_name: str) -> int:
    removed = 0
    for path in find_existing_outputs(output_folder, base_name):
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not remove old output %s: %s", path.name, e)
    return removed
