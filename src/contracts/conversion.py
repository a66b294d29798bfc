from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class ImageSize:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """
    Outcome of rasterizing one PDF into temporary page images.

    `image_paths` is ordered by page number (page 1 first). The temporary
    files are owned by the caller until it deletes them.
    """

    success: bool
    pdf_path: Path
    image_paths: list[Path] = field(default_factory=list)
    page_count: int = 0
    error: str | None = None
    error_code: str | None = None
    temp_dir: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True, slots=True)
class PageResult:
    success: bool
    input_path: Path
    output_path: Path | None = None
    original_size: ImageSize | None = None
    final_size: ImageSize | None = None
    was_rotated: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True, slots=True)
class ProcessingOutcome:
    """
    Terminal record of one orchestration run (rasterize + normalize + cleanup).

    `success` is True iff every page normalized successfully. Not persisted;
    only its side effects (output images, log lines) survive the run.
    """

    success: bool
    pdf_path: Path
    total_pages: int = 0
    processed_pages: int = 0
    failed_pages: int = 0
    results: list[PageResult] = field(default_factory=list)
    error: str | None = None
    temp_files_removed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
