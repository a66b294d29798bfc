from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from ..contracts import RASTER_BACKEND_ERROR, RASTER_BACKEND_NOT_INSTALLED, RASTER_TIMEOUT
from .base import RasterEngine, RasterEngineError


def find_pdftoppm(poppler_path: Path | None = None) -> str | None:
    if poppler_path is not None:
        return shutil.which("pdftoppm", path=str(poppler_path))
    return shutil.which("pdftoppm")


class PdftoppmCliEngine(RasterEngine):
    """
    Poppler's `pdftoppm` invoked once per PDF.

    pdftoppm writes `{root}-{n}.jpg`, zero-padding `n` to the digit count of
    the last page, so callers must match page numbers numerically.
    """

    def __init__(self, poppler_path: Path | None = None) -> None:
        self._poppler_path = poppler_path

    def backend_id(self) -> str:
        return "pdftoppm"

    def _executable(self) -> str:
        exe = find_pdftoppm(self._poppler_path)
        if exe is None:
            where = str(self._poppler_path) if self._poppler_path else "PATH"
            raise RasterEngineError(
                RASTER_BACKEND_NOT_INSTALLED, f"pdftoppm binary not found on {where}"
            )
        return exe

    def render(
        self,
        *,
        pdf_file: Path,
        out_dir: Path,
        base_name: str,
        dpi: int,
        timeout_s: float,
    ) -> None:
        cmd = [
            self._executable(),
            "-jpeg",
            "-r",
            str(dpi),
            str(pdf_file),
            str(out_dir / base_name),
        ]

        try:
            proc = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout_s,
            )
        except FileNotFoundError as e:
            raise RasterEngineError(RASTER_BACKEND_NOT_INSTALLED, f"pdftoppm could not be executed: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise RasterEngineError(RASTER_TIMEOUT, f"pdftoppm timed out after {timeout_s}s") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()[-2000:]
            raise RasterEngineError(
                RASTER_BACKEND_ERROR,
                f"pdftoppm exited with code {proc.returncode}: {stderr or 'no output'}",
            )
