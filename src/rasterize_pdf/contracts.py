from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class RasterEngineName(str, Enum):
    """
    Rasterization backend identifiers.

    AUTO resolves at call time: pypdfium2 on Windows, otherwise pdftoppm when
    the Poppler binary can be found, falling back to pypdfium2.
    """

    AUTO = "auto"
    PDFTOPPM = "pdftoppm"
    PYPDFIUM2 = "pypdfium2"


# Stable error codes carried on ConversionResult.error_code
RASTER_INPUT_NOT_ACCESSIBLE = "RASTER_INPUT_NOT_ACCESSIBLE"
RASTER_INPUT_EMPTY = "RASTER_INPUT_EMPTY"
RASTER_TEMP_DIR_FAILED = "RASTER_TEMP_DIR_FAILED"
RASTER_BACKEND_NOT_INSTALLED = "RASTER_BACKEND_NOT_INSTALLED"
RASTER_TIMEOUT = "RASTER_TIMEOUT"
RASTER_BACKEND_ERROR = "RASTER_BACKEND_ERROR"
RASTER_NO_IMAGES = "RASTER_NO_IMAGES"


@dataclass(frozen=True, slots=True)
class RasterizeConfig:
    dpi: int = 300
    engine: RasterEngineName = RasterEngineName.AUTO
    temp_root: Path | None = None  # None => tempfile.gettempdir()
    poppler_path: Path | None = None  # directory holding the pdftoppm binary
    timeout_s: float = 300.0

    # Output stability window: the page count must hold for `stable_cycles`
    # consecutive polls before the output set is considered final.
    poll_interval_s: float = 0.5
    stable_cycles: int = 3
    output_timeout_s: float = 30.0

    def __post_init__(self) -> None:
        if self.dpi <= 0:
            raise ValueError("dpi must be a positive integer")
        if self.stable_cycles < 1:
            raise ValueError("stable_cycles must be >= 1")
        if self.poll_interval_s < 0 or self.output_timeout_s < 0:
            raise ValueError("poll_interval_s and output_timeout_s must be >= 0")
