from __future__ import annotations

from dataclasses import dataclass

# A4 portrait at 300 DPI: 210mm x 297mm -> 2480 x 3508 px
A4_WIDTH_300DPI = 2480
A4_HEIGHT_300DPI = 3508


@dataclass(frozen=True, slots=True)
class NormalizePageConfig:
    target_width: int = A4_WIDTH_300DPI
    target_height: int = A4_HEIGHT_300DPI
    jpeg_quality: int = 90

    def __post_init__(self) -> None:
        if self.target_width <= 0 or self.target_height <= 0:
            raise ValueError("target_width and target_height must be positive")
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be within 0..100")
