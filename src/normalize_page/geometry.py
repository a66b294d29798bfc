"""
Fit-inside-canvas arithmetic for page normalization.

Pure functions over pixel sizes; no image I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from contracts import ImageSize


@dataclass(frozen=True, slots=True)
class Padding:
    top: int
    bottom: int
    left: int
    right: int

    def is_zero(self) -> bool:
        return self.top == 0 and self.bottom == 0 and self.left == 0 and self.right == 0

    def as_border(self) -> tuple[int, int, int, int]:
        # Pillow's ImageOps.expand order
        return (self.left, self.top, self.right, self.bottom)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_landscape(size: ImageSize) -> bool:
    return size.width > size.height


def compute_resize(size: ImageSize, target_width: int, target_height: int) -> tuple[ImageSize, bool]:
    """
    Uniform scale that fits `size` inside the target canvas without cropping.

    Landscape sources are fitted as they will stand after a 90 degree
    rotation, so their width is bounded by the canvas height. Upscaling is
    allowed. Returns (resized size before rotation, landscape flag).
    """

    if size.width <= 0 or size.height <= 0:
        raise ValueError(f"invalid source size: {size.width}x{size.height}")

    landscape = is_landscape(size)
    if landscape:
        scale = min(target_height / size.width, target_width / size.height)
    else:
        scale = min(target_width / size.width, target_height / size.height)

    resized = ImageSize(
        width=max(1, _round_half_up(size.width * scale)),
        height=max(1, _round_half_up(size.height * scale)),
    )
    return resized, landscape


def compute_padding(current: ImageSize, target_width: int, target_height: int) -> Padding:
    dh = target_height - current.height
    dw = target_width - current.width
    return Padding(
        top=max(0, dh // 2),
        bottom=max(0, -(-dh // 2)),
        left=max(0, dw // 2),
        right=max(0, -(-dw // 2)),
    )
