from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from PIL import Image, ImageOps

from contracts import ImageSize, PageResult

from .contracts import NormalizePageConfig
from .geometry import compute_padding, compute_resize
from .naming import output_filename

logger = logging.getLogger("pdfwatch.normalize")

WHITE = (255, 255, 255)


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    # Transparent areas become white, matching the padding colour.
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def process_image(*, config: NormalizePageConfig, input_path: Path, output_path: Path) -> PageResult:
    """
    Normalize one raster page onto an exact portrait canvas.

    Scale to fit (upscaling allowed), rotate landscape pages 90 degrees
    clockwise, pad with white to `target_width x target_height` and write a
    baseline JPEG. Failures are returned, never raised, so one bad page does
    not stop its siblings.
    """

    input_path = Path(input_path)
    output_path = Path(output_path)
    target_w, target_h = config.target_width, config.target_height

    try:
        with Image.open(input_path) as src:
            original = ImageSize(width=src.width, height=src.height)
            resized, landscape = compute_resize(original, target_w, target_h)
            img = _flatten_to_rgb(src)

        img = img.resize((resized.width, resized.height), Image.Resampling.LANCZOS)
        if landscape:
            img = img.transpose(Image.Transpose.ROTATE_270)

        padding = compute_padding(ImageSize(width=img.width, height=img.height), target_w, target_h)
        if not padding.is_zero():
            img = ImageOps.expand(img, border=padding.as_border(), fill=WHITE)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        img.save(output_path, format="JPEG", quality=config.jpeg_quality, progressive=False)
        final = ImageSize(width=img.width, height=img.height)
    except Exception as e:
        logger.debug("Normalization failed for %s", input_path, exc_info=True)
        return PageResult(success=False, input_path=input_path, error=str(e) or repr(e))

    return PageResult(
        success=True,
        input_path=input_path,
        output_path=output_path,
        original_size=original,
        final_size=final,
        was_rotated=landscape,
    )


def process_pdf_images(
    *,
    config: NormalizePageConfig,
    input_paths: Sequence[Path],
    base_name: str,
    output_folder: Path,
) -> list[PageResult]:
    """
    Normalize the pages of one PDF in page order.

    Returns exactly one PageResult per input. Input rasters are left in
    place; deleting them is the caller's decision.
    """

    output_folder = Path(output_folder)
    results: list[PageResult] = []
    for index, input_path in enumerate(input_paths):
        output_path = output_folder / output_filename(base_name, index)
        result = process_image(config=config, input_path=input_path, output_path=output_path)
        if result.success:
            logger.debug(
                "Page %d of %s -> %s%s",
                index + 1,
                base_name,
                output_path.name,
                " (rotated)" if result.was_rotated else "",
            )
        else:
            logger.warning("Page %d of %s failed: %s", index + 1, base_name, result.error)
        results.append(result)
    return results
