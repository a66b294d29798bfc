from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from contracts import ProcessingOutcome
from normalize_page import NormalizePageConfig, process_pdf_images
from rasterize_pdf import RasterizeConfig, convert_pdf_to_images

logger = logging.getLogger("pdfwatch.convert")


def _remove_temporaries(image_paths: Sequence[Path], temp_dir: Path | None) -> None:
    for path in image_paths:
        try:
            path.unlink()
        except OSError as e:
            logger.debug("Could not delete temp image %s: %s", path, e)
    if temp_dir is not None:
        try:
            temp_dir.rmdir()
        except OSError as e:
            logger.debug("Could not remove temp directory %s: %s", temp_dir, e)


def process_pdf(
    *,
    pdf_path: Path,
    output_folder: Path,
    raster_config: RasterizeConfig,
    page_config: NormalizePageConfig,
) -> ProcessingOutcome:
    """
    Rasterize `pdf_path`, then normalize every page into `output_folder`.

    Temporary rasters are deleted only when every page succeeded; otherwise
    all of them stay on disk for inspection and the outcome reports the
    failed pages.
    """

    pdf_path = Path(pdf_path)
    output_folder = Path(output_folder)

    conversion = convert_pdf_to_images(config=raster_config, pdf_path=pdf_path)
    if not conversion.success:
        return ProcessingOutcome(success=False, pdf_path=pdf_path, error=conversion.error)

    try:
        output_folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(
            "Output folder %s not usable for %s; keeping temp images in %s",
            output_folder,
            pdf_path.name,
            conversion.temp_dir,
        )
        return ProcessingOutcome(
            success=False,
            pdf_path=pdf_path,
            total_pages=conversion.page_count,
            failed_pages=conversion.page_count,
            error=f"Output folder not usable: {e}",
        )

    results = process_pdf_images(
        config=page_config,
        input_paths=conversion.image_paths,
        base_name=pdf_path.stem,
        output_folder=output_folder,
    )

    failed = [r for r in results if not r.success]
    all_ok = not failed

    if all_ok:
        _remove_temporaries(conversion.image_paths, conversion.temp_dir)
    else:
        logger.warning(
            "%d of %d page(s) of %s failed; keeping temp images in %s",
            len(failed),
            len(results),
            pdf_path.name,
            conversion.temp_dir,
        )

    return ProcessingOutcome(
        success=all_ok,
        pdf_path=pdf_path,
        total_pages=conversion.page_count,
        processed_pages=len(results) - len(failed),
        failed_pages=len(failed),
        results=results,
        error=None if all_ok else failed[0].error,
        temp_files_removed=all_ok,
    )
