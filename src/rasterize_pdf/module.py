from __future__ import annotations

import logging
import shutil
import sys
import tempfile
from pathlib import Path

from contracts import ConversionResult

from .contracts import (
    RASTER_BACKEND_ERROR,
    RASTER_NO_IMAGES,
    RASTER_TEMP_DIR_FAILED,
    RasterEngineName,
    RasterizeConfig,
)
from .data_access import check_pdf_readable, wait_for_stable_outputs
from .engines import PdftoppmCliEngine, Pypdfium2Engine, RasterEngine, RasterEngineError, find_pdftoppm

logger = logging.getLogger("pdfwatch.rasterize")


def resolve_engine_name(config: RasterizeConfig) -> RasterEngineName:
    if config.engine != RasterEngineName.AUTO:
        return config.engine
    if sys.platform == "win32":
        return RasterEngineName.PYPDFIUM2
    if find_pdftoppm(config.poppler_path) is not None:
        return RasterEngineName.PDFTOPPM
    return RasterEngineName.PYPDFIUM2


def _get_engine(config: RasterizeConfig) -> RasterEngine:
    name = resolve_engine_name(config)
    if name == RasterEngineName.PDFTOPPM:
        return PdftoppmCliEngine(poppler_path=config.poppler_path)
    if name == RasterEngineName.PYPDFIUM2:
        return Pypdfium2Engine()
    raise ValueError(f"Unsupported raster engine: {name}")


def _failure(pdf_path: Path, code: str, message: str) -> ConversionResult:
    return ConversionResult(success=False, pdf_path=pdf_path, error=message, error_code=code)


def convert_pdf_to_images(*, config: RasterizeConfig, pdf_path: Path) -> ConversionResult:
    """
    Rasterize every page of `pdf_path` into a private temporary directory.

    Returns the page images ordered by page number. Never raises: input,
    backend and timeout problems all come back as `success=False` with a
    diagnostic message, and the temporary directory of a failed run is
    removed.
    """

    pdf_path = Path(pdf_path)

    problem = check_pdf_readable(pdf_path)
    if problem is not None:
        code, message = problem
        return _failure(pdf_path, code, message)

    try:
        engine = _get_engine(config)
    except Exception as e:
        return _failure(pdf_path, RASTER_BACKEND_ERROR, f"No usable raster engine: {e}")

    base_name = pdf_path.stem

    try:
        temp_dir = Path(tempfile.mkdtemp(prefix="pdf-a4-", dir=config.temp_root))
    except OSError as e:
        return _failure(pdf_path, RASTER_TEMP_DIR_FAILED, f"Could not create temp directory: {e}")

    logger.debug(
        "Rasterizing %s with %s at %d DPI into %s", pdf_path.name, engine.backend_id(), config.dpi, temp_dir
    )

    try:
        engine.render(
            pdf_file=pdf_path,
            out_dir=temp_dir,
            base_name=base_name,
            dpi=config.dpi,
            timeout_s=config.timeout_s,
        )
        image_paths, settled = wait_for_stable_outputs(
            temp_dir,
            base_name,
            poll_interval_s=config.poll_interval_s,
            stable_cycles=config.stable_cycles,
            timeout_s=config.output_timeout_s,
        )
    except RasterEngineError as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        return _failure(pdf_path, e.code, e.message)
    except Exception as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        return _failure(pdf_path, RASTER_BACKEND_ERROR, f"PDF rasterization failed: {e!r}")

    if not settled:
        logger.warning(
            "Raster output for %s did not settle within %.1fs; using %d page(s) found",
            pdf_path.name,
            config.output_timeout_s,
            len(image_paths),
        )

    if not image_paths:
        shutil.rmtree(temp_dir, ignore_errors=True)
        return _failure(pdf_path, RASTER_NO_IMAGES, f"no images generated for {pdf_path.name}")

    return ConversionResult(
        success=True,
        pdf_path=pdf_path,
        image_paths=image_paths,
        page_count=len(image_paths),
        temp_dir=temp_dir,
    )
