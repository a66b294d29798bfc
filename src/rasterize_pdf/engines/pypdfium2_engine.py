from __future__ import annotations

from pathlib import Path

from ..contracts import RASTER_BACKEND_ERROR, RASTER_BACKEND_NOT_INSTALLED
from .base import RasterEngine, RasterEngineError

# Intermediate rasters are re-encoded by the page normalizer.
_TEMP_JPEG_QUALITY = 95


class Pypdfium2Engine(RasterEngine):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise RasterEngineError(
                RASTER_BACKEND_NOT_INSTALLED, "Missing dependency: pypdfium2 is required for rendering."
            ) from e

    def render(
        self,
        *,
        pdf_file: Path,
        out_dir: Path,
        base_name: str,
        dpi: int,
        timeout_s: float,
    ) -> None:
        # Note: pypdfium2 does not expose a per-call timeout.
        _ = timeout_s

        pdfium = self._require_pdfium()
        scale = dpi / 72.0  # PDF points are 1/72 inch

        try:
            doc = pdfium.PdfDocument(str(pdf_file))
        except Exception as e:
            raise RasterEngineError(RASTER_BACKEND_ERROR, f"Failed to open PDF: {e}") from e

        try:
            for index in range(len(doc)):
                page = doc[index]
                try:
                    bitmap = page.render(scale=scale)
                    pil_img = bitmap.to_pil().convert("RGB")
                finally:
                    page.close()
                pil_img.save(
                    out_dir / f"{base_name}-{index + 1}.jpg",
                    format="JPEG",
                    quality=_TEMP_JPEG_QUALITY,
                )
        except Exception as e:
            raise RasterEngineError(RASTER_BACKEND_ERROR, f"PDF rendering failed: {e}") from e
        finally:
            doc.close()
