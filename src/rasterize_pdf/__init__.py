"""
Raster Converter (PDF -> one temporary JPEG per page).

The only stage that reads PDFs. Output images land in a private temporary
directory and are owned by the caller, which decides when to delete them.
"""

from .contracts import RasterEngineName, RasterizeConfig
from .module import convert_pdf_to_images, resolve_engine_name

__all__ = [
    "RasterEngineName",
    "RasterizeConfig",
    "convert_pdf_to_images",
    "resolve_engine_name",
]
