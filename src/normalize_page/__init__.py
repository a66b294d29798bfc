"""
Page Normalizer (raster page -> exact A4-portrait JPEG).

Landscape pages are rotated to portrait and every page is padded with white
to the configured canvas.
"""

from .contracts import NormalizePageConfig
from .module import process_image, process_pdf_images
from .naming import find_existing_outputs, output_filename, remove_existing_outputs

__all__ = [
    "NormalizePageConfig",
    "find_existing_outputs",
    "output_filename",
    "process_image",
    "process_pdf_images",
    "remove_existing_outputs",
]
