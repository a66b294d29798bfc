"""
Conversion Orchestrator: Raster Converter -> Page Normalizer -> cleanup decision.
"""

from .module import process_pdf

__all__ = ["process_pdf"]
