from .base import RasterEngine, RasterEngineError
from .pdftoppm_cli import PdftoppmCliEngine, find_pdftoppm
from .pypdfium2_engine import Pypdfium2Engine

__all__ = [
    "PdftoppmCliEngine",
    "Pypdfium2Engine",
    "RasterEngine",
    "RasterEngineError",
    "find_pdftoppm",
]
