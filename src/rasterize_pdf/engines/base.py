from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class RasterEngineError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class RasterEngine(ABC):
    """
    PDF rasterization backend.

    Engines must:
    - Render every page of the PDF in a single invocation
    - Write `{base_name}-{n}.jpg` files into `out_dir` (n is 1-indexed)
    - Raise RasterEngineError on failure; callers convert it to a result
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def render(
        self,
        *,
        pdf_file: Path,
        out_dir: Path,
        base_name: str,
        dpi: int,
        timeout_s: float,
    ) -> None:
        raise NotImplementedError
