from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from normalize_page import NormalizePageConfig
from rasterize_pdf import RasterEngineName, RasterizeConfig

from .artifacts import serialize_outcome
from .module import process_pdf


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf-a4-convert",
        description="Convert one PDF to A4-portrait JPEG pages and print the outcome as JSON.",
    )
    p.add_argument("--pdf", required=True, type=Path, help="PDF file to convert.")
    p.add_argument("--out", required=True, type=Path, help="Output folder for {name}_{n}.jpg pages.")
    p.add_argument("--dpi", type=int, default=300, help="Rasterization DPI.")
    p.add_argument("--quality", type=int, default=90, help="JPEG quality (0-100).")
    p.add_argument("--width", type=int, default=2480, help="Target canvas width in pixels.")
    p.add_argument("--height", type=int, default=3508, help="Target canvas height in pixels.")
    p.add_argument(
        "--engine",
        choices=[e.value for e in RasterEngineName],
        default=RasterEngineName.AUTO.value,
        help="Rasterization backend.",
    )
    p.add_argument("--poppler-path", type=Path, default=None, help="Directory holding pdftoppm.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log per-page details to stderr.")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s]: %(message)s",
        stream=sys.stderr,
    )

    raster_config = RasterizeConfig(
        dpi=args.dpi,
        engine=RasterEngineName(args.engine),
        poppler_path=args.poppler_path,
    )
    page_config = NormalizePageConfig(
        target_width=args.width,
        target_height=args.height,
        jpeg_quality=args.quality,
    )

    outcome = process_pdf(
        pdf_path=args.pdf,
        output_folder=args.out,
        raster_config=raster_config,
        page_config=page_config,
    )
    sys.stdout.write(serialize_outcome(outcome))

    return 0 if outcome.success else 2


if __name__ == "__main__":
    raise SystemExit(main())
