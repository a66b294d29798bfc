from __future__ import annotations

import argparse
import json
from pathlib import Path

from .contracts import RasterEngineName, RasterizeConfig
from .module import convert_pdf_to_images


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf-a4-rasterize",
        description="Render every page of a PDF to temporary JPEG images and print the result as JSON.",
    )
    p.add_argument("--pdf", required=True, type=Path, help="PDF file to rasterize.")
    p.add_argument("--dpi", type=int, default=300, help="Render DPI.")
    p.add_argument(
        "--engine",
        choices=[e.value for e in RasterEngineName],
        default=RasterEngineName.AUTO.value,
        help="Rasterization backend.",
    )
    p.add_argument("--temp-root", type=Path, default=None, help="Parent directory for the temp output.")
    p.add_argument("--poppler-path", type=Path, default=None, help="Directory holding pdftoppm.")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = RasterizeConfig(
        dpi=args.dpi,
        engine=RasterEngineName(args.engine),
        temp_root=args.temp_root,
        poppler_path=args.poppler_path,
    )
    result = convert_pdf_to_images(config=config, pdf_path=args.pdf)
    print(json.dumps(result.to_dict(), ensure_ascii=False, sort_keys=True, indent=2))

    return 0 if result.success else 2


if __name__ == "__main__":
    raise SystemExit(main())
