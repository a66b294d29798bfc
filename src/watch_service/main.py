from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from contracts import ProcessingOutcome
from convert_pdf import process_pdf
from watch_folder import ArrivalWatcher, FolderObserver

from .config import ConfigError, ServiceConfig, load_config
from .logging_config import configure_logging
from .preflight import CheckStatus, PreflightReport, run_preflight

logger = logging.getLogger("pdfwatch.service")

APP_NAME = "PDF A4 Watch"
APP_VERSION = "1.0.0"

_ICONS = {CheckStatus.OK: "[ok]", CheckStatus.WARNING: "[!!]", CheckStatus.ERROR: "[xx]"}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf-a4-watch",
        description="Watch a folder for PDFs and convert every page to an A4-portrait JPEG.",
    )
    p.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load settings from this .env file (default: .env found from the working directory).",
    )
    return p


def _print_report(report: PreflightReport) -> None:
    for check in report.checks:
        print(f"  {_ICONS[check.status]} {check.name}: {check.current or ''}")
        if check.install_hint:
            for line in check.install_hint.splitlines():
                print(f"      Install: {line}")


def _log_uncaught(exc_type, exc, tb) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error("Unhandled error in event loop: %s", context.get("message"), exc_info=exc)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> None:
    for signame in ("SIGINT", "SIGTERM"):
        sig = getattr(signal, signame, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops lack add_signal_handler.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))


def make_converter(config: ServiceConfig):
    raster_config = config.raster_config()
    page_config = config.page_config()

    def convert(pdf_path: Path) -> ProcessingOutcome:
        return process_pdf(
            pdf_path=pdf_path,
            output_folder=config.output_folder,
            raster_config=raster_config,
            page_config=page_config,
        )

    return convert


async def serve(config: ServiceConfig, stop: asyncio.Event | None = None) -> None:
    """Run the observer and watcher until `stop` is set (or a signal arrives)."""

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_log_loop_exception)

    if stop is None:
        stop = asyncio.Event()
        _install_signal_handlers(loop, stop)

    channel: asyncio.Queue = asyncio.Queue()
    watcher = ArrivalWatcher(config.watcher_config(), make_converter(config))
    observer = FolderObserver(config.observer_config(), channel)

    logger.info("Starting watcher: %s", config.watch_folder)
    logger.info("Output folder: %s", config.output_folder)

    await observer.start()
    consumer = asyncio.create_task(watcher.run(channel), name="watcher")
    try:
        await stop.wait()
    finally:
        logger.info("Shutting down (%d file(s) still in flight)", watcher.in_flight)
        observer.stop()
        watcher.close()
        channel.put_nowait(None)
        await consumer


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    print("========================================")
    print(f"  {APP_NAME} v{APP_VERSION}")
    print("========================================\n")

    try:
        config = load_config(env_file=args.env_file)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    configure_logging(level=config.log_level, log_folder=config.log_folder)
    sys.excepthook = _log_uncaught

    try:
        config.output_folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Could not create output folder %s: %s", config.output_folder, e)

    print("Checking dependencies...")
    report = run_preflight(config)
    _print_report(report)

    if report.status == CheckStatus.ERROR:
        print("\nMissing dependencies. Install them and try again.\n", file=sys.stderr)
        return 1
    if report.warnings:
        print("\nWarnings detected. See above.\n")
    else:
        print("\nAll dependencies verified.\n")

    print("Running. Press Ctrl+C to stop.\n")
    try:
        asyncio.run(serve(config))
    except OSError as e:
        logger.error("Could not watch %s: %s", config.watch_folder, e)
        return 1
    except Exception:
        logger.exception("Fatal error")
        return 1

    logger.info("Application stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
