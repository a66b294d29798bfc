from __future__ import annotations

import asyncio
import importlib
import logging
import os
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest.mock import patch

from contracts import ProcessingOutcome
from rasterize_pdf import RasterEngineName
from watch_service import ConfigError, load_config, main, serve
from watch_service.logging_config import configure_logging
from watch_service.preflight import (
    CheckStatus,
    PreflightCheck,
    check_disk_space,
    check_read_permission,
    check_write_permission,
    run_preflight,
)


class TestLoadConfig(unittest.TestCase):
    def test_missing_folders_are_all_reported(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            load_config({})

        self.assertEqual(ctx.exception.problems, ["WATCH_FOLDER is required", "OUTPUT_FOLDER is required"])
        self.assertIn(".env.example", str(ctx.exception))

    def test_defaults(self) -> None:
        cfg = load_config({"WATCH_FOLDER": "/data/in", "OUTPUT_FOLDER": "/data/out"})

        self.assertEqual(cfg.watch_folder, Path("/data/in").resolve())
        self.assertEqual(cfg.output_folder, Path("/data/out").resolve())
        self.assertEqual(cfg.dpi, 300)
        self.assertEqual(cfg.jpeg_quality, 90)
        self.assertEqual((cfg.target_width, cfg.target_height), (2480, 3508))
        self.assertEqual(cfg.retry_interval_ms, 5000)
        self.assertEqual(cfg.max_retries, 3)
        self.assertEqual(cfg.log_level, "info")
        self.assertEqual(cfg.raster_engine, RasterEngineName.AUTO)
        self.assertIsNone(cfg.poppler_path)

        watcher = cfg.watcher_config()
        self.assertEqual(watcher.retry_interval_s, 5.0)
        self.assertEqual(watcher.output_folder, cfg.output_folder)

    def test_overrides_flow_into_stage_configs(self) -> None:
        cfg = load_config(
            {
                "WATCH_FOLDER": "/in",
                "OUTPUT_FOLDER": "/out",
                "DPI": "150",
                "JPEG_QUALITY": "75",
                "TARGET_WIDTH": "1240",
                "TARGET_HEIGHT": "1754",
                "RETRY_INTERVAL": "250",
                "MAX_RETRIES": "0",
                "USE_POLLING": "yes",
                "LOG_LEVEL": "WARN",
                "RASTER_ENGINE": "pypdfium2",
            }
        )

        self.assertEqual(cfg.raster_config().dpi, 150)
        self.assertEqual(cfg.raster_config().engine, RasterEngineName.PYPDFIUM2)
        self.assertEqual(cfg.page_config().jpeg_quality, 75)
        self.assertEqual((cfg.page_config().target_width, cfg.page_config().target_height), (1240, 1754))
        self.assertEqual(cfg.watcher_config().retry_interval_s, 0.25)
        self.assertEqual(cfg.watcher_config().max_retries, 0)
        self.assertTrue(cfg.observer_config().use_polling)
        self.assertEqual(cfg.log_level, "warning")

    def test_malformed_values_are_collected(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            load_config(
                {
                    "WATCH_FOLDER": "/in",
                    "OUTPUT_FOLDER": "/out",
                    "DPI": "high",
                    "JPEG_QUALITY": "101",
                    "USE_POLLING": "maybe",
                    "LOG_LEVEL": "chatty",
                }
            )

        problems = ctx.exception.problems
        self.assertEqual(len(problems), 4)
        self.assertTrue(problems[0].startswith("DPI must be an integer"))
        self.assertTrue(problems[1].startswith("JPEG_QUALITY must be within 0..100"))

    def test_env_file_is_loaded_without_overriding_process_env(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env_file = Path(d) / ".env"
            env_file.write_text("WATCH_FOLDER=/from/file\nOUTPUT_FOLDER=/out/file\nDPI=200\n")

            with patch.dict(os.environ, {"DPI": "100"}, clear=True):
                cfg = load_config(env_file=env_file)

        self.assertEqual(cfg.watch_folder, Path("/from/file").resolve())
        self.assertEqual(cfg.dpi, 100)


class TestConfigureLogging(unittest.TestCase):
    def test_errors_reach_both_files_info_only_app_log(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            folder = Path(d) / "logs"
            logger = configure_logging(level="info", log_folder=folder)
            try:
                logging.getLogger("pdfwatch.watcher").info("PDF processed successfully: a.pdf")
                logging.getLogger("pdfwatch.watcher").error("Error processing PDF b.pdf")
                for handler in logger.handlers:
                    handler.flush()
                app_log = (folder / "app.log").read_text(encoding="utf-8")
                error_log = (folder / "error.log").read_text(encoding="utf-8")
            finally:
                for handler in list(logger.handlers):
                    logger.removeHandler(handler)
                    handler.close()
                logger.propagate = True

        self.assertIn("[INFO]: PDF processed successfully: a.pdf", app_log)
        self.assertIn("[ERROR]: Error processing PDF b.pdf", app_log)
        self.assertNotIn("a.pdf", error_log)
        self.assertIn("[ERROR]: Error processing PDF b.pdf", error_log)


class TestPreflight(unittest.TestCase):
    def test_folder_checks(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            folder = Path(d)
            self.assertEqual(check_read_permission(folder, "watch folder").status, CheckStatus.OK)
            self.assertEqual(check_write_permission(folder, "output folder").status, CheckStatus.OK)
            self.assertNotEqual(check_disk_space(folder).status, CheckStatus.ERROR)

            missing = folder / "nope"
            self.assertEqual(check_read_permission(missing, "watch folder").status, CheckStatus.ERROR)
            self.assertEqual(check_write_permission(missing, "output folder").status, CheckStatus.ERROR)

    def test_missing_watch_folder_fails_report(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cfg = load_config({"WATCH_FOLDER": str(Path(d) / "missing"), "OUTPUT_FOLDER": d})
            ok = PreflightCheck(name="pypdfium2", status=CheckStatus.OK)
            with patch("watch_service.preflight.check_rasterizer", return_value=ok):
                report = run_preflight(cfg)

        self.assertEqual(report.status, CheckStatus.ERROR)
        self.assertEqual([c.name for c in report.errors], ["Read access: watch folder"])

    def test_missing_rasterizer_fails_report(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cfg = load_config({"WATCH_FOLDER": d, "OUTPUT_FOLDER": d, "RASTER_ENGINE": "pdftoppm"})
            with patch("watch_service.preflight.find_pdftoppm", return_value=None):
                report = run_preflight(cfg)

        self.assertEqual(report.status, CheckStatus.ERROR)
        self.assertEqual(report.errors[0].name, "Poppler (pdftoppm)")
        self.assertIsNotNone(report.errors[0].install_hint)


class TestMain(unittest.TestCase):
    def test_missing_configuration_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as d, patch.dict(os.environ, {}, clear=True):
            rc = main(["--env-file", str(Path(d) / "absent.env")])

        self.assertEqual(rc, 1)


class TestServe(unittest.IsolatedAsyncioTestCase):
    async def test_existing_pdf_converted_then_clean_shutdown(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            inbox = Path(d) / "in"
            out = Path(d) / "out"
            inbox.mkdir()
            out.mkdir()
            (inbox / "scan.pdf").write_bytes(b"%PDF-1.4 fake")
            cfg = load_config(
                {"WATCH_FOLDER": str(inbox), "OUTPUT_FOLDER": str(out), "USE_POLLING": "true"}
            )

            converted = asyncio.Event()
            loop = asyncio.get_running_loop()

            def _fake_convert(pdf_path: Path) -> ProcessingOutcome:
                (out / f"{pdf_path.stem}_1.jpg").write_bytes(b"jpg")
                loop.call_soon_threadsafe(converted.set)
                return ProcessingOutcome(success=True, pdf_path=pdf_path, total_pages=1, processed_pages=1)

            stop = asyncio.Event()
            service_main = importlib.import_module("watch_service.main")
            with patch.object(service_main, "make_converter", return_value=_fake_convert):
                server = asyncio.create_task(serve(cfg, stop))
                await asyncio.wait_for(converted.wait(), 10)
                stop.set()
                await asyncio.wait_for(server, 10)

            self.assertEqual([p.name for p in out.iterdir()], ["scan_1.jpg"])


class TestShutdown(unittest.TestCase):
    def test_stop_does_not_wait_for_running_conversion(self) -> None:
        started = threading.Event()
        release = threading.Event()
        stopped_at: list[float] = []

        def _slow_convert(pdf_path: Path) -> ProcessingOutcome:
            started.set()
            release.wait(30)
            return ProcessingOutcome(success=True, pdf_path=pdf_path)

        async def _serve_until_converting(cfg) -> None:
            stop = asyncio.Event()
            service_main = importlib.import_module("watch_service.main")
            with patch.object(service_main, "make_converter", return_value=_slow_convert):
                server = asyncio.create_task(serve(cfg, stop))
                for _ in range(200):
                    if started.is_set():
                        break
                    await asyncio.sleep(0.05)
                self.assertTrue(started.is_set())
                stopped_at.append(time.monotonic())
                stop.set()
                await server

        try:
            with tempfile.TemporaryDirectory() as d:
                inbox = Path(d) / "in"
                out = Path(d) / "out"
                inbox.mkdir()
                out.mkdir()
                (inbox / "big.pdf").write_bytes(b"%PDF-1.4 fake")
                cfg = load_config(
                    {"WATCH_FOLDER": str(inbox), "OUTPUT_FOLDER": str(out), "USE_POLLING": "true"}
                )

                asyncio.run(_serve_until_converting(cfg))
                elapsed = time.monotonic() - stopped_at[0]
        finally:
            release.set()

        self.assertLess(elapsed, 5.0)


if __name__ == "__main__":
    unittest.main()
