from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from PIL import Image

from contracts import ConversionResult
from convert_pdf import process_pdf
from convert_pdf.artifacts import serialize_outcome
from normalize_page import NormalizePageConfig
from rasterize_pdf import RasterEngineName, RasterizeConfig


class TestProcessPdf(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.temp_dir = self.root / "raster"
        self.temp_dir.mkdir()
        self.out = self.root / "out"
        self.pdf = self.root / "doc.pdf"
        self.pdf.write_bytes(b"%PDF-1.4 fake")
        self.raster_cfg = RasterizeConfig(temp_root=self.root)
        self.page_cfg = NormalizePageConfig(target_width=124, target_height=175)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _raster(self, *sizes: tuple[int, int], corrupt: set[int] = frozenset()) -> ConversionResult:
        paths = []
        for i, size in enumerate(sizes, start=1):
            p = self.temp_dir / f"doc-{i}.jpg"
            if i in corrupt:
                p.write_bytes(b"corrupt")
            else:
                Image.new("RGB", size, color=(90, 90, 90)).save(p, format="JPEG")
            paths.append(p)
        return ConversionResult(
            success=True, pdf_path=self.pdf, image_paths=paths, page_count=len(paths), temp_dir=self.temp_dir
        )

    def _run(self, conversion: ConversionResult):
        with patch("convert_pdf.module.convert_pdf_to_images", return_value=conversion):
            return process_pdf(
                pdf_path=self.pdf,
                output_folder=self.out,
                raster_config=self.raster_cfg,
                page_config=self.page_cfg,
            )

    def test_all_pages_ok_removes_temporaries(self) -> None:
        conversion = self._raster((100, 140), (140, 100))

        outcome = self._run(conversion)

        self.assertTrue(outcome.success)
        self.assertEqual((outcome.total_pages, outcome.processed_pages, outcome.failed_pages), (2, 2, 0))
        self.assertTrue(outcome.temp_files_removed)
        self.assertFalse(any(p.exists() for p in conversion.image_paths))
        self.assertFalse(self.temp_dir.exists())
        self.assertEqual(sorted(p.name for p in self.out.iterdir()), ["doc_1.jpg", "doc_2.jpg"])

    def test_any_page_failure_keeps_every_temporary(self) -> None:
        conversion = self._raster((100, 140), (100, 140), (100, 140), corrupt={2})

        outcome = self._run(conversion)

        self.assertFalse(outcome.success)
        self.assertEqual((outcome.total_pages, outcome.processed_pages, outcome.failed_pages), (3, 2, 1))
        self.assertFalse(outcome.temp_files_removed)
        self.assertTrue(all(p.exists() for p in conversion.image_paths))
        self.assertIsNotNone(outcome.error)
        self.assertEqual([r.success for r in outcome.results], [True, False, True])

    def test_raster_failure_short_circuits(self) -> None:
        failed = ConversionResult(success=False, pdf_path=self.pdf, error="PDF is empty: doc.pdf")

        with patch("convert_pdf.module.convert_pdf_to_images", return_value=failed), patch(
            "convert_pdf.module.process_pdf_images"
        ) as normalize:
            outcome = process_pdf(
                pdf_path=self.pdf,
                output_folder=self.out,
                raster_config=self.raster_cfg,
                page_config=self.page_cfg,
            )

        normalize.assert_not_called()
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "PDF is empty: doc.pdf")
        self.assertEqual(outcome.results, [])

    def test_unusable_output_folder_is_reported_not_raised(self) -> None:
        self.out.write_bytes(b"not a folder")
        conversion = self._raster((100, 140))

        outcome = self._run(conversion)

        self.assertFalse(outcome.success)
        self.assertTrue(outcome.error.startswith("Output folder not usable:"))
        self.assertEqual((outcome.total_pages, outcome.failed_pages), (1, 1))
        self.assertFalse(outcome.temp_files_removed)
        self.assertTrue(all(p.exists() for p in conversion.image_paths))

    def test_temp_delete_failure_is_not_fatal(self) -> None:
        conversion = self._raster((100, 140))

        with patch("pathlib.Path.unlink", side_effect=PermissionError("locked")):
            outcome = self._run(conversion)

        self.assertTrue(outcome.success)

    def test_outcome_serializes_to_json(self) -> None:
        outcome = self._run(self._raster((100, 140)))

        payload = json.loads(serialize_outcome(outcome))
        self.assertTrue(payload["success"])
        self.assertEqual(payload["results"][0]["final_size"], {"width": 124, "height": 175})
        self.assertTrue(payload["results"][0]["output_path"].endswith("doc_1.jpg"))


class TestEndToEnd(unittest.TestCase):
    def test_two_page_pdf_to_a4(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            root = Path(d)
            pdf = root / "doc.pdf"
            portrait = Image.new("RGB", (1000, 1400), color=(255, 255, 255))
            landscape = Image.new("RGB", (1400, 1000), color=(20, 20, 20))
            portrait.save(pdf, format="PDF", resolution=72.0, save_all=True, append_images=[landscape])
            out = root / "out"
            temp_root = root / "tmp"
            temp_root.mkdir()

            outcome = process_pdf(
                pdf_path=pdf,
                output_folder=out,
                raster_config=RasterizeConfig(
                    dpi=72,
                    engine=RasterEngineName.PYPDFIUM2,
                    temp_root=temp_root,
                    poll_interval_s=0.0,
                    stable_cycles=1,
                ),
                page_config=NormalizePageConfig(target_width=2480, target_height=3508, jpeg_quality=90),
            )

            self.assertTrue(outcome.success, outcome.error)
            self.assertEqual((outcome.total_pages, outcome.processed_pages, outcome.failed_pages), (2, 2, 0))
            self.assertEqual([r.was_rotated for r in outcome.results], [False, True])
            for name in ("doc_1.jpg", "doc_2.jpg"):
                with Image.open(out / name) as img:
                    self.assertEqual(img.size, (2480, 3508))
            self.assertEqual(list(temp_root.iterdir()), [])

    def test_empty_pdf_fails_every_time(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            root = Path(d)
            pdf = root / "empty.pdf"
            pdf.write_bytes(b"")
            temp_root = root / "tmp"
            temp_root.mkdir()
            cfg = RasterizeConfig(temp_root=temp_root)

            outcomes = [
                process_pdf(pdf_path=pdf, output_folder=root / "out", raster_config=cfg, page_config=NormalizePageConfig())
                for _ in range(2)
            ]

            for outcome in outcomes:
                self.assertFalse(outcome.success)
                self.assertIn("empty", outcome.error)
            self.assertEqual(list(temp_root.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
