from __future__ import annotations

import base64
import io
import shutil
import unittest
import uuid
from pathlib import Path

from pypdf import PdfWriter
from selenium.common.exceptions import TimeoutException, WebDriverException

from bid_conditions.services.export_pipeline import ExportOptions
from bid_conditions.services.print_surface import (
    ChromePrintSurface,
    SurfaceUnavailableError,
    build_print_options,
)


def _pdf_b64(pages: int) -> str:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buf = io.BytesIO()
    writer.write(buf)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class _FakeDriver:
    def __init__(self, pages: int = 2, fail_print: bool = False):
        self.pages = pages
        self.fail_print = fail_print
        self.visited: list[str] = []
        self.print_calls = []
        self.quit_calls = 0

    def get(self, url: str) -> None:
        self.visited.append(url)

    def execute_script(self, script: str):
        return "complete"

    def print_page(self, options):
        self.print_calls.append(options)
        if self.fail_print:
            raise WebDriverException("print failed")
        return _pdf_b64(self.pages)

    def quit(self) -> None:
        self.quit_calls += 1


class PrintSurfaceTests(unittest.TestCase):
    def _case_dir(self) -> Path:
        root = Path(__file__).resolve().parents[2] / "downloads" / "test_print_surface"
        case_dir = root / str(uuid.uuid4())
        case_dir.mkdir(parents=True, exist_ok=True)
        return case_dir

    def _surface(self, root: Path, driver: _FakeDriver) -> ChromePrintSurface:
        return ChromePrintSurface(root, close_delay=0, print_delay=0, driver_factory=lambda headless: driver)

    def test_prints_pdf_and_closes_window(self) -> None:
        root = self._case_dir()
        try:
            driver = _FakeDriver(pages=3)
            logs: list[str] = []
            surface = self._surface(root, driver)
            surface.log = logs.append
            surface.load("<html><body>문서</body></html>")
            staged = surface.document_path
            self.assertTrue(staged.exists())
            self.assertEqual(staged.read_text(encoding="utf-8"), "<html><body>문서</body></html>")
            self.assertTrue(driver.visited[0].startswith("file://"))

            printed = surface.print_document(ExportOptions(), "현장_견적조건서_2025-01-01.pdf")
            self.assertEqual(printed.page_count, 3)
            self.assertTrue(printed.pdf_path.exists())
            self.assertTrue(printed.pdf_path.read_bytes().startswith(b"%PDF"))
            self.assertEqual(driver.quit_calls, 1)
            self.assertTrue(surface.closed)
            self.assertFalse(staged.exists())
            self.assertTrue(any(line.startswith("PRINT_SURFACE status=printed pages=3") for line in logs))
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_window_closes_even_when_printing_fails(self) -> None:
        root = self._case_dir()
        try:
            driver = _FakeDriver(fail_print=True)
            surface = self._surface(root, driver)
            surface.load("<html></html>")
            with self.assertRaises(WebDriverException):
                surface.print_document(ExportOptions(), "x.pdf")
            self.assertEqual(driver.quit_calls, 1)
            self.assertTrue(surface.closed)
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_close_is_idempotent(self) -> None:
        root = self._case_dir()
        try:
            driver = _FakeDriver()
            surface = self._surface(root, driver)
            surface.load("<html></html>")
            surface.close()
            surface.close()
            self.assertEqual(driver.quit_calls, 1)
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_failed_page_load_closes_window_and_removes_staged_file(self) -> None:
        root = self._case_dir()
        try:
            driver = _FakeDriver()

            def stalled(url: str) -> None:
                raise TimeoutException("page load timed out")

            driver.get = stalled
            surface = self._surface(root, driver)
            with self.assertRaises(TimeoutException):
                surface.load("<html></html>")
            self.assertEqual(driver.quit_calls, 1)
            self.assertTrue(surface.closed)
            self.assertFalse(surface.document_path.exists())
            self.assertEqual(list((root / "_print").iterdir()), [])
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_blocked_window_is_surface_unavailable(self) -> None:
        root = self._case_dir()
        try:
            def blocked(headless: bool):
                raise WebDriverException("chrome not reachable")

            surface = ChromePrintSurface(root, close_delay=0, print_delay=0, driver_factory=blocked)
            with self.assertRaises(SurfaceUnavailableError):
                surface.load("<html></html>")
            with self.assertRaises(SurfaceUnavailableError):
                surface.print_document(ExportOptions(), "x.pdf")
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_print_options_follow_page_settings(self) -> None:
        po = build_print_options("letter", "landscape", 1.0)
        self.assertEqual(po.orientation, "landscape")
        self.assertEqual(po.page_width, 21.59)
        self.assertEqual(po.page_height, 27.94)
        self.assertEqual(po.margin_top, 2.54)
        self.assertTrue(po.background)

        fallback = build_print_options("tabloid", "sideways", 0.5)
        self.assertEqual(fallback.orientation, "portrait")
        self.assertEqual(fallback.page_width, 21.0)
        self.assertEqual(fallback.margin_left, 1.27)


if __name__ == "__main__":
    unittest.main()
