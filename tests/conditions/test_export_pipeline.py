from __future__ import annotations

import shutil
import unittest
import uuid
from datetime import date, datetime
from pathlib import Path

from bid_conditions.services.catalog_parser import ClauseRecord, CustomClause, IMPORTANT
from bid_conditions.services.document_preview import DocumentRegion, ProjectInfo
from bid_conditions.services.export_pipeline import (
    PROGRESS_DONE,
    DocumentRegionNotFound,
    ExportData,
    ExportError,
    ExportOptions,
    build_print_document,
    export_document,
    generate_file_name,
    presentation_snapshot,
)
from bid_conditions.services.history_store import JsonHistoryStore, MemoryHistoryStore
from bid_conditions.services.print_surface import PrintedDocument, SurfaceUnavailableError
from bid_conditions.services.selection_set import SelectedClause

REGION_HTML = (
    '<div class="max-w-4xl mx-auto"><div class="text-pretty pl-6 bg-yellow-100">'
    '<span class="text-red-600">[중요]</span><input name="contact_name" value="홍길동"></div></div>'
)


class _FakeSurface:
    def __init__(self, region: DocumentRegion | None = None, fail: Exception | None = None, pages: int = 2):
        self.region = region
        self.fail = fail
        self.pages = pages
        self.loaded: list[str] = []
        self.style_during_print: str | None = None

    def load(self, document_html: str) -> None:
        self.loaded.append(document_html)

    def print_document(self, options: ExportOptions, file_name: str) -> PrintedDocument:
        if self.region is not None:
            self.style_during_print = self.region.style
        if self.fail is not None:
            raise self.fail
        return PrintedDocument(pdf_path=Path(file_name), page_count=self.pages)


class _BrokenHistory:
    def append(self, entry):
        raise OSError("read-only")

    def list(self):
        return []

    def clear(self):
        pass


def _data(name: str = "테스트 현장", **options) -> ExportData:
    conditions = [
        SelectedClause(ClauseRecord(work_type_code="C1", major_category="안전", sub_category="안전일반", text="조건1",
                                    importance=IMPORTANT)),
        SelectedClause(CustomClause(text="위험", forced=True, importance=IMPORTANT)),
    ]
    return ExportData(project_info=ProjectInfo(name=name), conditions=conditions, options=ExportOptions(**options))


def _region() -> DocumentRegion:
    return DocumentRegion(element_id="preview-content", style="overflow: auto", inner_html=REGION_HTML)


class ExportOptionsTests(unittest.TestCase):
    def test_out_of_range_numbers_are_clamped(self) -> None:
        opts = ExportOptions(margin_inches=5, image_quality=0.1)
        self.assertEqual(opts.margin_inches, 2.0)
        self.assertEqual(opts.image_quality, 0.5)
        opts = ExportOptions(margin_inches=0.1, image_quality=3)
        self.assertEqual(opts.margin_inches, 0.5)
        self.assertEqual(opts.image_quality, 1.0)

    def test_unknown_choices_fall_back_to_defaults(self) -> None:
        opts = ExportOptions(page_format="A3", orientation="LANDSCAPE", template="fancy")
        self.assertEqual(opts.page_format, "a4")
        self.assertEqual(opts.orientation, "landscape")
        self.assertEqual(opts.template, "standard")

    def test_file_name_uses_project_template_and_date(self) -> None:
        day = date(2025, 1, 31)
        self.assertEqual(
            generate_file_name(ProjectInfo(name="현장A"), "standard", today=day),
            "현장A_견적조건서_2025-01-31.pdf",
        )
        self.assertEqual(
            generate_file_name(ProjectInfo(name="  "), "compact", today=day),
            "견적조건서_견적조건서_compact_2025-01-31.pdf",
        )


class PrintDocumentTests(unittest.TestCase):
    def test_header_footer_and_watermark_follow_options(self) -> None:
        moment = datetime(2025, 1, 2, 3, 4, 5)
        html = build_print_document("<p>본문</p>", _data(include_watermark=True), "f.pdf", generated_at=moment)
        self.assertIn('<div class="pdf-watermark">', html)
        self.assertIn('<div class="pdf-header"><strong>테스트 현장</strong>', html)
        self.assertIn('<div class="pdf-content"><p>본문</p></div>', html)
        self.assertIn("생성일시: 2025. 01. 02. 03:04:05", html)
        self.assertIn("총 조건 수: 2개", html)
        self.assertIn("<title>f.pdf</title>", html)

        bare = build_print_document("<p>본문</p>", _data(include_header=False, include_footer=False), "f.pdf")
        self.assertNotIn('class="pdf-header"', bare)
        self.assertNotIn('class="pdf-footer"', bare)
        self.assertNotIn('class="pdf-watermark"', bare)

    def test_footer_count_includes_basic_conditions_like_preview(self) -> None:
        data = _data()
        data = ExportData(
            project_info=ProjectInfo(name="테스트 현장", basic_conditions=["a", "b"]),
            conditions=data.conditions,
            options=data.options,
        )
        html = build_print_document("<p>본문</p>", data, "f.pdf")
        self.assertIn("총 조건 수: 4개", html)

    def test_page_rule_and_template_font_size(self) -> None:
        html = build_print_document("", _data(page_format="letter", orientation="landscape", margin_inches=0.5,
                                              template="compact"))
        self.assertIn("@page { size: letter landscape; margin: 0.5in; }", html)
        self.assertIn("font-size: 10px", html)
        self.assertIn(".bg-yellow-100 { background-color: #fef3c7 !important; }", html)


class ExportDocumentTests(unittest.TestCase):
    def test_successful_export_reports_progress_and_restores_region(self) -> None:
        region = _region()
        surface = _FakeSurface(region)
        progress: list[int] = []
        history = MemoryHistoryStore(max_entries=20)
        result = export_document(region, _data(), lambda: surface, history=history, on_progress=progress.append)

        self.assertTrue(result.ok)
        self.assertEqual(result.page_count, 2)
        self.assertTrue(result.file_name.startswith("테스트 현장_견적조건서_"))
        self.assertEqual(progress, [10, 50, 90, PROGRESS_DONE])
        self.assertIn("background-color", surface.style_during_print)
        self.assertEqual(region.style, "overflow: auto")
        self.assertEqual(region.class_name, "flex-1 p-6 bg-white overflow-y-auto h-full")
        self.assertEqual(region.inner_html, REGION_HTML)

        document = surface.loaded[0]
        self.assertNotIn("<input", document)
        self.assertIn("홍길동", document)
        self.assertIn("#fef3c7", document)

        entry = history.list()[0]
        self.assertEqual(entry["file_name"], result.file_name)
        self.assertEqual(entry["project_info"]["name"], "테스트 현장")
        self.assertEqual([c["forced"] for c in entry["selected_conditions"]], [False, True])
        self.assertEqual(entry["export_options"]["template"], "standard")

    def test_missing_project_name_is_invalid_without_touching_region(self) -> None:
        region = _region()
        calls: list[str] = []
        result = export_document(region, _data(name=""), lambda: calls.append("factory"))
        self.assertEqual(result.status, "invalid")
        self.assertEqual(result.errors, ["Project name is required."])
        self.assertEqual(calls, [])
        self.assertEqual(region.style, "overflow: auto")

    def test_missing_region_is_reported(self) -> None:
        with self.assertRaises(DocumentRegionNotFound):
            export_document(None, _data(), lambda: _FakeSurface())
        with self.assertRaises(DocumentRegionNotFound):
            export_document(DocumentRegion(element_id=""), _data(), lambda: _FakeSurface())

    def test_blocked_surface_propagates_and_restores_region(self) -> None:
        region = _region()

        def blocked():
            raise SurfaceUnavailableError("popup blocked")

        logs: list[str] = []
        with self.assertRaises(SurfaceUnavailableError):
            export_document(region, _data(), blocked, log=logs.append)
        self.assertEqual(region.style, "overflow: auto")
        self.assertTrue(any("EXPORT status=failed error=SurfaceUnavailableError" in line for line in logs))

    def test_print_failure_is_wrapped_and_not_recorded(self) -> None:
        region = _region()
        history = MemoryHistoryStore(max_entries=20)
        surface = _FakeSurface(region, fail=RuntimeError("renderer crashed"))
        with self.assertRaises(ExportError) as ctx:
            export_document(region, _data(), lambda: surface, history=history)
        self.assertIn("renderer crashed", str(ctx.exception))
        self.assertEqual(region.style, "overflow: auto")
        self.assertEqual(history.list(), [])

    def test_presentation_is_restored_after_snapshot_error(self) -> None:
        region = _region()
        with self.assertRaises(ValueError):
            with presentation_snapshot(region):
                self.assertNotEqual(region.style, "overflow: auto")
                raise ValueError("boom")
        self.assertEqual(region.style, "overflow: auto")

    def test_history_failure_does_not_fail_export(self) -> None:
        logs: list[str] = []
        result = export_document(_region(), _data(), lambda: _FakeSurface(), history=_BrokenHistory(), log=logs.append)
        self.assertTrue(result.ok)
        self.assertTrue(any(line.startswith("HISTORY status=failed store=export") for line in logs))

    def test_export_history_is_newest_first_and_capped(self) -> None:
        root = Path(__file__).resolve().parents[2] / "downloads" / "test_export_pipeline" / str(uuid.uuid4())
        root.mkdir(parents=True, exist_ok=True)
        try:
            history = JsonHistoryStore(root / "history.json", max_entries=20)
            for i in range(22):
                export_document(_region(), _data(name=f"현장{i}"), lambda: _FakeSurface(), history=history)
            entries = history.list()
            self.assertEqual(len(entries), 20)
            self.assertEqual(entries[0]["project_info"]["name"], "현장21")
            self.assertEqual(entries[-1]["project_info"]["name"], "현장2")
        finally:
            shutil.rmtree(root, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
