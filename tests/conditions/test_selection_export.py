from __future__ import annotations

import shutil
import unittest
import uuid
from pathlib import Path

import pandas as pd

from bid_conditions.services.catalog_parser import ClauseRecord, CustomClause, IMPORTANT
from bid_conditions.services.selection_export import EXPORT_COLUMNS, export_selection_xlsx, selection_rows
from bid_conditions.services.selection_set import SelectionSet, UploadedFile

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class SelectionExportTests(unittest.TestCase):
    def _case_dir(self) -> Path:
        root = Path(__file__).resolve().parents[2] / "downloads" / "test_selection_export"
        case_dir = root / str(uuid.uuid4())
        case_dir.mkdir(parents=True, exist_ok=True)
        return case_dir

    def _selection(self) -> SelectionSet:
        selection = SelectionSet()
        catalog = ClauseRecord(work_type="공사", work_type_code="C1", major_category="안전", sub_category="안전일반",
                               tag="태그A", text="조건1", importance=IMPORTANT)
        selection.add(catalog)
        selection.attach_images(catalog, [UploadedFile("p.png", PNG)])
        selection.add(CustomClause(text="직접 작성", forced=True))
        return selection

    def test_rows_unwrap_annotated_selection(self) -> None:
        rows = selection_rows(self._selection().annotated())
        self.assertEqual([r["text"] for r in rows], ["조건1", "직접 작성"])
        self.assertEqual(rows[0]["images"], 1)
        self.assertFalse(rows[0]["forced"])
        self.assertTrue(rows[1]["forced"])
        self.assertEqual(rows[1]["work_type_code"], "CUSTOM")
        self.assertEqual(list(rows[0]), EXPORT_COLUMNS)

    def test_workbook_has_one_row_per_selected_clause(self) -> None:
        root = self._case_dir()
        try:
            out = export_selection_xlsx(self._selection().annotated(), root / "out" / "selection.xlsx")
            frame = pd.read_excel(out)
            self.assertEqual(list(frame.columns), EXPORT_COLUMNS)
            self.assertEqual(frame["text"].tolist(), ["조건1", "직접 작성"])
            self.assertEqual(frame["importance"].tolist(), ["important", "normal"])
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_empty_selection_writes_header_only(self) -> None:
        root = self._case_dir()
        try:
            out = export_selection_xlsx([], root / "empty.xlsx")
            frame = pd.read_excel(out)
            self.assertEqual(list(frame.columns), EXPORT_COLUMNS)
            self.assertEqual(len(frame), 0)
        finally:
            shutil.rmtree(root, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
