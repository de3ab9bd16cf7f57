from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

# Column order of the catalog sheet.
CATALOG_COLUMNS = (
    "work_type",
    "work_type_code",
    "major_category",
    "detail",
    "sub_category",
    "tag",
    "text",
    "importance",
    "image_ref",
)

IMPORTANT = "important"
NORMAL = "normal"
IMPORTANT_MARKERS = {"중요", "important"}


@dataclass(frozen=True)
class ClauseRecord:
    work_type: str = ""
    work_type_code: str = ""
    major_category: str = ""
    sub_category: str = ""
    tag: str = ""
    text: str = ""
    importance: str = NORMAL
    detail: str = ""
    image_ref: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return clause_key(self)

    @property
    def is_important(self) -> bool:
        return self.importance == IMPORTANT

    @property
    def forced(self) -> bool:
        return False


@dataclass(frozen=True)
class CustomClause(ClauseRecord):
    work_type: str = "custom"
    work_type_code: str = "CUSTOM"
    forced: bool = False


def clause_key(clause: ClauseRecord) -> tuple[str, str]:
    """Identity used for de-duplication, selection membership and image lookup."""
    return (clause.work_type_code, clause.text)


def normalize_importance(marker: str) -> str:
    return IMPORTANT if (marker or "").strip().lower() in IMPORTANT_MARKERS else NORMAL


def _clean_cells(row: Sequence[object]) -> list[str]:
    return ["" if cell is None else str(cell).strip() for cell in row]


def parse_catalog_rows(rows: Iterable[Sequence[object]]) -> list[ClauseRecord]:
    """
    Turn tabular rows into clause records.

    The first non-blank row is the header and is discarded. Rows whose field
    count differs from the catalog schema are skipped.
    """
    records: list[ClauseRecord] = []
    header_seen = False
    for row in rows:
        cells = _clean_cells(row)
        if not any(cells):
            continue
        if not header_seen:
            header_seen = True
            continue
        if len(cells) != len(CATALOG_COLUMNS):
            continue

        values = dict(zip(CATALOG_COLUMNS, cells))
        values["importance"] = normalize_importance(values["importance"])
        records.append(ClauseRecord(**values))
    return records


def parse_catalog_csv(text: str) -> list[ClauseRecord]:
    if not text or not text.strip():
        return []
    return parse_catalog_rows(csv.reader(io.StringIO(text.lstrip("\ufeff"))))


def load_catalog_xlsx(path: str | Path, sheet_name: str | None = None) -> list[ClauseRecord]:
    import openpyxl

    src = Path(path)
    if not src.exists():
        raise FileNotFoundError(str(src))

    wb = openpyxl.load_workbook(str(src), read_only=True, data_only=True)
    try:
        ws = wb[sheet_name] if sheet_name else wb.worksheets[0]
        rows: list[list[object]] = []
        for raw in ws.iter_rows(values_only=True):
            cells = list(raw)
            # Sheets often report a wider used range than the catalog itself.
            while len(cells) > len(CATALOG_COLUMNS) and (cells[-1] is None or str(cells[-1]).strip() == ""):
                cells.pop()
            # A sheet row has no field count of its own; empty trailing cells may be absent.
            cells.extend([None] * (len(CATALOG_COLUMNS) - len(cells)))
            rows.append(cells)
    finally:
        wb.close()
    return parse_catalog_rows(rows)


# ---------------------------------------------------------------------------
# Cascading queries
# ---------------------------------------------------------------------------


def _matches(value: str, wanted: str | None) -> bool:
    return not wanted or value == wanted


def _distinct(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def work_types(records: Sequence[ClauseRecord]) -> list[str]:
    return _distinct(r.work_type for r in records)


def categories(records: Sequence[ClauseRecord], work_type: str | None) -> list[str]:
    return _distinct(r.major_category for r in records if _matches(r.work_type, work_type))


def sub_categories(
    records: Sequence[ClauseRecord],
    work_type: str | None,
    category: str | None,
) -> list[str]:
    return _distinct(
        r.sub_category
        for r in records
        if _matches(r.work_type, work_type) and _matches(r.major_category, category)
    )


def tags(
    records: Sequence[ClauseRecord],
    work_type: str | None,
    category: str | None,
    sub_category: str | None,
) -> list[str]:
    return _distinct(
        r.tag
        for r in records
        if _matches(r.work_type, work_type)
        and _matches(r.major_category, category)
        and _matches(r.sub_category, sub_category)
    )


def filtered_clauses(
    records: Sequence[ClauseRecord],
    work_type: str | None,
    category: str | None,
    sub_category: str | None,
    tag: str | None,
) -> list[ClauseRecord]:
    return [
        r
        for r in records
        if _matches(r.work_type, work_type)
        and _matches(r.major_category, category)
        and _matches(r.sub_category, sub_category)
        and _matches(r.tag, tag)
    ]


def search_work_types(records: Sequence[ClauseRecord], term: str) -> list[str]:
    needle = (term or "").strip().lower()
    return [wt for wt in work_types(records) if needle in wt.lower()]
