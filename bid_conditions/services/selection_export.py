from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import pandas as pd

EXPORT_COLUMNS = [
    "work_type",
    "work_type_code",
    "major_category",
    "sub_category",
    "tag",
    "text",
    "importance",
    "detail",
    "image_ref",
    "forced",
    "images",
]


def selection_rows(conditions: Sequence[Any]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for condition in conditions:
        clause = getattr(condition, "clause", condition)
        rows.append(
            {
                "work_type": clause.work_type,
                "work_type_code": clause.work_type_code,
                "major_category": clause.major_category,
                "sub_category": clause.sub_category,
                "tag": clause.tag,
                "text": clause.text,
                "importance": clause.importance,
                "detail": clause.detail,
                "image_ref": clause.image_ref,
                "forced": bool(clause.forced),
                "images": len(getattr(condition, "images", ()) or ()),
            }
        )
    return rows


def export_selection_xlsx(conditions: Sequence[Any], path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(selection_rows(conditions), columns=EXPORT_COLUMNS).to_excel(out, index=False)
    return out
