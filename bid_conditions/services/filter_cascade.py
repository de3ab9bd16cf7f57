from __future__ import annotations

from enum import IntEnum
from typing import Sequence

from .catalog_parser import (
    ClauseRecord,
    categories,
    filtered_clauses,
    search_work_types,
    sub_categories,
    tags,
    work_types,
)


class CascadeLevel(IntEnum):
    WORK_TYPE = 0
    CATEGORY = 1
    SUB_CATEGORY = 2
    TAG = 3


class FilterCascade:
    """
    Four dependent filters over the clause catalog.

    Selecting a value at one level clears every level below it, so lower
    selections always belong to the current upstream path.
    """

    def __init__(self, records: Sequence[ClauseRecord] = ()):
        self._records: list[ClauseRecord] = list(records)
        self._values: list[str | None] = [None] * len(CascadeLevel)
        self.search_term = ""
        self.dropdown_open = False

    @property
    def records(self) -> list[ClauseRecord]:
        return self._records

    def load(self, records: Sequence[ClauseRecord]) -> None:
        self._records = list(records)
        self.reset()

    def value(self, level: CascadeLevel) -> str | None:
        return self._values[level]

    @property
    def work_type(self) -> str | None:
        return self._values[CascadeLevel.WORK_TYPE]

    @property
    def category(self) -> str | None:
        return self._values[CascadeLevel.CATEGORY]

    @property
    def sub_category(self) -> str | None:
        return self._values[CascadeLevel.SUB_CATEGORY]

    @property
    def tag(self) -> str | None:
        return self._values[CascadeLevel.TAG]

    def select(self, level: CascadeLevel, value: str | None) -> None:
        level = CascadeLevel(level)
        self._values[level] = (value or "").strip() or None
        for lower in range(level + 1, len(CascadeLevel)):
            self._values[lower] = None

    def clear(self, level: CascadeLevel) -> None:
        self.select(level, None)
        if level == CascadeLevel.WORK_TYPE:
            self.search_term = ""

    def reset(self) -> None:
        self._values = [None] * len(CascadeLevel)
        self.search_term = ""
        self.dropdown_open = False

    def options(self, level: CascadeLevel) -> list[str]:
        level = CascadeLevel(level)
        if level == CascadeLevel.WORK_TYPE:
            return work_types(self._records)
        if level == CascadeLevel.CATEGORY:
            return categories(self._records, self.work_type)
        if level == CascadeLevel.SUB_CATEGORY:
            return sub_categories(self._records, self.work_type, self.category)
        return tags(self._records, self.work_type, self.category, self.sub_category)

    def filtered_clauses(self) -> list[ClauseRecord]:
        return filtered_clauses(self._records, self.work_type, self.category, self.sub_category, self.tag)

    # -- work-type search dropdown ------------------------------------------

    def focus_search(self) -> None:
        self.dropdown_open = True

    def type_search(self, term: str) -> list[str]:
        self.search_term = term or ""
        self.dropdown_open = True
        return self.matching_work_types()

    def matching_work_types(self) -> list[str]:
        return search_work_types(self._records, self.search_term)

    def dismiss_dropdown(self) -> None:
        self.dropdown_open = False

    def choose_work_type(self, work_type: str) -> None:
        self.select(CascadeLevel.WORK_TYPE, work_type)
        self.search_term = work_type
        self.dropdown_open = False

    def as_context(self) -> dict[str, str | None]:
        return {
            "work_type": self.work_type,
            "category": self.category,
            "sub_category": self.sub_category,
            "tag": self.tag,
        }
