from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

# Sections 1-5 of the document are fixed front matter.
FRONT_MATTER_SECTION_COUNT = 5
OTHER_SECTION_TITLE = "기타"


class Categorized(Protocol):
    @property
    def major_category(self) -> str: ...

    @property
    def sub_category(self) -> str: ...


@dataclass(frozen=True)
class DocumentSection:
    title: str
    sequence_number: int
    conditions: tuple


def section_title(condition: Categorized) -> str:
    return (condition.sub_category or "").strip() or (condition.major_category or "").strip() or OTHER_SECTION_TITLE


def group_sections(
    conditions: Sequence[Categorized],
    front_matter_count: int = FRONT_MATTER_SECTION_COUNT,
) -> list[DocumentSection]:
    """Partition the selection into numbered sections in first-seen category order."""
    buckets: dict[str, list] = {}
    for condition in conditions:
        buckets.setdefault(section_title(condition), []).append(condition)

    return [
        DocumentSection(title=title, sequence_number=front_matter_count + offset, conditions=tuple(items))
        for offset, (title, items) in enumerate(buckets.items(), start=1)
    ]
