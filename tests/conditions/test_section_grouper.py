from __future__ import annotations

import unittest

from bid_conditions.services.catalog_parser import ClauseRecord, CustomClause
from bid_conditions.services.section_grouper import OTHER_SECTION_TITLE, group_sections, section_title


def _clause(text: str, major: str, sub: str) -> ClauseRecord:
    return ClauseRecord(work_type="공사", work_type_code="C1", major_category=major, sub_category=sub, text=text)


class SectionGrouperTests(unittest.TestCase):
    def test_sections_follow_first_seen_order_and_start_after_front_matter(self) -> None:
        conditions = [
            _clause("a", "안전", "안전일반"),
            _clause("b", "품질", "품질일반"),
            _clause("c", "안전", "안전일반"),
        ]
        sections = group_sections(conditions)
        self.assertEqual([s.title for s in sections], ["안전일반", "품질일반"])
        self.assertEqual([s.sequence_number for s in sections], [6, 7])
        self.assertEqual([c.text for c in sections[0].conditions], ["a", "c"])

    def test_every_condition_lands_in_exactly_one_section(self) -> None:
        conditions = [_clause(str(i), "m", f"s{i % 3}") for i in range(10)]
        sections = group_sections(conditions)
        flattened = [c for s in sections for c in s.conditions]
        self.assertEqual(sorted(c.text for c in flattened), sorted(c.text for c in conditions))
        self.assertEqual(len({s.title for s in sections}), len(sections))

    def test_title_falls_back_to_major_category_then_other(self) -> None:
        self.assertEqual(section_title(_clause("x", "품질", "")), "품질")
        self.assertEqual(section_title(_clause("x", "", "  ")), OTHER_SECTION_TITLE)

    def test_custom_clauses_share_sections_with_catalog_clauses(self) -> None:
        custom = CustomClause(major_category="안전", sub_category="안전일반", text="직접 작성")
        sections = group_sections([_clause("a", "안전", "안전일반"), custom])
        self.assertEqual(len(sections), 1)
        self.assertEqual([c.text for c in sections[0].conditions], ["a", "직접 작성"])

    def test_empty_selection_has_no_sections(self) -> None:
        self.assertEqual(group_sections([]), [])

    def test_front_matter_count_is_configurable(self) -> None:
        sections = group_sections([_clause("a", "m", "s")], front_matter_count=0)
        self.assertEqual(sections[0].sequence_number, 1)


if __name__ == "__main__":
    unittest.main()
