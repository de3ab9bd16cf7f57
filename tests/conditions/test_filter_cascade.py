from __future__ import annotations

import unittest

from bid_conditions.services.catalog_parser import filtered_clauses, parse_catalog_csv
from bid_conditions.services.filter_cascade import CascadeLevel, FilterCascade

CATALOG = (
    "공종명,공종코드,대분류,세부공종,중분류,태그,내용,중요표기,이미지\n"
    "공사,C1,안전,d,안전일반,태그A,조건1,중요,\n"
    "공사,C1,품질,d,품질일반,태그B,조건2,일반,\n"
    "공사,C1,품질,d,품질특수,태그C,조건3,일반,\n"
    "전기공사,E1,안전,d,전기안전,태그D,조건4,일반,\n"
)


class FilterCascadeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.records = parse_catalog_csv(CATALOG)
        self.cascade = FilterCascade(self.records)

    def test_new_category_clears_sub_category_and_tag(self) -> None:
        c = self.cascade
        c.select(CascadeLevel.WORK_TYPE, "공사")
        c.select(CascadeLevel.CATEGORY, "안전")
        c.select(CascadeLevel.SUB_CATEGORY, "안전일반")
        c.select(CascadeLevel.TAG, "태그A")

        c.select(CascadeLevel.CATEGORY, "품질")
        self.assertIsNone(c.sub_category)
        self.assertIsNone(c.tag)
        self.assertEqual(c.work_type, "공사")
        expected = filtered_clauses(self.records, "공사", "품질", None, None)
        self.assertEqual(c.filtered_clauses(), expected)
        self.assertEqual([r.text for r in expected], ["조건2", "조건3"])

    def test_clearing_work_type_clears_whole_cascade(self) -> None:
        c = self.cascade
        c.choose_work_type("공사")
        c.select(CascadeLevel.CATEGORY, "품질")
        c.select(CascadeLevel.SUB_CATEGORY, "품질특수")
        c.clear(CascadeLevel.WORK_TYPE)
        self.assertEqual(c.as_context(), {"work_type": None, "category": None, "sub_category": None, "tag": None})
        self.assertEqual(c.search_term, "")
        self.assertEqual(len(c.filtered_clauses()), 4)

    def test_options_narrow_with_upstream_choices(self) -> None:
        c = self.cascade
        self.assertEqual(c.options(CascadeLevel.WORK_TYPE), ["공사", "전기공사"])
        c.select(CascadeLevel.WORK_TYPE, "공사")
        self.assertEqual(c.options(CascadeLevel.CATEGORY), ["안전", "품질"])
        c.select(CascadeLevel.CATEGORY, "품질")
        self.assertEqual(c.options(CascadeLevel.SUB_CATEGORY), ["품질일반", "품질특수"])
        c.select(CascadeLevel.SUB_CATEGORY, "품질특수")
        self.assertEqual(c.options(CascadeLevel.TAG), ["태그C"])

    def test_blank_value_counts_as_unselected(self) -> None:
        self.cascade.select(CascadeLevel.WORK_TYPE, "  ")
        self.assertIsNone(self.cascade.work_type)

    def test_search_dropdown_opens_filters_and_closes(self) -> None:
        c = self.cascade
        c.focus_search()
        self.assertTrue(c.dropdown_open)
        self.assertEqual(c.type_search("전기"), ["전기공사"])
        self.assertEqual(c.type_search("공사"), ["공사", "전기공사"])
        c.dismiss_dropdown()
        self.assertFalse(c.dropdown_open)

        c.type_search("전")
        c.choose_work_type("전기공사")
        self.assertFalse(c.dropdown_open)
        self.assertEqual(c.search_term, "전기공사")
        self.assertEqual(c.work_type, "전기공사")
        self.assertEqual([r.text for r in c.filtered_clauses()], ["조건4"])

    def test_load_replaces_records_and_resets(self) -> None:
        c = self.cascade
        c.choose_work_type("공사")
        c.load(self.records[:1])
        self.assertIsNone(c.work_type)
        self.assertEqual(c.options(CascadeLevel.WORK_TYPE), ["공사"])
        self.assertEqual(c.filtered_clauses(), self.records[:1])


if __name__ == "__main__":
    unittest.main()
