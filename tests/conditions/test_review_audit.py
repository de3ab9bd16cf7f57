from __future__ import annotations

import shutil
import unittest
import uuid
from pathlib import Path

from bid_conditions.services.review_audit import (
    DOCUMENT_EXPORTED,
    FORCED_CLAUSE_ADDED,
    FORCED_CLAUSE_REVIEWED,
    append_review_event,
    load_review_events,
    pending_forced_reviews,
)


class ReviewAuditTests(unittest.TestCase):
    def _case_dir(self) -> Path:
        root = Path(__file__).resolve().parents[2] / "downloads" / "test_review_audit"
        case_dir = root / str(uuid.uuid4())
        case_dir.mkdir(parents=True, exist_ok=True)
        return case_dir

    def test_append_and_load_events_are_queryable(self) -> None:
        root = self._case_dir()
        try:
            audit_file = root / "audit" / "events.jsonl"
            append_review_event(
                audit_file,
                FORCED_CLAUSE_ADDED,
                actor="alice",
                status="pending_review",
                clause_key=("CUSTOM", "도로 점유 허가 필요"),
                metadata={"level": "high"},
            )
            append_review_event(
                audit_file,
                DOCUMENT_EXPORTED,
                actor="bob",
                status="success",
                metadata={"file_name": "현장_견적조건서_2025-01-01.pdf"},
            )

            events = load_review_events(audit_file)
            self.assertEqual(len(events), 2)
            self.assertEqual(events[0]["event_type"], FORCED_CLAUSE_ADDED)
            self.assertEqual(events[0]["actor"], "alice")
            self.assertEqual(events[0]["clause_key"], ["CUSTOM", "도로 점유 허가 필요"])
            self.assertIn("timestamp_utc", events[0])
            self.assertIsNone(events[1]["clause_key"])
            self.assertEqual(events[1]["metadata"]["file_name"], "현장_견적조건서_2025-01-01.pdf")
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_load_returns_empty_for_missing_file(self) -> None:
        root = self._case_dir()
        try:
            self.assertEqual(load_review_events(root / "missing.jsonl"), [])
            self.assertEqual(pending_forced_reviews(root / "missing.jsonl"), [])
        finally:
            shutil.rmtree(root, ignore_errors=True)

    def test_reviewed_forced_clauses_are_no_longer_pending(self) -> None:
        root = self._case_dir()
        try:
            audit_file = root / "events.jsonl"
            first = ("CUSTOM", "조항1")
            second = ("CUSTOM", "조항2")
            append_review_event(audit_file, FORCED_CLAUSE_ADDED, "alice", "pending_review", clause_key=first)
            append_review_event(audit_file, FORCED_CLAUSE_ADDED, "alice", "pending_review", clause_key=second)
            append_review_event(audit_file, FORCED_CLAUSE_REVIEWED, "carol", "approved", clause_key=first)

            pending = pending_forced_reviews(audit_file)
            self.assertEqual([e["clause_key"] for e in pending], [["CUSTOM", "조항2"]])
        finally:
            shutil.rmtree(root, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
