from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .history_store import now_utc

FORCED_CLAUSE_ADDED = "forced_clause_added"
FORCED_CLAUSE_REVIEWED = "forced_clause_reviewed"
DOCUMENT_EXPORTED = "document_exported"


def append_review_event(
    audit_file: str | Path,
    event_type: str,
    actor: str,
    status: str,
    clause_key: tuple[str, str] | list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    path = Path(audit_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp_utc": now_utc(),
        "event_type": event_type,
        "actor": actor,
        "status": status,
        "clause_key": list(clause_key) if clause_key else None,
        "metadata": metadata or {},
    }

    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(event, ensure_ascii=False) + "\n")

    return event


def load_review_events(audit_file: str | Path) -> list[dict[str, Any]]:
    path = Path(audit_file)
    if not path.exists():
        return []

    events: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8-sig") as handle:
        for line in handle:
            raw = line.strip()
            if raw:
                events.append(json.loads(raw))
    return events


def pending_forced_reviews(audit_file: str | Path) -> list[dict[str, Any]]:
    """Forced clauses that have no later review event for the same clause."""
    pending: dict[tuple[str, ...], dict[str, Any]] = {}
    for event in load_review_events(audit_file):
        key = tuple(event.get("clause_key") or ())
        if not key:
            continue
        if event.get("event_type") == FORCED_CLAUSE_ADDED:
            pending[key] = event
        elif event.get("event_type") == FORCED_CLAUSE_REVIEWED:
            pending.pop(key, None)
    return list(pending.values())
