from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol


def now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


class HistoryStore(Protocol):
    def append(self, entry: dict[str, Any]) -> None: ...

    def list(self) -> list[dict[str, Any]]: ...

    def clear(self) -> None: ...


def _cap(entries: list[dict[str, Any]], entry: dict[str, Any], max_entries: int, newest_first: bool) -> list[dict[str, Any]]:
    limit = max(1, max_entries)
    if newest_first:
        return ([entry] + entries)[:limit]
    return (entries + [entry])[-limit:]


class MemoryHistoryStore:
    def __init__(self, max_entries: int, newest_first: bool = True):
        self.max_entries = max_entries
        self.newest_first = newest_first
        self._entries: list[dict[str, Any]] = []

    def append(self, entry: dict[str, Any]) -> None:
        self._entries = _cap(self._entries, dict(entry), self.max_entries, self.newest_first)

    def list(self) -> list[dict[str, Any]]:
        return [dict(e) for e in self._entries]

    def clear(self) -> None:
        self._entries = []


class JsonHistoryStore:
    """
    Capped history kept in a single JSON array file.

    Export history is newest-first; analysis history is chronological and drops
    the oldest entry once the cap is reached.
    """

    def __init__(self, path: str | Path, max_entries: int, newest_first: bool = True):
        self.path = Path(path)
        self.max_entries = max_entries
        self.newest_first = newest_first

    def list(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8-sig") or "[]")
        except ValueError:
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    def append(self, entry: dict[str, Any]) -> None:
        entries = _cap(self.list(), dict(entry), self.max_entries, self.newest_first)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(entries, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        tmp.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
