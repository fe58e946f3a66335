"""JSON-file store for prediction journal entries."""

import json
import logging
import os
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from macro_dashboard.models.journal import JournalEntry, PredictionResult


logger = logging.getLogger(__name__)

# Assigned at creation, never changed by an update
_IMMUTABLE_FIELDS = ("id", "createdAt")


class JournalStoreError(Exception):
    """Raised when the journal file exists but cannot be read."""


class JournalStore:
    """
    Journal entries kept in a single JSON document: {"entries": [...]}.

    Every operation reads the whole file and mutations rewrite it. A lock
    serializes writers inside one process; separate processes writing the
    same file can still lose updates.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                journal = json.load(f)
        except json.JSONDecodeError as e:
            raise JournalStoreError(f"Journal file {self.path} is not valid JSON: {e}") from e
        return list(journal.get("entries") or [])

    def _write(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"entries": entries}, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def list_entries(self) -> list[JournalEntry]:
        return [JournalEntry.from_dict(raw) for raw in self._read()]

    def get(self, entry_id: str) -> JournalEntry | None:
        for raw in self._read():
            if raw.get("id") == entry_id:
                return JournalEntry.from_dict(raw)
        return None

    def get_by_event_id(self, event_id: str) -> JournalEntry | None:
        for raw in self._read():
            if raw.get("eventId") == event_id:
                return JournalEntry.from_dict(raw)
        return None

    def create(self, entry: JournalEntry) -> JournalEntry:
        """Persist a new entry with a fresh id and creation time."""
        created = replace(
            entry,
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        )
        with self._lock:
            entries = self._read()
            entries.append(created.to_dict())
            self._write(entries)
        logger.info(f"Created journal entry {created.id} for {created.event_id}")
        return created

    def update(self, entry_id: str, updates: dict[str, Any]) -> JournalEntry | None:
        """
        Shallow-merge serialized fields into an entry.

        ``updates`` uses the stored (camelCase) keys, e.g. {"memo": "..."}
        or {"result": {...}}. Returns None if the entry does not exist.
        """
        changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
        with self._lock:
            entries = self._read()
            for index, raw in enumerate(entries):
                if raw.get("id") == entry_id:
                    merged = {**raw, **changes}
                    # Validate before writing
                    updated = JournalEntry.from_dict(merged)
                    entries[index] = merged
                    self._write(entries)
                    logger.info(f"Updated journal entry {entry_id}: {sorted(changes)}")
                    return updated
        return None

    def save_for_event(self, entry: JournalEntry) -> JournalEntry:
        """Create the entry, or overwrite the existing one for the same event."""
        existing = self.get_by_event_id(entry.event_id)
        if existing is None:
            return self.create(entry)

        updates = entry.to_dict()
        # An unsaved entry has no result yet; keep the recorded one
        if entry.result is None:
            updates.pop("result", None)
        updated = self.update(existing.id, updates)
        if updated is None:
            return self.create(entry)
        return updated

    def record_result(self, entry_id: str, result: PredictionResult) -> JournalEntry | None:
        return self.update(entry_id, {"result": result.to_dict()})

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            entries = self._read()
            remaining = [raw for raw in entries if raw.get("id") != entry_id]
            if len(remaining) == len(entries):
                return False
            self._write(remaining)
        logger.info(f"Deleted journal entry {entry_id}")
        return True
