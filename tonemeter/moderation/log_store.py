"""File-based moderation log.

Entries are stored one JSON object per line in
``~/.tonemeter/moderation/moderation_log.jsonl``.  The file is strictly
append-only, so several processes can share it.  Attaching a message id to
an entry appends a link row (``"kind": "link"``) that is folded into the
referenced entry on read; when two links target one entry the later line
wins.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from tonemeter.moderation.models import ModerationLogEntry

LINK_KIND = "link"


class ModerationLogStore:
    """JSONL-backed store for :class:`ModerationLogEntry` rows."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".tonemeter" / "moderation"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / "moderation_log.jsonl"
        self._lock = threading.Lock()

    # -- helpers -------------------------------------------------------------

    def _append(self, row: dict[str, Any]) -> None:
        line = json.dumps(row, ensure_ascii=False) + "\n"
        with self._lock:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line)

    def _read_all(self) -> list[ModerationLogEntry]:
        entries: dict[str, ModerationLogEntry] = {}
        links: list[dict[str, Any]] = []
        if not self._path.exists():
            return []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(row, dict):
                continue
            if row.get("kind") == LINK_KIND:
                links.append(row)
                continue
            try:
                entry = ModerationLogEntry(**row)
            except TypeError:
                continue
            entries[entry.id] = entry

        for link in links:
            entry = entries.get(link.get("entry_id", ""))
            if entry is not None:
                entry.message_id = link.get("message_id")
        return list(entries.values())

    # -- public API ----------------------------------------------------------

    def insert(self, entry: ModerationLogEntry) -> ModerationLogEntry:
        """Append *entry* and return it."""
        self._append(asdict(entry))
        return entry

    def count_since(self, author_id: str, since: int) -> int:
        """Number of entries by *author_id* created at or after *since*."""
        return sum(
            1
            for e in self._read_all()
            if e.author_id == author_id and e.created_at >= since
        )

    def attach_message_to_latest(self, author_id: str, message_id: str) -> bool:
        """Link *message_id* to the author's newest entry.

        Returns ``False`` when the author has no entries or the newest one is
        already linked to a message.  Concurrent sends by one author may both
        link the same entry; the later link wins.
        """
        latest: Optional[ModerationLogEntry] = None
        for entry in self._read_all():
            if entry.author_id != author_id:
                continue
            if latest is None or entry.created_at >= latest.created_at:
                latest = entry
        if latest is None or latest.message_id is not None:
            return False

        self._append(
            {
                "kind": LINK_KIND,
                "entry_id": latest.id,
                "author_id": author_id,
                "message_id": message_id,
                "created_at": int(time.time()),
            }
        )
        return True

    def list_entries(
        self,
        author_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[ModerationLogEntry]:
        """Return entries, newest first, optionally for one author."""
        entries = self._read_all()
        if author_id:
            entries = [e for e in entries if e.author_id == author_id]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[:limit]
