"""Audit logging for family activity.

Provides file-based JSON audit logging with simple filtering.  All events
are stored in ``~/.tonemeter/audit_logs/``, one file per UTC day.
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    created_at: int
    action: str
    entity_type: str
    entity_id: str = ""
    user_id: str = ""
    family_id: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""


class AuditLogger:
    """File-based JSON audit logger.

    Events are persisted as newline-delimited JSON in daily log files stored
    under ``~/.tonemeter/audit_logs/``.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".tonemeter" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _current_log_file(self) -> Path:
        return self._base_dir / f"{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        """Read every entry from all log files."""
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    continue
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        action: str,
        entity_type: str,
        entity_id: str = "",
        user_id: str = "",
        family_id: str = "",
        details: Optional[dict[str, Any]] = None,
        ip_address: str = "",
        user_agent: str = "",
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        entry = AuditEntry(
            id=uuid.uuid4().hex,
            created_at=int(time.time()),
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            family_id=family_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        with self._current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")
        return entry

    def get_events(
        self,
        *,
        family_id: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if family_id:
            entries = [e for e in entries if e.family_id == family_id]
        if user_id:
            entries = [e for e in entries if e.user_id == user_id]
        if action:
            entries = [e for e in entries if e.action == action]

        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[:limit]
