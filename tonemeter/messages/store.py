"""File-based message store.

Messages are stored as JSONL files indexed by ``{family_id}__{channel}.jsonl``
under ``~/.tonemeter/messages/``; read receipts live in ``reads.jsonl``.
"""

from __future__ import annotations

import json
import os
import re
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from tonemeter.messages.models import Message, MessageRead


def _safe_filename(name: str) -> str:
    """Sanitise a name for use as part of a filename."""
    return re.sub(r"[^\w\-.]", "_", name)


class MessageStore:
    """JSONL-backed store for family messages and read receipts."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".tonemeter" / "messages"
        self._base.mkdir(parents=True, exist_ok=True)
        self._reads_path = self._base / "reads.jsonl"
        self._lock = threading.Lock()

    # -- helpers -------------------------------------------------------------

    def _file_for(self, family_id: str, channel: str) -> Path:
        return self._base / f"{_safe_filename(family_id)}__{_safe_filename(channel)}.jsonl"

    @staticmethod
    def _read_lines(path: Path) -> list[dict]:
        rows: list[dict] = []
        if not path.exists():
            return rows
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return rows

    def _read_messages(self, path: Path) -> list[Message]:
        messages: list[Message] = []
        for row in self._read_lines(path):
            try:
                messages.append(Message(**row))
            except TypeError:
                continue
        return messages

    def _message_files(self) -> list[Path]:
        return [p for p in self._base.glob("*__*.jsonl")]

    # -- messages ------------------------------------------------------------

    def create_message(self, message: Message) -> Message:
        """Append *message* and return it."""
        path = self._file_for(message.family_id, message.channel)
        with self._lock:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(message), ensure_ascii=False) + "\n")
        return message

    def get_message(self, message_id: str) -> Optional[Message]:
        for path in self._message_files():
            for message in self._read_messages(path):
                if message.id == message_id:
                    return message
        return None

    def list_messages(
        self,
        family_id: str,
        channel: str,
        shared_with_child_only: bool = False,
        limit: int = 100,
    ) -> list[Message]:
        """Return a channel's messages, newest first."""
        messages = self._read_messages(self._file_for(family_id, channel))
        if shared_with_child_only:
            messages = [m for m in messages if m.share_with_child]
        messages.sort(key=lambda m: m.sent_at, reverse=True)
        return messages[:limit]

    def set_delivered(self, message: Message, timestamp: int) -> bool:
        """Fill ``delivered_at`` if it is still empty."""
        path = self._file_for(message.family_id, message.channel)
        with self._lock:
            messages = self._read_messages(path)
            changed = False
            for m in messages:
                if m.id == message.id and m.delivered_at is None:
                    m.delivered_at = timestamp
                    changed = True
            if not changed:
                return False
            tmp = path.with_suffix(".jsonl.tmp")
            with tmp.open("w", encoding="utf-8") as fh:
                for m in messages:
                    fh.write(json.dumps(asdict(m), ensure_ascii=False) + "\n")
            os.replace(tmp, path)
        return True

    # -- read receipts -------------------------------------------------------

    def get_read(self, message_id: str, user_id: str) -> Optional[MessageRead]:
        for row in self._read_lines(self._reads_path):
            if row.get("message_id") == message_id and row.get("user_id") == user_id:
                return MessageRead(**row)
        return None

    def reads_for(self, user_id: str) -> dict[str, int]:
        """Map of message id to first-viewed timestamp for *user_id*."""
        return {
            row["message_id"]: row["first_viewed_at"]
            for row in self._read_lines(self._reads_path)
            if row.get("user_id") == user_id
        }

    def mark_read(self, message_id: str, user_id: str) -> MessageRead:
        receipt = MessageRead(message_id=message_id, user_id=user_id)
        with self._lock:
            with self._reads_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(receipt)) + "\n")
        return receipt
