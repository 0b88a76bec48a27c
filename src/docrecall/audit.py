"""Append-only JSONL audit log."""

import json
from pathlib import Path
from typing import Any

from docrecall.models import utc_now


class AuditLog:
    """One JSON object per line, each stamped with an ISO-8601 timestamp."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def record(self, action: str, **fields: Any) -> dict[str, Any]:
        """Append an entry and return it."""
        entry = {"timestamp": utc_now(), "action": action, **fields}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, sort_keys=True, default=str))
            handle.write("\n")
        return entry

    def read(self, limit: int = 100) -> list[dict[str, Any]]:
        """Return the most recent entries, oldest first."""
        if limit < 1 or not self.path.exists():
            return []

        entries = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return entries[-limit:]
