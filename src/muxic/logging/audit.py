"""Structured JSONL audit log of dedup actions."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One recorded action: a deletion, a failure, a cache operation."""

    timestamp: str
    event: str
    ok: bool
    path: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlAuditLogger:
    """Append-only JSONL audit logger and bounded reader.

    Write failures are counted rather than raised so an unwritable log never
    interrupts a run that is already deleting files.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._write_failures = 0

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    @property
    def write_failures(self) -> int:
        return self._write_failures

    def record(
        self,
        event: str,
        ok: bool = True,
        path: str | None = None,
        **metadata: object,
    ) -> AuditEvent:
        """Build, append and return an event stamped with the current time."""
        entry = AuditEvent(
            timestamp=utc_timestamp(),
            event=event,
            ok=ok,
            path=path,
            metadata=dict(sorted(metadata.items())),
        )
        self.append(entry)
        return entry

    def append(self, event: AuditEvent) -> None:
        """Append an event as one JSON object per line."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(asdict(event), sort_keys=True))
                handle.write("\n")
        except OSError:
            self._write_failures += 1

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Read recent events, optionally filtered by timestamp lower bound."""
        if limit < 1:
            return []
        entries: list[dict[str, object]] = []
        if not self._path.exists():
            return entries
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                entries.append(record)
        if len(entries) <= limit:
            return entries
        return entries[-limit:]
