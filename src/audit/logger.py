"""Audit logger: append-only JSON Lines record of relay events with rotation."""

from __future__ import annotations

import fcntl
import json
import os
from pathlib import Path

from src.models import AuditEvent


def read_audit_events(
    log_path: Path,
    event_type: str | None = None,
    limit: int | None = None,
) -> list[dict[str, object]]:
    """Load events from the current audit log file, oldest first.

    ``event_type`` keeps only matching events; ``limit`` keeps the newest N.
    Rotated backups are not read.
    """
    if not log_path.exists():
        return []
    events = [
        json.loads(line)
        for line in log_path.read_text().splitlines()
        if line.strip()
    ]
    if event_type is not None:
        events = [e for e in events if e.get("event_type") == event_type]
    if limit is not None:
        events = events[-limit:] if limit > 0 else []
    return events


class AuditLogger:
    """Append-only relay event log, rotated into numbered backups by size."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        """Create AuditLogger with rotation limits from environment variables."""
        max_bytes = int(os.environ.get("AUDIT_LOG_MAX_BYTES", "10485760"))
        backup_count = int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", "5"))
        return cls(log_path=log_path, max_bytes=max_bytes, backup_count=backup_count)

    def _backup(self, index: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.name}.{index}")

    def _needs_rotation(self) -> bool:
        return self.log_path.exists() and self.log_path.stat().st_size >= self._max_bytes

    def _rotate(self) -> None:
        """Shift ``log.N-1`` -> ``log.N`` ... ``log`` -> ``log.1``, dropping the oldest."""
        self._backup(self._backup_count).unlink(missing_ok=True)
        for index in reversed(range(1, self._backup_count)):
            backup = self._backup(index)
            if backup.exists():
                backup.rename(self._backup(index + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json(exclude_none=True) + "\n"

        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")
        with open(lock_path, "w") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                if self._needs_rotation():
                    self._rotate()
                with open(self.log_path, "a") as f:
                    f.write(line)
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)
