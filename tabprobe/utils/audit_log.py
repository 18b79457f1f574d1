"""Audit logging for tabprobe sessions.

Keeps an append-only record of every session for:
- Debugging pages where the shortcut never opened a tab
- Telling a genuinely empty clipboard apart from a failed read
- Tracking how many attempts sessions usually need
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict, field
import threading

from tabprobe.utils.logger import setup_logger


@dataclass
class SessionRecord:
    """A single audit log entry describing one finished session."""
    session_id: str
    target_url: str
    started_at: str
    ended_at: Optional[str] = None
    runner: str = "in_process"  # in_process, isolated
    outcome: str = "pending"  # new_tab_url, clipboard_text, error
    new_tab_url: Optional[str] = None
    clipboard_read_failed: bool = False
    error_kind: Optional[str] = None
    error: Optional[str] = None
    attempts: List[Dict[str, Any]] = field(default_factory=list)
    blocked_requests: int = 0
    duration_ms: int = 0


class AuditLog:
    """
    Thread-safe audit logger for sessions.

    Writes JSONL (JSON Lines) files, one per UTC day. Each session is a
    single self-contained line, so concurrent sessions never share state.

    Usage:
        audit = AuditLog(Path("artifacts/audit_logs"))
        audit.record_session(SessionRecord(
            session_id="a1b2c3",
            target_url="https://example.com",
            started_at=datetime.now(timezone.utc).isoformat(),
            outcome="new_tab_url",
        ))
    """

    def __init__(self, log_dir: Path):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory to store audit logs (created on first write)
        """
        self.logger = setup_logger("AuditLog")
        self.log_dir = Path(log_dir)
        self._lock = threading.Lock()

    def current_log_path(self) -> Path:
        """Path of the file today's records are appended to."""
        day = datetime.now(timezone.utc).strftime('%Y%m%d')
        return self.log_dir / f"sessions_{day}.jsonl"

    def record_session(self, record: SessionRecord) -> Optional[Path]:
        """
        Append a finished session to the audit log.

        Write failures are logged and swallowed.

        Returns:
            Path written to, or None if the write failed
        """
        line = json.dumps({"type": "session", **asdict(record)}, default=str)

        with self._lock:
            path = self.current_log_path()
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                with open(path, 'a') as f:
                    f.write(line + '\n')
            except OSError as e:
                self.logger.error(f"Failed to write audit log: {e}")
                return None

        self.logger.debug(f"Audited session {record.session_id}: {record.outcome}")
        return path

    def get_recent_logs(self, limit: int = 10) -> List[Path]:
        """
        Get paths to recent audit logs.

        Args:
            limit: Maximum number of logs to return

        Returns:
            List of paths sorted by modification time (newest first)
        """
        if not self.log_dir.exists():
            return []
        logs = sorted(
            self.log_dir.glob("*.jsonl"),
            key=lambda p: p.stat().st_mtime,
            reverse=True
        )
        return logs[:limit]

    @staticmethod
    def load_log(log_path: Path) -> List[Dict[str, Any]]:
        """
        Load and parse an audit log file.

        Args:
            log_path: Path to the log file

        Returns:
            List of log entries
        """
        entries = []
        with open(log_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries
