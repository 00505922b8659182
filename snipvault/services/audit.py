# snipvault/services/audit.py
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import re

from snipvault.logging import redact_args

logger = logging.getLogger(__name__)

SAFE_EVENT = re.compile(r"[^a-zA-Z0-9:_\-]+")
FILE_STEM = "security"


def _safe_event(event: str) -> str:
    s = SAFE_EVENT.sub("_", event.strip())
    return s or "unknown"


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass
class SecurityAuditService:
    """
    Append-only log of security events (guard rejections, oversize writes,
    rate-limit hits), kept outside the data root:
      <audit_root>/<YYYY-MM>/security-NNNN.ndjson

    Rotation: create a new file when current file exceeds max_bytes.
    Redaction: the absolute data root is stripped from every string field.
    """
    audit_root: Path
    data_root: Optional[Path] = None
    max_bytes: int = 1_000_000

    def __post_init__(self):
        self.base = Path(self.audit_root).resolve()
        self.base.mkdir(parents=True, exist_ok=True)

    # ---------- Public API ----------

    def record(self, event: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        entry = {
            "ts": _iso_now(),
            "event": _safe_event(event),
            "details": redact_args(details or {}, self.data_root),
        }
        month_dir = self._month_dir()
        try:
            month_dir.mkdir(parents=True, exist_ok=True)
            path = self._ensure_current_file(month_dir)
            with path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            # the event is still visible in the process log
            logger.error("could not persist security event %s: %s", entry["event"], exc)
            return {"ok": False, "ts": entry["ts"]}
        logger.info("security_event %s %s", entry["event"], entry["details"])
        return {"ok": True, "ts": entry["ts"]}

    def recent(self, limit: int = 50, months_back: int = 12) -> List[Dict[str, Any]]:
        """Newest first."""
        lines: List[str] = []
        for fp in self._files(months_back=months_back):
            try:
                with open(fp, "r", encoding="utf-8") as f:
                    lines[:0] = f.readlines()
            except FileNotFoundError:
                continue
            if len(lines) >= limit:
                break
        records = []
        for line in reversed(lines):
            try:
                records.append(json.loads(line))
            except ValueError:
                continue
            if len(records) >= limit:
                break
        return records

    def stats(self, months_back: int = 12) -> Dict[str, Any]:
        records = self.recent(limit=100_000, months_back=months_back)
        by_type = Counter(r.get("event", "unknown") for r in records)
        return {
            "totalEvents": len(records),
            "eventsByType": dict(by_type),
            "recentEvents": records[:10],
        }

    # ---------- Internals ----------

    def _month_dir(self, dt: Optional[datetime] = None) -> Path:
        dt = dt or datetime.now(timezone.utc)
        return self.base / f"{dt.year:04d}-{dt.month:02d}"

    def _indices(self, month_dir: Path) -> List[Path]:
        return sorted(month_dir.glob(f"{FILE_STEM}-*.ndjson"))

    def _ensure_current_file(self, month_dir: Path) -> Path:
        existing = self._indices(month_dir)
        if not existing:
            return month_dir / f"{FILE_STEM}-0001.ndjson"

        current = existing[-1]
        try:
            sz = current.stat().st_size
        except FileNotFoundError:
            return current

        if sz >= self.max_bytes:
            # Rotate
            idx = int(current.stem.split("-")[-1])
            return month_dir / f"{FILE_STEM}-{idx + 1:04d}.ndjson"
        return current

    def _files(self, months_back: int) -> List[Path]:
        # Current month back to N months, newest file first
        files: List[Path] = []
        now = datetime.now(timezone.utc)
        for k in range(months_back):
            y = now.year
            m = now.month - k
            while m <= 0:
                y -= 1
                m += 12
            files.extend(reversed(self._indices(self.base / f"{y:04d}-{m:02d}")))
        return files
