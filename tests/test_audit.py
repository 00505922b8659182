# tests/test_audit.py
import json
from pathlib import Path

from snipvault.services.audit import SecurityAuditService


def test_record_and_recent_newest_first(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit")
    assert svc.record("invalid_file_path", {"path": "../x"})["ok"]
    svc.record("rate_limited", {"identity": "1.2.3.4"})

    recent = svc.recent(limit=10)
    assert [r["event"] for r in recent] == ["rate_limited", "invalid_file_path"]
    assert recent[1]["details"] == {"path": "../x"}
    assert recent[0]["ts"].endswith("+00:00")


def test_recent_limit(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit")
    for i in range(5):
        svc.record("e", {"i": i})
    assert [r["details"]["i"] for r in svc.recent(limit=2)] == [4, 3]


def test_event_names_are_sanitised(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit")
    svc.record("bad event/../name", {})
    assert svc.recent()[0]["event"] == "bad_event_name"


def test_data_root_and_bulky_fields_are_redacted(tmp_path: Path):
    root = tmp_path / "data"
    svc = SecurityAuditService(tmp_path / "audit", data_root=root)
    svc.record("invalid_file_path", {"path": f"{root}/secret.txt", "content": "x" * 500})

    details = svc.recent()[0]["details"]
    assert str(root) not in json.dumps(details)
    assert details["path"] == "<data-root>/secret.txt"
    assert details["content"] == "<500 chars>"


def test_rotation(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit", max_bytes=10)
    for i in range(3):
        svc.record("e", {"i": i})

    files = sorted((tmp_path / "audit").rglob("security-*.ndjson"))
    assert [f.name for f in files] == [
        "security-0001.ndjson", "security-0002.ndjson", "security-0003.ndjson",
    ]
    assert [r["details"]["i"] for r in svc.recent()] == [2, 1, 0]


def test_stats(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit")
    svc.record("invalid_file_path", {})
    svc.record("invalid_file_path", {})
    svc.record("file_too_large", {})

    stats = svc.stats()
    assert stats["totalEvents"] == 3
    assert stats["eventsByType"] == {"invalid_file_path": 2, "file_too_large": 1}
    assert len(stats["recentEvents"]) == 3


def test_unwritable_audit_dir_does_not_raise(tmp_path: Path):
    svc = SecurityAuditService(tmp_path / "audit")
    month = svc._month_dir()
    month.parent.mkdir(parents=True, exist_ok=True)
    month.write_text("a file where the month directory should be")
    assert svc.record("e", {})["ok"] is False
