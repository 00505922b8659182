# snipvault/services/snippets.py
"""
Snippet encodings.

Two on-disk formats decode to the same ``SnippetRecord``:

``.txt`` (delimited text)::

    title: Neon street
    tags: cyberpunk, night
    created: 1718000000000
    ---
    rain-slick street, neon signs

``.json`` (structured)::

    {"id": "...", "text": "...", "tags": [...], "created": 1718000000000, ...}

Both round-trip: ``parse(format(record))`` gives back the same text and tags.
"""
from __future__ import annotations

import json
import math
import re
import uuid
from datetime import datetime
from typing import Any, Dict, Mapping, Union

from snipvault.errors import SnippetParseError
from snipvault.models import SnippetRecord, now_ms

DELIMITER = re.compile(r"^---\n", re.MULTILINE)
_INT = re.compile(r"[+-]?[0-9]+")
_LEADING_INT = re.compile(r"([+-]?[0-9]+)")

TITLE_LENGTH = 50

# JSON keys mapped onto typed SnippetRecord fields; anything else lands in `extra`.
_JSON_KEYS = {
    "id", "text", "tags", "created", "createdAt", "modified", "modifiedAt", "title",
    "description", "category", "version", "negativeText", "promptkit",
}


def new_snippet_id() -> str:
    return f"snippet_{now_ms()}_{uuid.uuid4().hex[:9]}"


def _epoch_ms(value: Any, default: int) -> int:
    """Accept epoch milliseconds as int/float/digit string, or an ISO-8601 timestamp."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return default
        return int(value) or default
    if isinstance(value, str):
        s = value.strip()
        if _INT.fullmatch(s):
            return int(s) or default
        try:
            return int(datetime.fromisoformat(s).timestamp() * 1000)
        except (ValueError, OverflowError, OSError):
            pass
        # leading-integer prefix, e.g. "1718000000000ms"
        m = _LEADING_INT.match(s)
        if m:
            return int(m.group(1)) or default
    return default


# ---------- Delimited text ----------

def parse_snippet_text(content: str) -> SnippetRecord:
    if not isinstance(content, str):
        raise SnippetParseError(f"expected text content, got {type(content).__name__}")

    now = now_ms()
    m = DELIMITER.search(content)
    if m is None:
        return SnippetRecord(text=content.strip(), tags=[], created=now, modified=now)

    header = content[: m.start()].strip()
    body = content[m.end():].strip()

    meta: Dict[str, str] = {}
    for line in header.split("\n"):
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        meta[key] = value.strip()

    tags_raw = meta.pop("tags", "")
    tags = [t.strip() for t in tags_raw.split(",") if t.strip()]
    created = _epoch_ms(meta.pop("created", None), now)
    modified = _epoch_ms(meta.pop("modified", None), created)
    title = meta.pop("title", "") or None

    return SnippetRecord(
        text=body,
        tags=tags,
        created=created,
        modified=modified,
        title=title,
        extra=meta,
    )


def _header_value(key: str, value: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"header field '{key}' cannot span lines")
    return value.strip()


def format_snippet_text(record: SnippetRecord) -> str:
    for tag in record.tags:
        if "," in tag or "\n" in tag or not tag.strip() or tag != tag.strip():
            raise ValueError(f"tag {tag!r} cannot be stored in the text format")

    lines = []
    if record.title:
        lines.append(f"title: {_header_value('title', record.title)}")
    lines.append(f"tags: {', '.join(record.tags)}")
    lines.append(f"created: {record.created}")
    lines.append(f"modified: {record.modified}")
    for key, value in record.extra.items():
        if ":" in key or "\n" in key or not key.strip():
            raise ValueError(f"header key {key!r} cannot be stored in the text format")
        lines.append(f"{key}: {_header_value(key, str(value))}")
    return "\n".join(lines) + "\n---\n" + record.text + "\n"


# ---------- Structured (JSON) ----------

def parse_snippet_json(content: Union[str, Mapping[str, Any]]) -> SnippetRecord:
    if isinstance(content, str):
        try:
            doc = json.loads(content)
        except (ValueError, RecursionError) as exc:
            raise SnippetParseError(f"invalid JSON: {exc}") from exc
    else:
        doc = content

    if not isinstance(doc, Mapping) or not isinstance(doc.get("text"), str):
        raise SnippetParseError("snippet document needs a string 'text' field")

    now = now_ms()
    text = doc["text"]
    tags = doc.get("tags")
    created = _epoch_ms(doc.get("created") or doc.get("createdAt"), now)
    modified = _epoch_ms(doc.get("modified") or doc.get("modifiedAt"), now)
    version = doc.get("version")

    return SnippetRecord(
        text=text,
        tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        created=created,
        modified=modified,
        title=_str_or(doc.get("title"), "") or text[:TITLE_LENGTH],
        id=_str_or(doc.get("id"), "") or new_snippet_id(),
        description=_str_or(doc.get("description"), ""),
        category=_str_or(doc.get("category"), ""),
        version=str(version) if version not in (None, "") else "1.0",
        negative_text=_str_or(doc.get("negativeText"), ""),
        promptkit=doc.get("promptkit"),
        extra={k: v for k, v in doc.items() if k not in _JSON_KEYS},
    )


def _str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def snippet_document(record: SnippetRecord) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "id": record.id or new_snippet_id(),
        "text": record.text,
        "tags": list(record.tags),
        "created": record.created,
        "modified": record.modified,
        "title": record.title if record.title is not None else record.text[:TITLE_LENGTH],
        "description": record.description,
        "category": record.category,
        "version": record.version,
    }
    if record.negative_text:
        doc["negativeText"] = record.negative_text
    if record.promptkit is not None:
        doc["promptkit"] = record.promptkit
    for key, value in record.extra.items():
        doc.setdefault(key, value)
    return doc


def format_snippet_json(record: SnippetRecord) -> str:
    return json.dumps(snippet_document(record), indent=2, ensure_ascii=False)


def to_structured(record: SnippetRecord) -> SnippetRecord:
    """Fill the fields the structured encoding requires (id, title) before writing it."""
    return record.model_copy(
        update={
            "id": record.id or new_snippet_id(),
            "title": record.title or record.text[:TITLE_LENGTH],
            "modified": now_ms(),
        }
    )
