# snipvault/services/guard.py
"""
Path Safety Guard.

Every storage operation passes its caller-supplied relative path through
``PathGuard.validate`` before touching the disk. Validation is pure: bad
input comes back as a ``Rejection`` value, never as an exception.

The string clean-up steps (traversal stripping, illegal characters, separator
runs) only tidy common inputs. The containment check against the resolved
data root is the one that actually keeps callers inside it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

MAX_PATH_LENGTH = 1000

SNIPPET_EXTENSIONS = frozenset({".txt", ".json"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"})
ALL_EXTENSIONS = SNIPPET_EXTENSIONS | IMAGE_EXTENSIONS
EXPORT_EXTENSIONS = frozenset({".md", ".txt", ".json"})
CHARACTER_EXTENSIONS = frozenset({".json"}) | IMAGE_EXTENSIONS

_LEADING_TRAVERSAL = re.compile(r"^(?:\.\.(?:/|\\|$))+")
_ILLEGAL_CHARS = re.compile(r'[<>:"|?*]')
_SLASH_RUNS = re.compile(r"/{2,}")
_BACKSLASH_RUNS = re.compile(r"\\{2,}")


class RejectionReason(str, Enum):
    INVALID_TYPE = "invalid_type"
    PATH_TOO_LONG = "path_too_long"
    NULL_BYTE_INJECTION = "null_byte_injection"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"
    OUTSIDE_DATA_ROOT = "outside_data_root"


@dataclass(frozen=True)
class SafePath:
    relative: str  # "/"-separated, "" for the data root itself
    absolute: Path

    def __str__(self) -> str:
        return self.relative


@dataclass(frozen=True)
class Rejection:
    reason: RejectionReason
    raw_path: str

    def __str__(self) -> str:
        return "Access denied"


ValidationResult = Union[SafePath, Rejection]


def normalize_extensions(extensions: Optional[Iterable[str]]) -> frozenset:
    if not extensions:
        return frozenset()
    return frozenset("." + e.strip().lower().lstrip(".") for e in extensions if e and e.strip("."))


def extension_of(path: str) -> str:
    """Lower-cased suffix of the final component, dot included ("" when there is none)."""
    name = re.split(r"[/\\]", path)[-1]
    dot = name.rfind(".")
    if dot < 0:
        return ""
    return name[dot:].lower()


def has_illegal_chars(name: str) -> bool:
    return bool(_ILLEGAL_CHARS.search(name))


def write_extensions_for(raw_path: str) -> frozenset:
    """Allow-list for a write, chosen by the top-level bucket the path lands in."""
    p = raw_path.replace("\\", "/").lstrip("/") if isinstance(raw_path, str) else ""
    if p.startswith("exports/"):
        return EXPORT_EXTENSIONS
    if p.startswith("snippets/characters/"):
        return CHARACTER_EXTENSIONS
    return ALL_EXTENSIONS


def _preview(raw: object) -> str:
    s = raw if isinstance(raw, str) else repr(type(raw))
    s = s.replace("\0", "\\0")
    return s if len(s) <= 200 else s[:200] + "..."


class PathGuard:
    """
    Stateless validator bound to one data root.
    Safe to share between threads and requests.
    """

    def __init__(self, data_root: Path, max_path_length: int = MAX_PATH_LENGTH):
        self.root = Path(data_root).resolve()
        self.max_path_length = max_path_length

    def validate(
        self, raw_path: object, allowed_extensions: Optional[Iterable[str]] = None
    ) -> ValidationResult:
        if not isinstance(raw_path, str):
            return Rejection(RejectionReason.INVALID_TYPE, _preview(raw_path))
        if len(raw_path) > self.max_path_length:
            return Rejection(RejectionReason.PATH_TOO_LONG, _preview(raw_path))
        if "\0" in raw_path:
            return Rejection(RejectionReason.NULL_BYTE_INJECTION, _preview(raw_path))

        sanitized = sanitize(raw_path)

        allowed = normalize_extensions(allowed_extensions)
        if allowed and extension_of(sanitized) not in allowed:
            return Rejection(RejectionReason.EXTENSION_NOT_ALLOWED, _preview(raw_path))

        resolved = self._contain(sanitized)
        if resolved is None:
            return Rejection(RejectionReason.OUTSIDE_DATA_ROOT, _preview(raw_path))

        relative = "" if resolved == self.root else resolved.relative_to(self.root).as_posix()
        return SafePath(relative=relative, absolute=resolved)

    def _contain(self, sanitized: str) -> Optional[Path]:
        candidate_rel = sanitized.replace("\\", "/")
        try:
            resolved = (self.root / candidate_rel).resolve()
        except (OSError, RuntimeError):
            # symlink loops and unresolvable names
            return None
        if resolved == self.root or self.root in resolved.parents:
            return resolved
        return None


def sanitize(raw_path: str) -> str:
    s = _LEADING_TRAVERSAL.sub("", raw_path)
    s = _ILLEGAL_CHARS.sub("", s)
    s = _SLASH_RUNS.sub("/", s)
    s = _BACKSLASH_RUNS.sub("\\\\", s)
    return s
