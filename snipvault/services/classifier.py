# snipvault/services/classifier.py
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from jsonschema import Draft202012Validator

from snipvault.errors import SnippetParseError
from snipvault.models import BoardNode, BoardRecord, SkippedEntry, SnippetNode, SnippetRecord, now_ms
from snipvault.services.snippets import parse_snippet_json

logger = logging.getLogger(__name__)


class DocumentKind(str, Enum):
    BOARD = "board"
    SNIPPET = "snippet"
    LEGACY = "legacy"


# A board needs all four fields together; a `tags` array alone proves nothing.
BOARD_SHAPE: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "name", "cards", "tags"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "cards": {"type": "array"},
        "tags": {"type": "array"},
    },
}

SNIPPET_SHAPE: Dict[str, Any] = {
    "type": "object",
    "required": ["text"],
    "properties": {"text": {"type": "string", "minLength": 1}},
}


class DocumentClassifier:
    """
    Decide what a ``.json`` file under the data root is.

    Arms are tried in order and the first matching shape wins:
    board, then snippet, then the legacy fallback that accepts any JSON value.
    """

    _ARMS: Tuple[Tuple[DocumentKind, Dict[str, Any]], ...] = (
        (DocumentKind.BOARD, BOARD_SHAPE),
        (DocumentKind.SNIPPET, SNIPPET_SHAPE),
    )

    def __init__(self):
        self._validators: List[Tuple[DocumentKind, Draft202012Validator]] = []
        for kind, schema in self._ARMS:
            Draft202012Validator.check_schema(schema)
            self._validators.append((kind, Draft202012Validator(schema)))

    def classify(self, document: Any) -> DocumentKind:
        for kind, validator in self._validators:
            if validator.is_valid(document):
                return kind
        return DocumentKind.LEGACY

    def decode(self, filename: str, path: str, raw: str) -> Union[BoardNode, SnippetNode, SkippedEntry]:
        try:
            document = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            return SkippedEntry(path, f"invalid JSON: {exc}")

        kind = self.classify(document)
        if kind is DocumentKind.BOARD:
            board = BoardRecord.model_validate(document)
            return BoardNode(
                name=board.name,
                path=path,
                content=board,
                tags=_unique_strings(board.tags),
            )
        if kind is DocumentKind.SNIPPET:
            try:
                record = parse_snippet_json(document)
            except SnippetParseError as exc:
                return SkippedEntry(path, str(exc))
            return SnippetNode(name=_stem(filename), path=path, content=record)
        return SnippetNode(
            name=filename,
            path=path,
            content=legacy_record(document, filename),
            legacy=True,
            raw=document,
        )


def legacy_record(document: Any, filename: str) -> SnippetRecord:
    """Best-effort record for JSON that is neither a board nor a current snippet."""
    fields = document if isinstance(document, dict) else {}
    text = fields.get("text")
    tags = fields.get("tags")
    now = now_ms()
    return SnippetRecord(
        text=text if isinstance(text, str) else "",
        tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        created=now,
        modified=now,
        title=filename,
    )


def _stem(filename: str) -> str:
    return filename[: -len(".json")] if filename.lower().endswith(".json") else filename


def _unique_strings(values: List[Any]) -> List[str]:
    seen: List[str] = []
    for v in values:
        if isinstance(v, str) and v not in seen:
            seen.append(v)
    return seen
