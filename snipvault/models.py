# snipvault/models.py
"""
Typed records handed across the request boundary.

Every model serializes with camelCase keys (``model_dump(by_alias=True)``)
because that is the shape the presentation layer reads and writes on disk.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CUT_SNIPPETS_FOLDER = "Cut Snippets"


def now_ms() -> int:
    return int(time.time() * 1000)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class SnippetRecord(_Record):
    text: str
    tags: List[str] = Field(default_factory=list)
    created: int = Field(default_factory=now_ms)
    modified: int = Field(default_factory=now_ms)
    title: Optional[str] = None

    # Structured-encoding fields; the delimited encoding leaves them at defaults.
    id: Optional[str] = None
    description: str = ""
    category: str = ""
    version: str = "1.0"
    negative_text: str = ""
    promptkit: Any = None

    # Header keys / JSON keys this layer does not interpret.
    extra: dict[str, Any] = Field(default_factory=dict)

    def content_key(self) -> tuple:
        """Identity for comparison purposes: timestamps are provenance, not content."""
        return (self.text, tuple(self.tags), self.title)


class BoardRecord(_Record):
    """Only the four fields used for classification are typed; the rest passes through."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str
    name: str
    cards: List[Any]
    tags: List[Any]


class FolderNode(_Record):
    type: Literal["folder"] = "folder"
    name: str
    path: str
    children: List["TreeNode"] = Field(default_factory=list)


class SnippetNode(_Record):
    type: Literal["snippet"] = "snippet"
    name: str
    path: str
    content: SnippetRecord
    legacy: bool = False
    raw: Any = None


class BoardNode(_Record):
    type: Literal["board"] = "board"
    name: str
    path: str
    content: BoardRecord
    tags: List[str] = Field(default_factory=list)


TreeNode = Annotated[Union[FolderNode, SnippetNode, BoardNode], Field(discriminator="type")]

FolderNode.model_rebuild()


@dataclass(frozen=True)
class SkippedEntry:
    """An entry dropped from the tree; logged by the builder, never raised."""

    path: str
    reason: str


class DirEntry(_Record):
    name: str
    is_directory: bool
    is_file: bool
    is_symlink: bool = False
    size: Optional[int] = None
    mtime: Optional[int] = None
    ctime: Optional[int] = None


class FileStat(_Record):
    is_file: bool
    is_directory: bool
    size: int
    mtime: int
    ctime: int


def pin_cut_snippets(nodes: List[Any]) -> List[Any]:
    """Move the ``Cut Snippets`` folder to the front; every other position is kept."""
    for idx, node in enumerate(nodes):
        if isinstance(node, FolderNode) and node.name == CUT_SNIPPETS_FOLDER:
            if idx > 0:
                nodes.insert(0, nodes.pop(idx))
            break
    return nodes


def dump(value: Any) -> Any:
    """JSON-ready form of a model, a list of models, or a plain value."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [dump(v) for v in value]
    return value
