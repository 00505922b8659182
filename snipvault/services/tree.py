# snipvault/services/tree.py
from __future__ import annotations

import logging
import posixpath
from typing import List, Optional, Union

from snipvault.errors import AccessDenied, SnippetParseError, StorageIOError
from snipvault.models import (
    BoardNode,
    DirEntry,
    FolderNode,
    SkippedEntry,
    SnippetNode,
    TreeNode,
    pin_cut_snippets,
)
from snipvault.services.classifier import DocumentClassifier
from snipvault.services.filestore import FileStore
from snipvault.services.guard import has_illegal_chars
from snipvault.services.snippets import parse_snippet_text

logger = logging.getLogger(__name__)

SNIPPET_ROOT = "snippets"
BOARD_ROOT = "boards"

# Folders that hold assets rather than sidebar content.
HIDDEN_FOLDERS = frozenset({"images"})

EntryOutcome = Union[FolderNode, SnippetNode, BoardNode, SkippedEntry]


class TreeBuilder:
    """
    Rebuild the sidebar view from disk on every call.

    Each directory entry decodes to a node or a ``SkippedEntry``; skipped
    entries are logged and dropped so one bad file never costs the whole tree.
    """

    def __init__(self, store: FileStore, classifier: Optional[DocumentClassifier] = None):
        self.store = store
        self.classifier = classifier or DocumentClassifier()

    def build(self, root_dir: str = SNIPPET_ROOT) -> List[TreeNode]:
        return self._build_level(root_dir, "")

    def _build_level(self, base: str, rel: str) -> List[TreeNode]:
        dir_path = _join(base, rel)
        try:
            entries = self.store.list_dir(dir_path)
        except (StorageIOError, AccessDenied) as exc:
            logger.warning("cannot list %r, leaving it empty: %s", dir_path, exc)
            return []

        nodes: List[TreeNode] = []
        for entry in entries:
            if not _is_tree_entry(entry):
                continue
            outcome = self._decode_entry(base, _join(rel, entry.name), entry)
            if isinstance(outcome, SkippedEntry):
                logger.warning("skipping %r: %s", outcome.path, outcome.reason)
                continue
            nodes.append(outcome)
        return pin_cut_snippets(nodes)

    def _decode_entry(self, base: str, rel: str, entry: DirEntry) -> EntryOutcome:
        if has_illegal_chars(entry.name):
            return SkippedEntry(rel, "name contains characters the store cannot address")

        if entry.is_directory:
            return FolderNode(name=entry.name, path=rel, children=self._build_level(base, rel))

        try:
            raw = self.store.read_text(_join(base, rel))
        except (StorageIOError, AccessDenied) as exc:
            return SkippedEntry(rel, str(exc))
        if raw is None:
            return SkippedEntry(rel, "file disappeared while building")

        if entry.name.lower().endswith(".txt"):
            try:
                record = parse_snippet_text(raw)
            except SnippetParseError as exc:
                return SkippedEntry(rel, str(exc))
            return SnippetNode(name=entry.name, path=rel, content=record)

        return self.classifier.decode(entry.name, rel, raw)

    def list_boards(self) -> List[BoardNode]:
        return [n for n in self.build(BOARD_ROOT) if isinstance(n, BoardNode)]


def _is_tree_entry(entry: DirEntry) -> bool:
    if entry.is_directory:
        # symlinked folders could loop back into their own parents
        return entry.name not in HIDDEN_FOLDERS and not entry.is_symlink
    if not entry.is_file:
        return False
    name = entry.name.lower()
    return name.endswith(".txt") or name.endswith(".json")


def _join(base: str, rel: str) -> str:
    if not base:
        return rel
    if not rel:
        return base
    return posixpath.join(base, rel)
