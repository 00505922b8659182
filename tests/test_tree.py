# tests/test_tree.py
import json
from pathlib import Path

from snipvault.errors import StorageIOError
from snipvault.models import BoardNode, FolderNode, SnippetNode, dump
from snipvault.services.filestore import FileStore
from snipvault.services.tree import TreeBuilder


def _put(root: Path, rel: str, content: str = "") -> None:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")


def test_cut_snippets_is_pinned_first(store: FileStore, data_root: Path):
    _put(data_root, "snippets/Start Here/A note.txt", "plain text, no header")
    (data_root / "snippets" / "Start Here" / "Cut Snippets").mkdir()

    tree = TreeBuilder(store).build()
    assert [n.name for n in tree] == ["Start Here"]
    start = tree[0]
    assert isinstance(start, FolderNode)
    assert [n.name for n in start.children] == ["Cut Snippets", "A note.txt"]
    assert start.children[0].children == []
    note = start.children[1]
    assert isinstance(note, SnippetNode)
    assert note.content.text == "plain text, no header"
    assert note.content.tags == []
    assert note.path == "Start Here/A note.txt"


def test_pinning_keeps_the_rest_in_order(store: FileStore, data_root: Path):
    for name in ("Alpha", "Beta", "Cut Snippets"):
        (data_root / "snippets" / name).mkdir(parents=True)
    _put(data_root, "snippets/a.txt", "a")
    _put(data_root, "snippets/b.txt", "b")

    names = [n.name for n in TreeBuilder(store).build()]
    assert names == ["Cut Snippets", "Alpha", "Beta", "a.txt", "b.txt"]


def test_order_is_listing_order_without_cut_snippets(store: FileStore, data_root: Path):
    for name in ("b.txt", "a.txt", "C.txt"):
        _put(data_root, f"snippets/{name}", name)
    assert [n.name for n in TreeBuilder(store).build()] == ["C.txt", "a.txt", "b.txt"]


def test_one_malformed_file_does_not_cost_the_tree(store: FileStore, data_root: Path):
    for i in range(9):
        _put(data_root, f"snippets/s{i}.txt", f"tags: t{i}\n---\nbody {i}")
    _put(data_root, "snippets/broken.json", "{ this is not json")

    tree = TreeBuilder(store).build()
    assert len(tree) == 9
    assert all(isinstance(n, SnippetNode) for n in tree)


def test_json_files_are_classified(store: FileStore, data_root: Path):
    _put(data_root, "snippets/board.json",
         json.dumps({"id": "b1", "name": "Moodboard", "cards": [], "tags": ["x"]}))
    _put(data_root, "snippets/neon.json", json.dumps({"text": "neon", "tags": ["a"]}))
    _put(data_root, "snippets/old.json", json.dumps({"title": "old"}))

    by_path = {n.path: n for n in TreeBuilder(store).build()}
    assert isinstance(by_path["board.json"], BoardNode)
    assert by_path["board.json"].name == "Moodboard"
    assert by_path["neon.json"].name == "neon"
    assert not by_path["neon.json"].legacy
    assert by_path["old.json"].name == "old.json"
    assert by_path["old.json"].legacy


def test_assets_and_other_files_are_hidden(store: FileStore, data_root: Path):
    _put(data_root, "snippets/images/cat.json", json.dumps({"text": "x"}))
    _put(data_root, "snippets/readme.md", "# hi")
    (data_root / "snippets" / "pic.png").write_bytes(b"\x89PNG")
    _put(data_root, "snippets/keep.txt", "keep")

    assert [n.name for n in TreeBuilder(store).build()] == ["keep.txt"]


def test_unlistable_folder_becomes_empty(store: FileStore, data_root: Path, monkeypatch):
    _put(data_root, "snippets/ok/a.txt", "a")
    _put(data_root, "snippets/locked/b.txt", "b")
    original = store.list_dir

    def list_dir(rel_dir=""):
        if rel_dir == "snippets/locked":
            raise StorageIOError("list", rel_dir, PermissionError(13, "Permission denied"))
        return original(rel_dir)

    monkeypatch.setattr(store, "list_dir", list_dir)
    tree = TreeBuilder(store).build()
    by_name = {n.name: n for n in tree}
    assert by_name["locked"].children == []
    assert [c.name for c in by_name["ok"].children] == ["a.txt"]


def test_missing_root_builds_empty(store: FileStore):
    assert TreeBuilder(store).build() == []


def test_list_boards(store: FileStore, data_root: Path):
    _put(data_root, "boards/Default Board.json",
         json.dumps({"id": "board-default", "name": "Default Board", "cards": [], "tags": []}))
    _put(data_root, "boards/stray.json", json.dumps({"text": "not a board"}))

    boards = TreeBuilder(store).list_boards()
    assert [b.name for b in boards] == ["Default Board"]


def test_dump_shape(store: FileStore, data_root: Path):
    _put(data_root, "snippets/F/n.json", json.dumps({"text": "t", "negativeText": "blur"}))
    out = dump(TreeBuilder(store).build())
    assert out[0]["type"] == "folder"
    child = out[0]["children"][0]
    assert child["type"] == "snippet"
    assert child["path"] == "F/n.json"
    assert child["content"]["text"] == "t"
    assert child["content"]["negativeText"] == "blur"
    json.dumps(out)
