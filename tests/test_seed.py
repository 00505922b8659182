# tests/test_seed.py
import json
from pathlib import Path

from snipvault.models import FolderNode
from snipvault.services.filestore import FileStore
from snipvault.services.migration import MigrationService
from snipvault.services.seed import DEFAULT_BOARD_PATH, START_HERE, SeedService
from snipvault.services.tree import TreeBuilder


def test_seed_creates_defaults_once(store: FileStore, data_root: Path):
    assert SeedService(store).seed() == {"snippets": 3, "boards": 1}
    assert SeedService(store).seed() == {"snippets": 0, "boards": 0}

    tree = TreeBuilder(store).build()
    start = next(n for n in tree if n.name == "Start Here")
    assert isinstance(start, FolderNode)
    assert sorted(c.name for c in start.children) == [
        "default_cyberpunk", "default_photorealistic", "default_space",
    ]
    assert all(c.content.category == "Start Here" for c in start.children)

    boards = TreeBuilder(store).list_boards()
    assert [b.name for b in boards] == ["Default Board"]
    card_paths = [c["snippetPath"] for c in boards[0].content.cards]
    assert all(store.exists(p) for p in card_paths)


def test_seed_never_overwrites(store: FileStore):
    store.write(DEFAULT_BOARD_PATH, json.dumps({"id": "mine", "name": "Mine", "cards": [], "tags": []}))
    store.write(f"{START_HERE}/default_space.json", json.dumps({"text": "my edit"}))

    assert SeedService(store).seed() == {"snippets": 2, "boards": 0}
    assert json.loads(store.read_text(DEFAULT_BOARD_PATH))["name"] == "Mine"
    assert json.loads(store.read_text(f"{START_HERE}/default_space.json"))["text"] == "my edit"


def test_migrate_text_snippets(store: FileStore):
    store.write("snippets/a.txt", "title: A\ntags: x, y\ncreated: 1700000000000\n---\nalpha")
    store.write("snippets/F/b.txt", "beta")

    assert MigrationService(store).migrate_text_snippets() == 1
    assert not store.exists("snippets/a.txt")
    doc = json.loads(store.read_text("snippets/a.json"))
    assert doc["text"] == "alpha"
    assert doc["tags"] == ["x", "y"]
    assert doc["created"] == 1700000000000
    assert doc["title"] == "A"
    assert doc["id"].startswith("snippet_")
    assert store.exists("snippets/F/b.txt")

    assert MigrationService(store).migrate_text_snippets(recursive=True) == 1
    assert json.loads(store.read_text("snippets/F/b.json"))["text"] == "beta"


def test_migration_keeps_existing_json(store: FileStore):
    store.write("snippets/a.txt", "new")
    store.write("snippets/a.json", json.dumps({"text": "old"}))

    assert MigrationService(store).migrate_text_snippets() == 0
    assert store.read_text("snippets/a.txt") == "new"
    assert json.loads(store.read_text("snippets/a.json"))["text"] == "old"


def test_migration_of_missing_folder_is_noop(store: FileStore):
    assert MigrationService(store).migrate_text_snippets("snippets/nowhere") == 0
