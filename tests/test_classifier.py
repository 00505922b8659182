# tests/test_classifier.py
import json

import pytest

from snipvault.models import BoardNode, SkippedEntry, SnippetNode
from snipvault.services.classifier import DocumentClassifier, DocumentKind

BOARD = {"id": "b1", "name": "Board", "cards": [], "tags": []}


def test_board_shape_is_a_board():
    assert DocumentClassifier().classify(BOARD) is DocumentKind.BOARD


@pytest.mark.parametrize("missing", ["id", "name", "cards", "tags"])
def test_board_needs_all_four_fields(missing):
    doc = {k: v for k, v in BOARD.items() if k != missing}
    assert DocumentClassifier().classify(doc) is not DocumentKind.BOARD


def test_tags_array_alone_is_not_a_board():
    doc = {"text": "prompt", "tags": ["a"]}
    assert DocumentClassifier().classify(doc) is DocumentKind.SNIPPET


def test_board_wins_over_snippet():
    assert DocumentClassifier().classify({**BOARD, "text": "also text"}) is DocumentKind.BOARD


@pytest.mark.parametrize("doc", [{"text": ""}, {"cards": {}}, [1, 2], "str", None, 3])
def test_everything_else_is_legacy(doc):
    assert DocumentClassifier().classify(doc) is DocumentKind.LEGACY


def test_exactly_one_kind_per_document():
    clf = DocumentClassifier()
    for doc in (BOARD, {"text": "x"}, {"title": "old"}):
        kinds = [k for k in DocumentKind if clf.classify(doc) is k]
        assert len(kinds) == 1


def test_decode_invalid_json_is_skipped():
    out = DocumentClassifier().decode("bad.json", "bad.json", "{not json")
    assert isinstance(out, SkippedEntry)
    assert out.path == "bad.json"


def test_decode_board_keeps_unknown_fields():
    doc = {**BOARD, "name": "Moodboard", "tags": ["x", "x", 5, "y"], "groups": []}
    out = DocumentClassifier().decode("m.json", "m.json", json.dumps(doc))
    assert isinstance(out, BoardNode)
    assert out.name == "Moodboard"
    assert out.tags == ["x", "y"]
    assert out.content.model_dump(by_alias=True)["groups"] == []


def test_decode_snippet_uses_stem():
    out = DocumentClassifier().decode("neon.json", "f/neon.json", '{"text": "neon", "tags": ["a"]}')
    assert isinstance(out, SnippetNode)
    assert out.name == "neon"
    assert out.path == "f/neon.json"
    assert not out.legacy
    assert out.content.tags == ["a"]


def test_decode_legacy_keeps_raw_document():
    out = DocumentClassifier().decode("old.json", "old.json", '{"title": "old", "tags": ["t"]}')
    assert isinstance(out, SnippetNode)
    assert out.legacy
    assert out.name == "old.json"
    assert out.content.title == "old.json"
    assert out.content.tags == ["t"]
    assert out.raw == {"title": "old", "tags": ["t"]}
