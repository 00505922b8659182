# snipvault/services/seed.py
"""Default content for a fresh data root."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from snipvault.errors import SnipVaultError
from snipvault.models import SnippetRecord, now_ms
from snipvault.services.filestore import FileStore
from snipvault.services.snippets import format_snippet_json

logger = logging.getLogger(__name__)

START_HERE = "snippets/Start Here"
DEFAULT_BOARD_PATH = "boards/Default Board.json"

DEFAULT_SNIPPETS: List[Dict[str, Any]] = [
    {
        "id": "default_photorealistic",
        "text": "(photorealistic:1.2), highly detailed, studio lighting, cinematic composition",
        "tags": ["photo", "lighting"],
        "title": "(photorealistic:1.2), highly detailed, studio lighting",
        "description": "High-quality photorealistic rendering with professional lighting",
    },
    {
        "id": "default_cyberpunk",
        "text": "(cyberpunk engineer), glowing tattoos, neon visor, dark synthetic jacket",
        "tags": ["cyberpunk"],
        "title": "(cyberpunk engineer), glowing tattoos, neon visor",
        "description": "Cyberpunk character with futuristic elements and glowing features",
    },
    {
        "id": "default_space",
        "text": "abandoned space station, flickering lights, zero gravity, floating debris, eerie silence",
        "tags": ["space"],
        "title": "abandoned space station, flickering lights, zero gravity",
        "description": "Atmospheric space environment with abandoned technology",
    },
]

# (x, y, width, height, color) of each default card, in DEFAULT_SNIPPETS order
_CARD_LAYOUT = [
    (100, 100, 457, 152, "#E74C3C"),
    (572, 101, 352, 129, "#3498DB"),
    (936, 96, 372, 79, "#2ECC71"),
]


def default_board() -> Dict[str, Any]:
    cards = []
    for snippet, (x, y, w, h, color) in zip(DEFAULT_SNIPPETS, _CARD_LAYOUT):
        short = snippet["id"].replace("default_", "")
        cards.append({
            "id": f"card-default-{short}",
            "snippetPath": f"{START_HERE}/{snippet['id']}.json",
            "x": x, "y": y, "width": w, "height": h,
            "locked": False,
            "color": color,
        })
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "id": "board-default",
        "name": "Default Board",
        "tags": [],
        "cards": cards,
        "groups": [],
        "images": [],
        "createdAt": stamp,
        "modifiedAt": stamp,
    }


class SeedService:
    """
    Create the starter folder, snippets and board when they are missing.
    Nothing that already exists is overwritten. Each step fails on its own.
    """

    def __init__(self, store: FileStore):
        self.store = store

    def seed(self) -> Dict[str, int]:
        created = {"snippets": 0, "boards": 0}
        try:
            self.store.ensure_dir(START_HERE)
        except SnipVaultError as exc:
            logger.error("could not create %r: %s", START_HERE, exc)

        try:
            if not self.store.exists(DEFAULT_BOARD_PATH):
                self.store.write(DEFAULT_BOARD_PATH, json.dumps(default_board(), indent=2))
                created["boards"] += 1
        except SnipVaultError as exc:
            logger.error("could not create the default board: %s", exc)

        stamp = now_ms()
        for i, data in enumerate(DEFAULT_SNIPPETS):
            path = f"{START_HERE}/{data['id']}.json"
            try:
                if self.store.exists(path):
                    continue
                record = SnippetRecord(
                    created=stamp + i,
                    modified=stamp + i,
                    category="Start Here",
                    **data,
                )
                self.store.write(path, format_snippet_json(record))
                created["snippets"] += 1
            except SnipVaultError as exc:
                logger.error("could not create default snippet %s: %s", data["id"], exc)

        if any(created.values()):
            logger.info("seeded defaults: %s", created)
        return created
