# snipvault/services/migration.py
import logging
import posixpath

from snipvault.errors import SnipVaultError
from snipvault.services.filestore import FileStore
from snipvault.services.snippets import format_snippet_json, parse_snippet_text, to_structured

logger = logging.getLogger(__name__)


class MigrationService:
    """Rewrite delimited-text snippets (``.txt``) in the structured encoding (``.json``)."""

    def __init__(self, store: FileStore):
        self.store = store

    def migrate_text_snippets(self, folder: str = "snippets", recursive: bool = False) -> int:
        migrated = 0
        for entry in self.store.list_dir(folder):
            path = posixpath.join(folder, entry.name)
            if entry.is_directory:
                if recursive and not entry.is_symlink:
                    migrated += self.migrate_text_snippets(path, recursive=True)
                continue
            if not entry.is_file or not entry.name.lower().endswith(".txt"):
                continue
            try:
                if self._migrate_one(path):
                    migrated += 1
            except SnipVaultError as exc:
                logger.error("error migrating %r: %s", path, exc)
        if migrated:
            logger.info("migrated %d snippet(s) under %r to JSON", migrated, folder)
        return migrated

    def _migrate_one(self, txt_path: str) -> bool:
        json_path = txt_path[: -len(".txt")] + ".json"
        if self.store.exists(json_path):
            logger.warning("not migrating %r: %r already exists", txt_path, json_path)
            return False

        content = self.store.read_text(txt_path)
        if content is None:
            return False
        record = to_structured(parse_snippet_text(content))
        self.store.write(json_path, format_snippet_json(record))
        self.store.delete(txt_path)
        return True
