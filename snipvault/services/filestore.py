# snipvault/services/filestore.py
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from snipvault.errors import AccessDenied, ContentTooLarge, StorageIOError
from snipvault.models import DirEntry, FileStat
from snipvault.services.guard import (
    ALL_EXTENSIONS,
    PathGuard,
    Rejection,
    SafePath,
    sanitize,
    write_extensions_for,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

# Top-level buckets that must exist before anything is written into them,
# so a fresh data root heals itself on first use.
BUCKETS = ("snippets", "snippets/characters", "boards", "exports")


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


class FileStore:
    """
    Sandbox all file operations inside the data root.
    Every public method validates its path(s) with the guard before any I/O.
    """

    def __init__(self, guard: PathGuard, max_file_size: int = MAX_FILE_SIZE, audit=None):
        self.guard = guard
        self.max_file_size = max_file_size
        self.audit = audit

    @property
    def root(self) -> Path:
        return self.guard.root

    # ---------- Guard ----------

    def _check(self, raw_path, operation: str, extensions=None) -> SafePath:
        result = self.guard.validate(raw_path, extensions)
        if isinstance(result, Rejection):
            logger.warning("access denied op=%s reason=%s", operation, result.reason.value)
            self._security_event(
                "invalid_file_path",
                {"operation": operation, "reason": result.reason.value, "path": result.raw_path},
            )
            raise AccessDenied(operation)
        return result

    def _check_entry(self, raw_path, operation: str) -> SafePath:
        """Directories pass without an extension check; files keep the allow-list."""
        safe = self._check(raw_path, operation)
        if safe.absolute.is_dir():
            return safe
        return self._check(raw_path, operation, ALL_EXTENSIONS)

    def _security_event(self, event: str, details: dict) -> None:
        if self.audit is not None:
            self.audit.record(event, details)

    # ---------- Read ----------

    def read_text(self, rel_path: str) -> Optional[str]:
        data = self.read_bytes(rel_path)
        if data is None:
            return None
        return data.decode("utf-8", errors="replace")

    def read_bytes(self, rel_path: str) -> Optional[bytes]:
        p = self._check(rel_path, "read", ALL_EXTENSIONS)
        try:
            return p.absolute.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError("read", p.relative, exc) from exc

    def exists(self, rel_path: str) -> bool:
        result = self.guard.validate(rel_path)
        if isinstance(result, Rejection):
            return False
        return result.absolute.exists()

    def stat(self, rel_path: str) -> Optional[FileStat]:
        p = self._check(rel_path, "stat")
        try:
            st = p.absolute.stat()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError("stat", p.relative, exc) from exc
        return FileStat(
            is_file=p.absolute.is_file(),
            is_directory=p.absolute.is_dir(),
            size=st.st_size,
            mtime=_ms(st.st_mtime),
            ctime=_ms(st.st_ctime),
        )

    def list_dir(self, rel_dir: str = "") -> List[DirEntry]:
        p = self._check(rel_dir, "list")
        try:
            with os.scandir(p.absolute) as it:
                raw = list(it)
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as exc:
            raise StorageIOError("list", p.relative, exc) from exc

        entries: List[DirEntry] = []
        for child in sorted(raw, key=lambda e: e.name):
            try:
                st = child.stat()
                size, mtime, ctime = st.st_size, _ms(st.st_mtime), _ms(st.st_ctime)
            except OSError:
                # dangling symlink, or removed between scandir and stat
                size = mtime = ctime = None
            entries.append(
                DirEntry(
                    name=child.name,
                    is_directory=child.is_dir(),
                    is_file=child.is_file(),
                    is_symlink=child.is_symlink(),
                    size=size,
                    mtime=mtime,
                    ctime=ctime,
                )
            )
        return entries

    # ---------- Write ----------

    def write(self, rel_path: str, content: Union[str, bytes]) -> str:
        p = self._check(rel_path, "write", write_extensions_for(rel_path))
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        if len(data) > self.max_file_size:
            logger.warning("write rejected: %s is %d bytes", p.relative, len(data))
            self._security_event("file_too_large", {"path": p.relative, "size": len(data)})
            raise ContentTooLarge(len(data), self.max_file_size)

        self._ensure_bucket(p)
        target = p.absolute
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_write(target, data)
        except OSError as exc:
            raise StorageIOError("write", p.relative, exc) from exc
        return "OK"

    def _atomic_write(self, target: Path, data: bytes) -> None:
        # Temp file in the same directory so os.replace stays on one filesystem
        fd, tmp = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, target)
        finally:
            if os.path.exists(tmp):
                os.unlink(tmp)

    def _ensure_bucket(self, p: SafePath) -> None:
        for bucket in BUCKETS:
            if p.relative == bucket or p.relative.startswith(bucket + "/"):
                (self.root / bucket).mkdir(parents=True, exist_ok=True)

    def mkdir(self, rel_dir: str) -> str:
        p = self._check(rel_dir, "mkdir")
        try:
            p.absolute.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError("mkdir", p.relative, exc) from exc
        return "OK"

    ensure_dir = mkdir

    def _entry_path(self, raw_path: str, p: SafePath) -> Path:
        """
        The entry the caller named. When its final component is a symlink
        this is the link itself, not the resolved target the guard returns.
        """
        head, _, name = sanitize(raw_path).replace("\\", "/").rstrip("/").rpartition("/")
        if name in ("", ".", ".."):
            return p.absolute
        parent = self.guard.validate(head)
        if isinstance(parent, Rejection):
            return p.absolute
        link = parent.absolute / name
        return link if link.is_symlink() else p.absolute

    def delete(self, rel_path: str, recursive: bool = False) -> str:
        p = self._check(rel_path, "delete")
        if not p.relative:
            logger.warning("refusing to delete the data root")
            self._security_event("delete_root_attempt", {"path": rel_path})
            raise AccessDenied("delete")

        target = self._entry_path(rel_path, p)
        if not target.is_symlink() and not target.exists():
            return "OK"
        if not target.is_dir():
            self._check(rel_path, "delete", ALL_EXTENSIONS)

        try:
            if target.is_symlink():
                target.unlink()
            elif target.is_dir():
                if recursive:
                    shutil.rmtree(target)
                else:
                    target.rmdir()
            else:
                target.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageIOError("delete", p.relative, exc) from exc
        return "OK"

    def rename(self, old_path: str, new_path: str) -> str:
        old = self._check_entry(old_path, "rename")
        if old.absolute.is_dir():
            new = self._check(new_path, "rename")
        else:
            new = self._check(new_path, "rename", ALL_EXTENSIONS)
        if not old.relative or not new.relative:
            raise AccessDenied("rename")

        source = self._entry_path(old_path, old)
        dest = self._entry_path(new_path, new)
        self._ensure_bucket(new)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, dest)
        except OSError as exc:
            raise StorageIOError("rename", old.relative, exc) from exc
        return "OK"
