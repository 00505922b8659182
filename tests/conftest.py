# tests/conftest.py
from pathlib import Path

import pytest

from snipvault.config import Settings
from snipvault.di import build_container
from snipvault.services.filestore import FileStore
from snipvault.services.guard import PathGuard


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def store(data_root: Path) -> FileStore:
    return FileStore(PathGuard(data_root))


@pytest.fixture
def settings(tmp_path: Path, data_root: Path) -> Settings:
    return Settings(DATA_ROOT=data_root, AUDIT_DIR=tmp_path / "audit", SEED_DEFAULTS=False,
                    REDIS_URL=None)


@pytest.fixture
def container(settings: Settings):
    return build_container(settings)
