# snipvault/di.py
from dataclasses import dataclass
from typing import Optional

from snipvault.config import Settings
from snipvault.services.audit import SecurityAuditService
from snipvault.services.classifier import DocumentClassifier
from snipvault.services.filestore import FileStore
from snipvault.services.guard import PathGuard
from snipvault.services.migration import MigrationService
from snipvault.services.ratelimit import RedisSlidingWindowLimiter, SlidingWindowLimiter
from snipvault.services.seed import SeedService
from snipvault.services.tree import TreeBuilder

@dataclass
class Container:
    settings: Settings
    guard: PathGuard
    store: FileStore
    tree_builder: TreeBuilder
    seeder: SeedService
    migrator: MigrationService
    audit: SecurityAuditService
    limiter: SlidingWindowLimiter | RedisSlidingWindowLimiter | None

def build_container(settings: Optional[Settings] = None) -> Container:
    s = settings or Settings()
    s.DATA_ROOT.mkdir(parents=True, exist_ok=True)

    guard = PathGuard(s.DATA_ROOT, max_path_length=s.MAX_PATH_LENGTH)
    audit = SecurityAuditService(audit_root=s.AUDIT_DIR, data_root=guard.root,
                                 max_bytes=s.AUDIT_MAX_BYTES)
    store = FileStore(guard, max_file_size=s.MAX_FILE_SIZE, audit=audit)

    tree = TreeBuilder(store, DocumentClassifier())

    limiter = None
    if s.RATE_LIMIT_ENABLED:
        if s.REDIS_URL:
            limiter = RedisSlidingWindowLimiter(s.REDIS_URL, max_requests=s.RATE_LIMIT_MAX_REQUESTS,
                                                window_sec=s.RATE_LIMIT_WINDOW_SEC)
        else:
            limiter = SlidingWindowLimiter(max_requests=s.RATE_LIMIT_MAX_REQUESTS,
                                           window_sec=s.RATE_LIMIT_WINDOW_SEC,
                                           max_keys=s.RATE_LIMIT_MAX_KEYS,
                                           sweep_every=s.RATE_LIMIT_SWEEP_EVERY)

    return Container(s, guard, store, tree, SeedService(store), MigrationService(store),
                     audit, limiter)
