# snipvault/errors.py
from __future__ import annotations


class SnipVaultError(Exception):
    """Base class for every error raised by the storage layer."""


class AccessDenied(SnipVaultError, PermissionError):
    """
    A path was rejected by the guard.
    The message is deliberately generic: it never names the resolved path.
    """

    def __init__(self, operation: str = ""):
        super().__init__("Access denied")
        self.operation = operation


class ContentTooLarge(SnipVaultError, ValueError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"File content too large ({size} bytes, limit {limit})")
        self.size = size
        self.limit = limit


class StorageIOError(SnipVaultError, OSError):
    """
    Filesystem failure other than "does not exist".
    Carries the relative path only; the data root never appears in the message.
    """

    def __init__(self, operation: str, path: str, cause: OSError):
        reason = cause.strerror or cause.__class__.__name__
        super().__init__(f"{operation} failed for '{path}': {reason}")
        self.operation = operation
        self.path = path
        self.cause_errno = cause.errno


class SnippetParseError(SnipVaultError, ValueError):
    pass


class RateLimited(SnipVaultError, RuntimeError):
    def __init__(self, identity: str):
        super().__init__("Too many requests")
        self.identity = identity
