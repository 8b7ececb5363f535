"""Exception types raised by the sync toolkit."""

from __future__ import annotations

import pathlib


class AssetSyncError(Exception):
    """Base class for toolkit errors."""


class StoreCorruptError(AssetSyncError):
    def __init__(self, path: pathlib.Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class PersistError(AssetSyncError):
    def __init__(self, path: pathlib.Path, cause: OSError) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause


class UpstreamTransientError(AssetSyncError):
    """A single upstream request failed; the caller treats it as unresolved."""


class UpstreamRateLimited(AssetSyncError):
    """The upstream answered with HTTP 429."""


class CatalogLookupMiss(AssetSyncError):
    def __init__(self, token: str) -> None:
        super().__init__(f"No catalog entry for {token!r}")
        self.token = token


class CatalogUnavailableError(AssetSyncError):
    """The item catalog could not be fetched or decoded at startup."""
