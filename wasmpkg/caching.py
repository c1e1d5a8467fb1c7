"""Caching of release details and package content."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

import platformdirs
import semver

from .client import Client
from .digest import ContentDigest
from .errors import CacheError, PkgIoError, WasmPkgError
from .package import PackageRef, parse_version
from .release import Release, VersionInfo

log = logging.getLogger(__name__)

_CACHE_DIR_NAME = "wasm-pkg"
_CHUNK_SIZE = 4096
_READONLY_MESSAGE = "Client is in read only mode"


class Cache(ABC):
    """A store for release details and content, keyed by digest."""

    @abstractmethod
    def put_data(self, digest: ContentDigest, data: Iterable[bytes]) -> None:
        """Store the content with the given digest."""

    @abstractmethod
    def get_data(self, digest: ContentDigest) -> Iterator[bytes] | None:
        """Return the content with the given digest, or None if it is not cached."""

    @abstractmethod
    def put_release(self, package: PackageRef, release: Release) -> None:
        """Store the details of a release."""

    @abstractmethod
    def get_release(self, package: PackageRef, version: semver.Version) -> Release | None:
        """Return the cached release details, or None if they are not cached."""


def _read_chunks(fh: BinaryIO) -> Iterator[bytes]:
    with fh:
        try:
            yield from iter(lambda: fh.read(_CHUNK_SIZE), b"")
        except OSError as exc:
            raise PkgIoError(exc) from exc


class FileCache(Cache):
    """A cache that keeps its entries as files in one directory."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        root = Path(root)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheError(f"Unable to create cache directory: {exc}") from exc
        self.root = root

    @classmethod
    def global_cache(cls) -> FileCache:
        """Return a cache at the global default cache path."""
        path = cls.global_cache_path()
        if path is None:
            raise CacheError("couldn't find global cache path")
        return cls(path)

    @staticmethod
    def global_cache_path() -> Path | None:
        """Return the global default cache path, or None if it cannot be determined."""
        try:
            base = platformdirs.user_cache_dir()
        except Exception:  # platform lookup failures leave no usable path
            return None
        if not base:
            return None
        return Path(base) / _CACHE_DIR_NAME

    def _data_path(self, digest: ContentDigest) -> Path:
        return self.root / str(digest)

    def _release_path(self, package: PackageRef, version: semver.Version) -> Path:
        return self.root / f"{package}-{version}.json"

    def put_data(self, digest: ContentDigest, data: Iterable[bytes]) -> None:
        path = self._data_path(digest)
        try:
            out = open(path, "wb")
        except OSError as exc:
            raise CacheError(f"Unable to create file for cache {exc}") from exc
        try:
            with out:
                for chunk in data:
                    out.write(chunk)
        except (OSError, WasmPkgError) as exc:
            path.unlink(missing_ok=True)
            raise CacheError(exc) from exc

    def get_data(self, digest: ContentDigest) -> Iterator[bytes] | None:
        path = self._data_path(digest)
        if not path.exists():
            return None
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise CacheError(exc) from exc
        return _read_chunks(fh)

    def put_release(self, package: PackageRef, release: Release) -> None:
        payload = json.dumps(
            {"version": str(release.version), "content_digest": str(release.content_digest)}
        )
        try:
            self._release_path(package, release.version).write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise CacheError(f"Error writing to disk: {exc}") from exc

    def get_release(self, package: PackageRef, version: semver.Version) -> Release | None:
        path = self._release_path(package, version)
        if not path.exists():
            return None
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise CacheError(f"Error reading from disk: {exc}") from exc
        try:
            info = json.loads(raw)
            return Release(
                version=parse_version(info["version"]),
                content_digest=ContentDigest.parse(info["content_digest"]),
            )
        except (ValueError, KeyError, TypeError, WasmPkgError) as exc:
            raise CacheError(f"Error deserializing data from disk: {exc}") from exc


class CachingClient:
    """A client that caches what it fetches.

    Without an underlying client it works offline, serving only what is
    already in the cache.
    """

    def __init__(self, client: Client | None, cache: Cache) -> None:
        self._client = client
        self.cache = cache

    def is_readonly(self) -> bool:
        """Return whether there is no underlying client."""
        return self._client is None

    def client(self) -> Client:
        """Return the underlying client; using it directly bypasses the cache."""
        if self._client is None:
            raise CacheError(_READONLY_MESSAGE)
        return self._client

    def list_all_versions(self, package: PackageRef) -> list[VersionInfo]:
        """List versions from the underlying client; fails when read-only."""
        return self.client().list_all_versions(package)

    def get_release(self, package: PackageRef, version: semver.Version) -> Release:
        cached = self.cache.get_release(package, version)
        if cached is not None:
            return cached
        release = self.client().get_release(package, version)
        self.cache.put_release(package, release)
        return release

    def get_content(self, package: PackageRef, release: Release) -> Iterator[bytes]:
        """Return content from the cache, fetching and caching it first if needed."""
        cached = self.cache.get_data(release.content_digest)
        if cached is not None:
            return cached
        stream = self.client().stream_content(package, release)
        self.cache.put_data(release.content_digest, stream)
        stored = self.cache.get_data(release.content_digest)
        if stored is None:
            raise CacheError("Cached data was deleted after putting the data in cache")
        return stored