"""A package backend that keeps releases as files on the local filesystem.

Each release is stored at ``<root>/<namespace>/<name>/<version>.wasm``.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import semver

from .backend import PackageBackend
from .config import RegistryConfig
from .digest import ContentDigest
from .errors import InvalidConfig, PkgIoError
from .package import PackageRef
from .release import Release, VersionInfo

log = logging.getLogger(__name__)

BACKEND_TYPE = "local"
_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class LocalConfig:
    """Configuration of the local backend: the root directory of the store."""

    root: Path

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LocalConfig:
        if "root" not in data:
            raise ValueError("missing field `root`")
        root = data["root"]
        if not isinstance(root, (str, os.PathLike)):
            raise TypeError(f"`root` must be a path, got {root!r}")
        return cls(Path(root))


def _read_chunks(fh: BinaryIO) -> Iterator[bytes]:
    with fh:
        try:
            yield from iter(lambda: fh.read(_CHUNK_SIZE), b"")
        except OSError as exc:
            raise PkgIoError(exc) from exc


class LocalBackend(PackageBackend):
    """Loads and publishes packages in a directory tree."""

    def __init__(self, registry_config: RegistryConfig) -> None:
        config = registry_config.backend_config(BACKEND_TYPE, LocalConfig.from_dict)
        if config is None:
            raise InvalidConfig("'local' backend requires configuration")
        self.root = config.root

    def _package_dir(self, package: PackageRef) -> Path:
        return self.root / str(package.namespace) / str(package.name)

    def _version_path(self, package: PackageRef, version: semver.Version) -> Path:
        return self._package_dir(package) / f"{version}.wasm"

    def list_all_versions(self, package: PackageRef) -> list[VersionInfo]:
        package_dir = self._package_dir(package)
        log.debug("Reading versions from path %s", package_dir)
        try:
            entries = list(package_dir.iterdir())
        except OSError as exc:
            raise PkgIoError(exc) from exc
        versions = []
        for path in entries:
            if path.suffix != ".wasm":
                continue
            try:
                version = semver.Version.parse(path.stem)
            except ValueError:
                log.warning("invalid package file name at %s", path)
                continue
            versions.append(VersionInfo(version=version, yanked=False))
        return versions

    def get_release(self, package: PackageRef, version: semver.Version) -> Release:
        path = self._version_path(package, version)
        log.debug("Reading content from path %s", path)
        try:
            digest = ContentDigest.sha256_from_file(path)
        except OSError as exc:
            raise PkgIoError(exc) from exc
        return Release(version=version, content_digest=digest)

    def stream_content_unvalidated(
        self, package: PackageRef, release: Release
    ) -> Iterator[bytes]:
        path = self._version_path(package, release.version)
        log.debug("Streaming content from %s", path)
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise PkgIoError(exc) from exc
        return _read_chunks(fh)

    def publish(self, package: PackageRef, version: semver.Version, data: BinaryIO) -> None:
        try:
            self._package_dir(package).mkdir(parents=True, exist_ok=True)
            with open(self._version_path(package, version), "wb") as out:
                shutil.copyfileobj(data, out)
        except OSError as exc:
            raise PkgIoError(exc) from exc