"""The interface every package backend provides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import BinaryIO

import semver

from .package import PackageRef
from .release import Release, VersionInfo


class PackageBackend(ABC):
    """Loads package releases from, and publishes them to, one kind of registry."""

    @abstractmethod
    def list_all_versions(self, package: PackageRef) -> list[VersionInfo]:
        """Return every version available for ``package``."""

    @abstractmethod
    def get_release(self, package: PackageRef, version: semver.Version) -> Release:
        """Return the release of ``package`` at ``version``."""

    @abstractmethod
    def stream_content_unvalidated(
        self, package: PackageRef, release: Release
    ) -> Iterator[bytes]:
        """Yield the release's content without checking its digest."""

    def stream_content(self, package: PackageRef, release: Release) -> Iterator[bytes]:
        """Yield the release's content, checked against its content digest."""
        chunks = self.stream_content_unvalidated(package, release)
        return release.content_digest.validating_stream(chunks)

    @abstractmethod
    def publish(self, package: PackageRef, version: semver.Version, data: BinaryIO) -> None:
        """Publish the readable, seekable ``data`` as a release of ``package``."""