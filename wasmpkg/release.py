"""Package release details."""

from __future__ import annotations

from dataclasses import dataclass, field

import semver

from .digest import ContentDigest


@dataclass(frozen=True)
class Release:
    """A package release: its version and the digest of its content."""

    version: semver.Version
    content_digest: ContentDigest


@dataclass(frozen=True, order=True)
class VersionInfo:
    """A published version; equality and ordering consider the version only."""

    version: semver.Version
    yanked: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return str(self.version)