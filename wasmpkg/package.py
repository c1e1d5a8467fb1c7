"""Package references and package specs."""

from __future__ import annotations

from dataclasses import dataclass

import semver

from .errors import InvalidPackageRef, InvalidVersion
from .label import Label


def parse_version(text: str) -> semver.Version:
    """Parse a strict semantic version."""
    try:
        return semver.Version.parse(text)
    except (ValueError, TypeError) as exc:
        raise InvalidVersion(str(exc)) from exc


@dataclass(frozen=True, order=True)
class PackageRef:
    """A package reference made of a namespace and a name, e.g. ``wasm-pkg:client``."""

    namespace: Label
    name: Label

    @classmethod
    def parse(cls, text: str) -> PackageRef:
        namespace, colon, name = text.partition(":")
        if not colon:
            raise InvalidPackageRef("missing expected ':'")
        return cls(Label.parse(namespace), Label.parse(name))

    def __str__(self) -> str:
        return f"{self.namespace}:{self.name}"


@dataclass(frozen=True)
class PackageSpec:
    """A package reference with an optional version."""

    package: PackageRef
    version: semver.Version | None = None

    @classmethod
    def parse(cls, text: str) -> PackageSpec:
        package, at, version = text.partition("@")
        return cls(
            package=PackageRef.parse(package),
            version=parse_version(version) if at else None,
        )