"""A client that loads package content from several kinds of registries."""

from __future__ import annotations

import copy
import logging
import os
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import BinaryIO

import semver

from .backend import PackageBackend
from .config import Config, CustomConfig, RegistryConfig
from .errors import (
    InvalidComponent,
    InvalidConfig,
    InvalidRegistryMetadata,
    NoRegistryForNamespace,
    PkgIoError,
    WasmPkgError,
)
from .local import LocalBackend
from .metadata import RegistryMetadata
from .package import PackageRef, parse_version
from .registry import Registry
from .release import Release, VersionInfo

log = logging.getLogger(__name__)

BackendFactory = Callable[[Registry, RegistryConfig, RegistryMetadata], PackageBackend]

DEFAULT_BACKEND_TYPE = "oci"

_WASM_MAGIC = b"\0asm"
_COMPONENT_LAYER = b"\x01\x00"
_EXPORT_SECTION = 11


def _local_factory(
    registry: Registry, config: RegistryConfig, meta: RegistryMetadata
) -> PackageBackend:
    return LocalBackend(config)


DEFAULT_BACKENDS: Mapping[str, BackendFactory] = {"local": _local_factory}


@dataclass(frozen=True)
class PublishOpts:
    """Extra options for publishing a package."""

    package: tuple[PackageRef, semver.Version] | None = None
    registry: Registry | None = None


def _read_leb(buf: bytes, pos: int) -> tuple[int, int]:
    result = shift = 0
    while True:
        if pos >= len(buf):
            raise InvalidComponent("unexpected end of component")
        byte = buf[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 35:
            raise InvalidComponent("integer representation too long")


def _first_export_name(buf: bytes) -> str | None:
    if len(buf) < 8 or buf[:4] != _WASM_MAGIC:
        raise InvalidComponent("not a WebAssembly binary")
    if buf[6:8] != _COMPONENT_LAYER:
        raise InvalidComponent("not a WebAssembly component")
    pos = 8
    while pos < len(buf):
        section_id = buf[pos]
        size, pos = _read_leb(buf, pos + 1)
        payload = buf[pos:pos + size]
        if len(payload) != size:
            raise InvalidComponent("section extends past end of component")
        pos += size
        if section_id != _EXPORT_SECTION:
            continue
        count, p = _read_leb(payload, 0)
        if count == 0:
            continue
        if p >= len(payload) or payload[p] not in (0x00, 0x01):
            raise InvalidComponent("malformed export name")
        length, p = _read_leb(payload, p + 1)
        raw = payload[p:p + length]
        if len(raw) != length:
            raise InvalidComponent("export name extends past end of section")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidComponent(f"export name is not UTF-8: {exc}") from exc
    return None


def _resolve_package(buf: bytes) -> tuple[PackageRef, semver.Version]:
    """Read the package name and version from an encoded WIT package."""
    name = _first_export_name(buf)
    if name is None or ":" not in name or "/" not in name:
        raise InvalidComponent("component package not found")
    package_part, _, item = name.partition("/")
    try:
        package = PackageRef.parse(package_part)
    except WasmPkgError as exc:
        raise InvalidComponent(f"component package not found: {exc}") from exc
    _, at, version_text = item.partition("@")
    if not at:
        raise InvalidComponent("component package version not found")
    try:
        version = parse_version(version_text)
    except WasmPkgError as exc:
        raise InvalidComponent(f"component package version not found: {exc}") from exc
    return package, version


class Client:
    """A registry client that picks a backend for each package's registry."""

    def __init__(
        self,
        config: Config,
        backends: Mapping[str, BackendFactory] | None = None,
    ) -> None:
        self._config = config
        self._backends = dict(DEFAULT_BACKENDS if backends is None else backends)
        self._sources: dict[Registry, PackageBackend] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> Config:
        """The configuration this client was created with."""
        return self._config

    def list_all_versions(self, package: PackageRef) -> list[VersionInfo]:
        return self._resolve_source(package).list_all_versions(package)

    def get_release(self, package: PackageRef, version: semver.Version) -> Release:
        return self._resolve_source(package).get_release(package, version)

    def stream_content(self, package: PackageRef, release: Release) -> Iterator[bytes]:
        """Yield content chunks, validated against the release's content digest."""
        return self._resolve_source(package).stream_content(package, release)

    def publish_release_file(
        self, path: str | os.PathLike[str], options: PublishOpts | None = None
    ) -> tuple[PackageRef, semver.Version]:
        """Publish a file; returns the package and version that were published."""
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise PkgIoError(exc) from exc
        with fh:
            return self.publish_release_data(fh, options)

    def publish_release_data(
        self, data: BinaryIO, options: PublishOpts | None = None
    ) -> tuple[PackageRef, semver.Version]:
        """Publish readable, seekable data.

        The package and version are read from the component unless given in
        ``options``.
        """
        options = options or PublishOpts()
        if options.package is not None:
            package, version = options.package
        else:
            try:
                content = data.read()
                package, version = _resolve_package(content)
                data.seek(0)
            except OSError as exc:
                raise PkgIoError(exc) from exc
        source = self._resolve_source(package, options.registry)
        source.publish(package, version, data)
        return package, version

    def _resolve_source(
        self, package: PackageRef, registry_override: Registry | None = None
    ) -> PackageBackend:
        is_override = registry_override is not None
        if registry_override is not None:
            registry = registry_override
        else:
            resolved = self._config.resolve_registry(package)
            if resolved is None:
                raise NoRegistryForNamespace(package.namespace)
            registry = resolved
        with self._lock:
            source = self._sources.get(registry)
        if source is not None:
            return source
        source = self._make_backend(package, registry, is_override)
        with self._lock:
            return self._sources.setdefault(registry, source)

    def _custom_metadata(
        self, package: PackageRef, registry: Registry, is_override: bool
    ) -> RegistryMetadata | None:
        override = self._config.package_registry_override(package)
        if isinstance(override, CustomConfig):
            return override.metadata
        mapping = self._config.namespace_registry(package.namespace)
        if isinstance(mapping, CustomConfig) and (
            not is_override or mapping.registry == registry
        ):
            return mapping.metadata
        return None

    def _make_backend(
        self, package: PackageRef, registry: Registry, is_override: bool
    ) -> PackageBackend:
        existing = self._config.registry_config(registry)
        registry_config = copy.deepcopy(existing) if existing is not None else RegistryConfig()
        configured = registry_config.default_backend()

        meta = self._custom_metadata(package, registry, is_override)
        if meta is None:
            if configured != "local":
                meta = RegistryMetadata.fetch_or_default(registry)
            else:
                meta = RegistryMetadata()

        backend_type = configured
        if backend_type is None:
            preferred = meta.preferred_protocol()
            if preferred == "local":
                raise InvalidRegistryMetadata(
                    "registry metadata with 'local' protocol not allowed"
                )
            backend_type = preferred or DEFAULT_BACKEND_TYPE
        log.debug("Resolved backend type %r", backend_type)

        factory = self._backends.get(backend_type)
        if factory is None:
            raise InvalidConfig(f"unknown backend type {backend_type!r}")
        return factory(registry, registry_config, meta)