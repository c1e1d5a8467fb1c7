"""Registry configuration: which registry serves which package, and how to reach it."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

from .errors import InvalidConfig
from .label import Label
from .metadata import RegistryMetadata
from .package import PackageRef
from .registry import Registry

T = TypeVar("T")

DEFAULT_FALLBACK_NAMESPACE_REGISTRIES: tuple[tuple[str, str], ...] = (
    ("wasi", "wasi.dev"),
    ("ba", "bytecodealliance.org"),
)


@dataclass
class CustomConfig:
    """Custom settings for reaching a registry.

    ``registry`` must look like a valid host; here it serves as the key that
    identifies this configuration. ``metadata`` decides the protocol to use
    and carries its mapping information.
    """

    registry: Registry
    metadata: RegistryMetadata = field(default_factory=RegistryMetadata)


RegistryMapping = Union[Registry, CustomConfig]


def _as_label(namespace: Label | str) -> Label:
    return namespace if isinstance(namespace, Label) else Label.parse(namespace)


def _as_package(package: PackageRef | str) -> PackageRef:
    return package if isinstance(package, PackageRef) else PackageRef.parse(package)


def _as_registry(registry: Registry | str) -> Registry:
    return registry if isinstance(registry, Registry) else Registry.parse(registry)


def _mapping_registry(mapping: RegistryMapping) -> Registry:
    return mapping.registry if isinstance(mapping, CustomConfig) else mapping


class RegistryConfig:
    """Per-registry configuration: a default backend and per-backend tables."""

    def __init__(
        self,
        default_backend: str | None = None,
        backend_configs: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._default_backend = default_backend
        self._backend_configs: dict[str, dict[str, Any]] = {
            name: dict(table) for name, table in (backend_configs or {}).items()
        }

    def merge(self, other: RegistryConfig) -> None:
        """Merge ``other`` into this config; its values take precedence."""
        if other._default_backend is not None:
            self._default_backend = other._default_backend
        for backend_type, table in other._backend_configs.items():
            self._backend_configs.setdefault(backend_type, {}).update(copy.deepcopy(table))

    def default_backend(self) -> str | None:
        """Return the configured backend type, or the only configured one if unambiguous."""
        if self._default_backend is not None:
            return self._default_backend
        if len(self._backend_configs) == 1:
            return next(iter(self._backend_configs))
        return None

    def set_default_backend(self, backend: str | None) -> None:
        """Set the default backend type; ``None`` unsets it."""
        self._default_backend = backend

    def configured_backend_types(self) -> Iterator[str]:
        """Iterate over the configured backend types."""
        return iter(list(self._backend_configs))

    def backend_config(
        self,
        backend_type: str,
        into: Callable[[dict[str, Any]], T] = dict,  # type: ignore[assignment]
    ) -> T | None:
        """Convert the table for ``backend_type`` with ``into``; None if not configured."""
        table = self._backend_configs.get(backend_type)
        if table is None:
            return None
        try:
            return into(copy.deepcopy(table))
        except (TypeError, ValueError, KeyError) as exc:
            raise InvalidConfig(str(exc)) from exc

    def set_backend_config(self, backend_type: str, config: Any) -> None:
        """Store ``config`` (a mapping, or an object with ``to_dict``) for ``backend_type``."""
        table = config.to_dict() if hasattr(config, "to_dict") else config
        if not isinstance(table, Mapping):
            raise InvalidConfig(
                f"backend config for {backend_type!r} must be a table, got {type(table).__name__}"
            )
        self._backend_configs[str(backend_type)] = copy.deepcopy(dict(table))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistryConfig):
            return NotImplemented
        return (
            self._default_backend == other._default_backend
            and self._backend_configs == other._backend_configs
        )

    def __repr__(self) -> str:
        # Backend tables may hold credentials, so only their names are shown.
        hidden = ", ".join(f"{name!r}: '<HIDDEN>'" for name in self._backend_configs)
        return (
            f"RegistryConfig(backend_type={self._default_backend!r}, "
            f"backend_configs={{{hidden}}})"
        )


@dataclass
class Config:
    """Registry configuration.

    Constructing ``Config()`` gives an empty config; ``Config.default()``
    adds the hard-coded fallback registries for well-known namespaces.
    """

    default_registry: Registry | None = None
    namespace_registries: dict[Label, RegistryMapping] = field(default_factory=dict)
    package_registry_overrides: dict[PackageRef, RegistryMapping] = field(default_factory=dict)
    fallback_namespace_registries: dict[Label, Registry] = field(default_factory=dict)
    registry_configs: dict[Registry, RegistryConfig] = field(default_factory=dict)

    @classmethod
    def default(cls) -> Config:
        """Return a config holding only the hard-coded fallback registries."""
        return cls(
            fallback_namespace_registries={
                Label.parse(ns): Registry.parse(reg)
                for ns, reg in DEFAULT_FALLBACK_NAMESPACE_REGISTRIES
            }
        )

    @classmethod
    def empty(cls) -> Config:
        """Return a config with nothing set, not even fallbacks."""
        return cls()

    def merge(self, other: Config) -> None:
        """Merge ``other`` into this config; its values take precedence."""
        if other.default_registry is not None:
            self.default_registry = other.default_registry
        self.namespace_registries.update(other.namespace_registries)
        self.package_registry_overrides.update(other.package_registry_overrides)
        self.fallback_namespace_registries.update(other.fallback_namespace_registries)
        for registry, config in other.registry_configs.items():
            existing = self.registry_configs.get(registry)
            if existing is None:
                self.registry_configs[registry] = copy.deepcopy(config)
            else:
                existing.merge(config)

    def resolve_registry(self, package: PackageRef | str) -> Registry | None:
        """Resolve the registry for ``package``.

        Checked in order: package override, namespace registry, default
        registry, then fallbacks for well-known namespaces.
        """
        package = _as_package(package)
        override = self.package_registry_overrides.get(package)
        if override is not None:
            return _mapping_registry(override)
        namespace_mapping = self.namespace_registries.get(package.namespace)
        if namespace_mapping is not None:
            return _mapping_registry(namespace_mapping)
        if self.default_registry is not None:
            return self.default_registry
        return self.fallback_namespace_registries.get(package.namespace)

    def namespace_registry(self, namespace: Label | str) -> RegistryMapping | None:
        """Return the mapping set for ``namespace``, without any fallback."""
        return self.namespace_registries.get(_as_label(namespace))

    def set_namespace_registry(self, namespace: Label | str, mapping: RegistryMapping) -> None:
        self.namespace_registries[_as_label(namespace)] = mapping

    def package_registry_override(self, package: PackageRef | str) -> RegistryMapping | None:
        """Return the override for ``package``, without any fallback."""
        return self.package_registry_overrides.get(_as_package(package))

    def set_package_registry_override(
        self, package: PackageRef | str, mapping: RegistryMapping
    ) -> None:
        self.package_registry_overrides[_as_package(package)] = mapping

    def registry_config(self, registry: Registry | str) -> RegistryConfig | None:
        return self.registry_configs.get(_as_registry(registry))

    def get_or_insert_registry_config(self, registry: Registry | str) -> RegistryConfig:
        """Return the registry's config, inserting an empty one if needed."""
        return self.registry_configs.setdefault(_as_registry(registry), RegistryConfig())