"""Registry metadata, as served from a registry's well-known URI."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .errors import InvalidRegistryMetadata, RegistryMetadataError, WasmPkgError
from .registry import Registry

log = logging.getLogger(__name__)

REGISTRY_METADATA_PATH = "/.well-known/wasm-pkg/registry.json"

OCI_PROTOCOL = "oci"
WARG_PROTOCOL = "warg"

_PREFERRED_KEY = "preferredProtocol"
_OCI_REGISTRY_KEY = "ociRegistry"
_OCI_PREFIX_KEY = "ociNamespacePrefix"
_WARG_URL_KEY = "wargUrl"
_FETCH_TIMEOUT = 30.0

T = TypeVar("T")


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidRegistryMetadata(f"{key!r} must be a string, got {value!r}")
    return value


@dataclass
class RegistryMetadata:
    """Registry metadata: a preferred protocol and per-protocol configuration."""

    explicit_protocol: str | None = None
    protocol_configs: dict[str, dict[str, Any]] = field(default_factory=dict)
    oci_registry: str | None = None
    oci_namespace_prefix: str | None = None
    warg_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RegistryMetadata:
        """Build metadata from its JSON object form."""
        if not isinstance(data, Mapping):
            raise InvalidRegistryMetadata("registry metadata must be a JSON object")
        configs: dict[str, dict[str, Any]] = {}
        reserved = {_PREFERRED_KEY, _OCI_REGISTRY_KEY, _OCI_PREFIX_KEY, _WARG_URL_KEY}
        for key, value in data.items():
            if key in reserved:
                continue
            if not isinstance(value, Mapping):
                raise InvalidRegistryMetadata(
                    f"protocol config {key!r} must be a JSON object, got {value!r}"
                )
            configs[key] = dict(value)
        return cls(
            explicit_protocol=_optional_str(data, _PREFERRED_KEY),
            protocol_configs=configs,
            oci_registry=_optional_str(data, _OCI_REGISTRY_KEY),
            oci_namespace_prefix=_optional_str(data, _OCI_PREFIX_KEY),
            warg_url=_optional_str(data, _WARG_URL_KEY),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form; backward-compatible aliases are not written."""
        out: dict[str, Any] = {_PREFERRED_KEY: self.explicit_protocol}
        out.update({name: dict(cfg) for name, cfg in self.protocol_configs.items()})
        return out

    def preferred_protocol(self) -> str | None:
        """Return the explicit protocol, else the only configured one, else None."""
        if self.explicit_protocol is not None:
            return self.explicit_protocol
        if len(self.protocol_configs) == 1:
            return next(iter(self.protocol_configs))
        if not self.protocol_configs:
            has_oci = self.oci_registry is not None
            has_warg = self.warg_url is not None
            if has_oci and not has_warg:
                return OCI_PROTOCOL
            if has_warg and not has_oci:
                return WARG_PROTOCOL
        return None

    def configured_protocols(self) -> list[str]:
        """Return the configured protocols in sorted order."""
        protocols = set(self.protocol_configs)
        if self.oci_registry is not None or self.oci_namespace_prefix is not None:
            protocols.add(OCI_PROTOCOL)
        if self.warg_url is not None:
            protocols.add(WARG_PROTOCOL)
        return sorted(protocols)

    def protocol_config(
        self,
        protocol: str,
        into: Callable[[dict[str, Any]], T] = dict,  # type: ignore[assignment]
    ) -> T | None:
        """Convert the config for ``protocol`` with ``into``; None if there is none."""
        base = self.protocol_configs.get(protocol)
        config = dict(base) if base is not None else None

        def maybe_set(key: str, value: str | None) -> None:
            nonlocal config
            if value is not None:
                if config is None:
                    config = {}
                config[key] = value

        if protocol == OCI_PROTOCOL:
            maybe_set("registry", self.oci_registry)
            maybe_set("namespacePrefix", self.oci_namespace_prefix)
        elif protocol == WARG_PROTOCOL:
            maybe_set("url", self.warg_url)

        if config is None:
            return None
        try:
            return into(config)
        except (TypeError, ValueError, KeyError) as exc:
            raise InvalidRegistryMetadata(str(exc)) from exc

    @classmethod
    def fetch(cls, registry: Registry) -> RegistryMetadata | None:
        """Fetch metadata from the registry; None if the registry serves none."""
        scheme = "http" if registry.host() == "localhost" else "https"
        url = f"{scheme}://{registry}{REGISTRY_METADATA_PATH}"
        log.debug("Fetching registry metadata from %r", url)
        try:
            with urllib.request.urlopen(url, timeout=_FETCH_TIMEOUT) as response:
                body = response.read()
            return cls.from_dict(json.loads(body))
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                return None
            raise RegistryMetadataError(
                f"error fetching registry metadata from {url!r}: {exc}"
            ) from exc
        except (OSError, ValueError, WasmPkgError) as exc:
            raise RegistryMetadataError(
                f"error fetching registry metadata from {url!r}: {exc}"
            ) from exc

    @classmethod
    def fetch_or_default(cls, registry: Registry) -> RegistryMetadata:
        """Fetch metadata, falling back to empty metadata when absent or on error."""
        try:
            meta = cls.fetch(registry)
        except WasmPkgError as exc:
            log.warning("Error fetching registry metadata: %s", exc)
            return cls()
        if meta is None:
            log.debug("Metadata not found")
            return cls()
        log.debug("Got registry metadata: %r", meta)
        return meta