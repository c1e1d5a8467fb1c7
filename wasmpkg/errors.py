"""Exceptions raised throughout the package."""

from __future__ import annotations


class WasmPkgError(Exception):
    """Base class for every error this package raises."""

    template = "{}"

    def __init__(self, detail: object = "") -> None:
        self.detail = detail
        super().__init__(self.template.format(detail))


class CacheError(WasmPkgError):
    template = "error interacting with cache: {}"


class ConfigFileIoError(WasmPkgError):
    template = "error reading config file: {}"


class CredentialError(WasmPkgError):
    template = "failed to get registry credentials: {}"


class InvalidComponent(WasmPkgError):
    template = "malformed component: {}"


class InvalidConfig(WasmPkgError):
    template = "invalid config: {}"


class InvalidContent(WasmPkgError):
    template = "invalid content: {}"


class InvalidContentDigest(WasmPkgError):
    template = "invalid content digest: {}"


class InvalidPackageManifest(WasmPkgError):
    template = "invalid package manifest: {}"


class InvalidPackagePattern(WasmPkgError):
    template = "invalid package pattern: {}"


class InvalidLabelError(WasmPkgError):
    template = "invalid label: {}"


class InvalidPackageRef(WasmPkgError):
    template = "invalid package ref: {}"


class InvalidRegistry(WasmPkgError):
    template = "invalid registry: {}"


class InvalidRegistryMetadata(WasmPkgError):
    template = "invalid registry metadata: {}"


class InvalidVersion(WasmPkgError):
    template = "invalid version: {}"


class PkgIoError(WasmPkgError):
    template = "IO error: {}"


class NoRegistryForNamespace(WasmPkgError):
    template = 'no registry configured for namespace "{}"'


class PackageNotFound(WasmPkgError):
    template = "Package not found"


class RegistryError(WasmPkgError):
    template = "registry error: {}"


class RegistryMetadataError(WasmPkgError):
    template = "registry metadata error: {}"


class VersionNotFound(WasmPkgError):
    template = "version not found: {}"