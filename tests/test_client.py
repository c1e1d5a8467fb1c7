import io

import pytest
import semver

from wasmpkg.backend import PackageBackend
from wasmpkg.client import Client, PublishOpts
from wasmpkg.config import Config, CustomConfig
from wasmpkg.digest import ContentDigest
from wasmpkg.errors import (
    InvalidComponent,
    InvalidConfig,
    InvalidRegistryMetadata,
    NoRegistryForNamespace,
)
from wasmpkg.metadata import RegistryMetadata
from wasmpkg.package import PackageRef
from wasmpkg.registry import Registry
from wasmpkg.release import Release, VersionInfo

REGISTRY = Registry.parse("localhost:1234")
PACKAGE = PackageRef.parse("example:pkg")
VERSION = semver.Version.parse("1.0.0")


def _leb(n):
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _component(export_name, layer=b"\x01\x00"):
    name = export_name.encode()
    payload = _leb(1) + b"\x00" + _leb(len(name)) + name + b"\x04\x00"
    return b"\0asm" + b"\x0d\x00" + layer + bytes([11]) + _leb(len(payload)) + payload


def _local_config(root, registry=REGISTRY):
    config = Config.empty()
    config.default_registry = registry
    config.get_or_insert_registry_config(registry).set_backend_config(
        "local", {"root": str(root)}
    )
    return config


def test_publish_and_fetch_round_trip(tmp_path):
    client = Client(_local_config(tmp_path))
    published = client.publish_release_data(
        io.BytesIO(b"wasm bytes"), PublishOpts(package=(PACKAGE, VERSION))
    )
    assert published == (PACKAGE, VERSION)
    versions = client.list_all_versions(PACKAGE)
    assert [str(v) for v in versions] == ["1.0.0"]
    release = client.get_release(PACKAGE, VERSION)
    assert release.content_digest == ContentDigest.sha256_of(b"wasm bytes")
    assert b"".join(client.stream_content(PACKAGE, release)) == b"wasm bytes"


def test_publish_reads_package_from_component(tmp_path):
    client = Client(_local_config(tmp_path))
    data = _component("demo:thing/iface@0.2.0")
    package, version = client.publish_release_data(io.BytesIO(data))
    assert package == PackageRef.parse("demo:thing")
    assert version == semver.Version.parse("0.2.0")
    release = client.get_release(package, version)
    assert b"".join(client.stream_content(package, release)) == data


def test_publish_release_file(tmp_path):
    store = tmp_path / "store"
    path = tmp_path / "input.wasm"
    path.write_bytes(_component("demo:thing/iface@0.2.0"))
    client = Client(_local_config(store))
    package, version = client.publish_release_file(path)
    assert (store / "demo" / "thing" / f"{version}.wasm").read_bytes() == path.read_bytes()
    assert package == PackageRef.parse("demo:thing")


def test_publish_without_version_fails(tmp_path):
    client = Client(_local_config(tmp_path))
    with pytest.raises(InvalidComponent):
        client.publish_release_data(io.BytesIO(_component("demo:thing/iface")))


def test_publish_core_module_fails(tmp_path):
    client = Client(_local_config(tmp_path))
    data = _component("demo:thing/iface@0.2.0", layer=b"\x00\x00")
    with pytest.raises(InvalidComponent):
        client.publish_release_data(io.BytesIO(data))


def test_publish_registry_override(tmp_path):
    other = Registry.parse("localhost:5678")
    config = _local_config(tmp_path / "a")
    config.get_or_insert_registry_config(other).set_backend_config(
        "local", {"root": str(tmp_path / "b")}
    )
    client = Client(config)
    client.publish_release_data(
        io.BytesIO(b"data"), PublishOpts(package=(PACKAGE, VERSION), registry=other)
    )
    assert (tmp_path / "b" / "example" / "pkg" / "1.0.0.wasm").read_bytes() == b"data"
    assert not (tmp_path / "a" / "example").exists()


def test_no_registry_for_namespace():
    client = Client(Config.empty())
    with pytest.raises(NoRegistryForNamespace):
        client.list_all_versions(PACKAGE)


def test_unknown_backend_type():
    config = Config.empty()
    config.set_namespace_registry("example", CustomConfig(REGISTRY, RegistryMetadata()))
    config.get_or_insert_registry_config(REGISTRY).set_default_backend("bogus")
    with pytest.raises(InvalidConfig):
        Client(config).list_all_versions(PACKAGE)


def test_metadata_cannot_force_local_backend():
    config = Config.empty()
    meta = RegistryMetadata(explicit_protocol="local")
    config.set_namespace_registry("example", CustomConfig(REGISTRY, meta))
    with pytest.raises(InvalidRegistryMetadata):
        Client(config).list_all_versions(PACKAGE)


class _MemoryBackend(PackageBackend):
    def __init__(self, meta):
        self.meta = meta
        self.store = {}

    def list_all_versions(self, package):
        return [VersionInfo(v) for (p, v) in self.store if p == package]

    def get_release(self, package, version):
        return Release(version, ContentDigest.sha256_of(self.store[(package, version)]))

    def stream_content_unvalidated(self, package, release):
        return iter([self.store[(package, release.version)]])

    def publish(self, package, version, data):
        self.store[(package, version)] = data.read()


def test_custom_backend_chosen_from_metadata_and_cached():
    created = []

    def factory(registry, registry_config, meta):
        backend = _MemoryBackend(meta)
        created.append(backend)
        return backend

    config = Config.empty()
    meta = RegistryMetadata(explicit_protocol="memory")
    config.set_package_registry_override(PACKAGE, CustomConfig(REGISTRY, meta))
    client = Client(config, backends={"memory": factory})
    client.publish_release_data(io.BytesIO(b"abc"), PublishOpts(package=(PACKAGE, VERSION)))
    assert client.list_all_versions(PACKAGE) == [VersionInfo(VERSION)]
    assert len(created) == 1
    assert created[0].meta is meta
    release = client.get_release(PACKAGE, VERSION)
    assert b"".join(client.stream_content(PACKAGE, release)) == b"abc"