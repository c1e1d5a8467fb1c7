import io

import pytest
import semver

from wasmpkg.backend import PackageBackend
from wasmpkg.digest import ContentDigest
from wasmpkg.errors import InvalidContent, VersionNotFound
from wasmpkg.package import PackageRef
from wasmpkg.release import Release, VersionInfo


class MemoryBackend(PackageBackend):
    def __init__(self):
        self.store = {}

    def list_all_versions(self, package):
        return [VersionInfo(ver) for (pkg, ver) in self.store if pkg == package]

    def get_release(self, package, version):
        try:
            data = self.store[(package, version)]
        except KeyError:
            raise VersionNotFound(version) from None
        return Release(version, ContentDigest.sha256_of(data))

    def stream_content_unvalidated(self, package, release):
        data = self.store[(package, release.version)]
        for start in range(0, len(data), 3):
            yield data[start:start + 3]

    def publish(self, package, version, data):
        self.store[(package, version)] = data.read()


PKG = PackageRef.parse("example:pkg")
VER = semver.Version.parse("1.0.0")


@pytest.fixture
def backend():
    b = MemoryBackend()
    b.publish(PKG, VER, io.BytesIO(b"component bytes"))
    return b


def test_stream_content_validates(backend):
    release = backend.get_release(PKG, VER)
    assert b"".join(backend.stream_content(PKG, release)) == b"component bytes"


def test_stream_content_rejects_bad_digest(backend):
    release = Release(VER, ContentDigest.sha256_of(b"something else"))
    with pytest.raises(InvalidContent):
        b"".join(backend.stream_content(PKG, release))


def test_list_versions_after_publish(backend):
    assert backend.list_all_versions(PKG) == [VersionInfo(VER)]


def test_missing_version(backend):
    with pytest.raises(VersionNotFound):
        backend.get_release(PKG, semver.Version.parse("9.9.9"))


def test_abstract_backend_cannot_be_instantiated():
    with pytest.raises(TypeError):
        PackageBackend()