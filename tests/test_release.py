import semver

from wasmpkg.digest import ContentDigest
from wasmpkg.release import Release, VersionInfo


def v(text):
    return semver.Version.parse(text)


def test_str_is_version():
    assert str(VersionInfo(v("1.2.3"))) == "1.2.3"


def test_equality_ignores_yanked():
    assert VersionInfo(v("1.0.0"), yanked=True) == VersionInfo(v("1.0.0"), yanked=False)
    assert len({VersionInfo(v("1.0.0"), True), VersionInfo(v("1.0.0"), False)}) == 1


def test_ordering_by_version():
    infos = [VersionInfo(v("2.0.0")), VersionInfo(v("0.1.0"), True), VersionInfo(v("1.0.0"))]
    ordered = sorted(infos)
    assert [str(i) for i in ordered] == ["0.1.0", "1.0.0", "2.0.0"]
    assert VersionInfo(v("1.0.0-alpha")) < VersionInfo(v("1.0.0"))


def test_release_holds_values():
    digest = ContentDigest.sha256_of(b"content")
    release = Release(v("0.2.0"), digest)
    assert release.version == v("0.2.0")
    assert release.content_digest == digest
    assert release == Release(v("0.2.0"), ContentDigest.sha256_of(b"content"))