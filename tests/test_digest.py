import pytest

from wasmpkg.digest import ContentDigest
from wasmpkg.errors import InvalidContent, InvalidContentDigest

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _chunks(data, size):
    return [data[start:start + size] for start in range(0, len(data), size)]


def _failing_source():
    yield b"in"
    raise OSError("broken")


def test_validating_stream():
    data = b"input"
    digest = ContentDigest.sha256_of(data)
    collected = b"".join(digest.validating_stream(_chunks(data, 2)))
    assert collected == data


def test_invalidating_stream():
    data = b"input"
    digest = ContentDigest(hex="doesn't match anything!")
    with pytest.raises(InvalidContent):
        b"".join(digest.validating_stream(_chunks(data, 2)))


def test_validating_stream_propagates_source_error():
    stream = iter(ContentDigest.sha256_of(b"input").validating_stream(_failing_source()))
    assert next(stream) == b"in"
    with pytest.raises(OSError):
        next(stream)


def test_empty_digest_value():
    assert str(ContentDigest.sha256_of(b"")) == "sha256:" + EMPTY_SHA256


def test_parse_round_trip_and_lowercase():
    digest = ContentDigest.parse("sha256:" + EMPTY_SHA256.upper())
    assert digest.hex == EMPTY_SHA256
    assert ContentDigest.parse(str(digest)) == digest


def test_parse_missing_prefix():
    with pytest.raises(InvalidContentDigest) as info:
        ContentDigest.parse(EMPTY_SHA256)
    assert info.value.detail == "must start with 'sha256:'"


def test_parse_wrong_length():
    with pytest.raises(InvalidContentDigest) as info:
        ContentDigest.parse("sha256:abc")
    assert info.value.detail == "must be 64 hex digits; got 3 chars"


def test_parse_non_hex():
    with pytest.raises(InvalidContentDigest) as info:
        ContentDigest.parse("sha256:" + "g" * 64)
    assert info.value.detail == "must be hex; got 'g'"


def test_sha256_from_file_matches(tmp_path):
    data = bytes(range(256)) * 40
    path = tmp_path / "content.wasm"
    path.write_bytes(data)
    assert ContentDigest.sha256_from_file(path) == ContentDigest.sha256_of(data)


def test_sha256_from_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ContentDigest.sha256_from_file(tmp_path / "missing.wasm")