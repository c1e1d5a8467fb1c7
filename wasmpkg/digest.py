"""Content digests and validation of streamed content."""

from __future__ import annotations

import hashlib
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .errors import InvalidContent, InvalidContentDigest

_PREFIX = "sha256:"
_HEX_DIGITS = frozenset("0123456789abcdef")
_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class ContentDigest:
    """A SHA-256 digest of some content, written as ``sha256:<hex>``."""

    hex: str

    @classmethod
    def parse(cls, text: str) -> ContentDigest:
        if not text.startswith(_PREFIX):
            raise InvalidContentDigest("must start with 'sha256:'")
        hex_part = text[len(_PREFIX):].lower()
        length = len(hex_part.encode("utf-8"))
        if length != 64:
            raise InvalidContentDigest(f"must be 64 hex digits; got {length} chars")
        invalid = next((ch for ch in hex_part if ch not in _HEX_DIGITS), None)
        if invalid is not None:
            raise InvalidContentDigest(f"must be hex; got {invalid!r}")
        return cls(hex_part)

    @classmethod
    def sha256_of(cls, data: bytes) -> ContentDigest:
        return cls(hashlib.sha256(data).hexdigest())

    @classmethod
    def sha256_from_file(cls, path: str | os.PathLike[str]) -> ContentDigest:
        """Hash a file's contents; OSError propagates if it cannot be read."""
        hasher = hashlib.sha256()
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
        return cls(hasher.hexdigest())

    def validating_stream(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """Yield chunks unchanged, raising InvalidContent at the end if the digest differs."""
        hasher = hashlib.sha256()
        for chunk in chunks:
            hasher.update(chunk)
            yield chunk
        got = ContentDigest(hasher.hexdigest())
        if got != self:
            raise InvalidContent(f"expected digest {self}, got {got}")

    def __str__(self) -> str:
        return f"{_PREFIX}{self.hex}"