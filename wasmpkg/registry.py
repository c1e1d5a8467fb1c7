"""Registry identifiers: HTTP authorities."""

from __future__ import annotations

import re
import string
from dataclasses import dataclass

from .errors import InvalidRegistry

_ALLOWED = frozenset(string.ascii_letters + string.digits + "-._~!$&'()*+,;=:@[]%")
_PORT = re.compile(r"[0-9]+")


def _validate(text: str) -> None:
    if not text:
        raise InvalidRegistry("empty string")
    colon_count = 0
    start_bracket = end_bracket = False
    has_percent = False
    at_sign_pos: int | None = None
    for pos, ch in enumerate(text):
        if ch not in _ALLOWED:
            raise InvalidRegistry("invalid uri character")
        if ch == ":":
            colon_count += 1
        elif ch == "[":
            if start_bracket:
                raise InvalidRegistry("invalid authority")
            start_bracket = True
        elif ch == "]":
            if end_bracket:
                raise InvalidRegistry("invalid authority")
            end_bracket = True
            colon_count = 0
        elif ch == "@":
            at_sign_pos = pos
            colon_count = 0
            has_percent = False
        elif ch == "%":
            has_percent = True
    if start_bracket != end_bracket or colon_count > 1:
        raise InvalidRegistry("invalid authority")
    if at_sign_pos == len(text) - 1:
        raise InvalidRegistry("invalid authority")
    if has_percent:
        raise InvalidRegistry("invalid authority")


@dataclass(frozen=True, eq=False)
class Registry:
    """A registry identifier; must be a valid HTTP host. Compared case-insensitively."""

    authority: str

    def __post_init__(self) -> None:
        _validate(self.authority)

    @classmethod
    def parse(cls, text: str) -> Registry:
        return cls(text)

    def host(self) -> str:
        """Return the host without the port number."""
        host_port = self.authority.rsplit("@", 1)[-1]
        if host_port.startswith("["):
            end = host_port.find("]")
            return host_port[: end + 1] if end >= 0 else host_port
        return host_port.split(":", 1)[0]

    def port(self) -> int | None:
        """Return the port number, if one is given."""
        _, colon, tail = self.authority.rpartition(":")
        if not colon or not _PORT.fullmatch(tail):
            return None
        value = int(tail)
        return value if value <= 0xFFFF else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Registry):
            return NotImplemented
        return self.authority.lower() == other.authority.lower()

    def __hash__(self) -> int:
        return hash(self.authority.lower())

    def __str__(self) -> str:
        return self.authority