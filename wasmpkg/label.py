"""Component Model kebab-case labels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidLabelError


class LabelProblem(str, Enum):
    """Why a string is not a valid label."""

    EMPTY = "labels may not be empty"
    EMPTY_WORD = "dash-separated words may not be empty"
    INVALID_CHAR = "dash-separated words may contain only lowercase alphanumeric ASCII characters"
    INVALID_WORD_FIRST_CHAR = "dash-separated words must begin with an ASCII lowercase letter"

    def __str__(self) -> str:
        return self.value


def _is_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _check(text: str) -> None:
    if not text:
        raise InvalidLabelError(LabelProblem.EMPTY)
    for word in text.split("-"):
        if not word:
            raise InvalidLabelError(LabelProblem.EMPTY_WORD)
        if not _is_lower(word[0]):
            raise InvalidLabelError(LabelProblem.INVALID_WORD_FIRST_CHAR)
        if not all(_is_lower(ch) or _is_digit(ch) for ch in word[1:]):
            raise InvalidLabelError(LabelProblem.INVALID_CHAR)


@dataclass(frozen=True, order=True)
class Label:
    """A validated kebab-case label."""

    value: str

    def __post_init__(self) -> None:
        _check(self.value)

    @classmethod
    def parse(cls, text: str) -> Label:
        return cls(text)

    def __str__(self) -> str:
        return self.value