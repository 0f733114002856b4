"""Token data classes produced while reading a search query."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FreeText:
    """A whitespace-delimited segment of the query.

    ``grouped`` is set when the segment was read inside parentheses.
    Quotes and escapes have already been resolved, but quote characters
    are kept in ``value`` so ``FROM:"John Doe"`` stays recognizable.
    """

    value: str
    grouped: bool = False


@dataclass(frozen=True)
class Directive:
    """A keyed segment like ``FROM:alice`` with its quotes stripped."""

    key: str
    value: str
    grouped: bool = False


@dataclass(frozen=True)
class GroupStart:
    """An opening parenthesis; ``depth`` is the nesting level it opens."""

    depth: int


@dataclass(frozen=True)
class GroupEnd:
    """A closing parenthesis; ``depth`` is the nesting level after it."""

    depth: int


Token = Union[FreeText, Directive, GroupStart, GroupEnd]
