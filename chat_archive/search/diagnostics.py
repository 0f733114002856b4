"""Structured record of input the search pipeline skipped or adjusted."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """One skipped or adjusted piece of input.

    Attributes:
        stage: Pipeline stage that produced it (``extract``, ``normalize``,
            ``compose``, ``map``).
        code: Stable machine-readable identifier, e.g. ``invalid-date``.
        message: Human readable explanation.
        value: The offending raw value, if any.
    """

    stage: str
    code: str
    message: str
    value: str | None = None

    def __str__(self) -> str:
        if self.value is None:
            return self.message
        return f"{self.message}: {self.value!r}"


@dataclass
class Diagnostics:
    """Ordered list of diagnostics collected during one search."""

    items: list[Diagnostic] = field(default_factory=list)

    def add(self, stage: str, code: str, message: str, value: str | None = None) -> Diagnostic:
        diagnostic = Diagnostic(stage=stage, code=code, message=message, value=value)
        self.items.append(diagnostic)
        log.debug("search %s: %s", stage, diagnostic)
        return diagnostic

    def extend(self, other: Diagnostics) -> None:
        self.items.extend(other.items)

    def codes(self) -> list[str]:
        return [d.code for d in self.items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
