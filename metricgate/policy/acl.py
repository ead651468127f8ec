"""Compiled per-role access control lists.

An :class:`ACL` is built once by the compiler and never changes afterwards;
it is shared without locking between every request evaluating it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True, slots=True)
class ExactEntry:
    """Literal metric name, matched by equality."""

    name: str
    constraint: str


@dataclass(frozen=True, slots=True)
class PatternEntry:
    """Regular expression over metric names, matched with a full-match test."""

    identifier: str
    regex: re.Pattern[str]
    constraint: str

    def matches(self, metric: str) -> bool:
        return self.regex.fullmatch(metric) is not None


@dataclass(frozen=True, slots=True)
class ACL:
    """Exact-name table plus ordered pattern list for a single role."""

    exact: Mapping[str, str]
    patterns: tuple[PatternEntry, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.exact, MappingProxyType):
            object.__setattr__(self, "exact", MappingProxyType(dict(self.exact)))
        if not isinstance(self.patterns, tuple):
            object.__setattr__(self, "patterns", tuple(self.patterns))

    @classmethod
    def build(cls, exact: dict[str, str], patterns: list[PatternEntry]) -> ACL:
        """Freeze freshly compiled tables.  *exact* is copied."""
        return cls(exact=exact, patterns=tuple(patterns))

    def match(self, metric: str) -> str | None:
        """Return the constraint granting *metric*, or ``None`` when denied.

        Exact names are checked first; patterns are then tried in declaration
        order and the first full match wins.
        """
        constraint = self.exact.get(metric)
        if constraint is not None:
            return constraint
        for entry in self.patterns:
            if entry.matches(metric):
                return entry.constraint
        return None

    def __len__(self) -> int:
        return len(self.exact) + len(self.patterns)
