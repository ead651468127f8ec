"""ACL entry compiler.

Turns a :data:`~metricgate.policy.source.RawPolicy` into one :class:`ACL`
per role.

Classification rule: an identifier of at least two characters that starts
and ends with ``/`` is a pattern and the text between the slashes is a
Python regular expression (``/node_.*/``).  Everything else is an exact
metric name.

Compilation is all-or-nothing.  The first invalid pattern or repeated
identifier aborts it with an exception; no partial result is returned.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum

from metricgate.exceptions import DuplicateEntryError, InvalidPatternError
from metricgate.policy.acl import ACL, ExactEntry, PatternEntry
from metricgate.policy.source import RawPolicy

logger = logging.getLogger("metricgate.policy.compiler")

PATTERN_DELIMITER = "/"


class EntryKind(StrEnum):
    EXACT = "exact"
    PATTERN = "pattern"


def classify(identifier: str) -> tuple[EntryKind, str]:
    """Return the kind of *identifier* and the text to match with."""
    if (
        len(identifier) >= 2
        and identifier.startswith(PATTERN_DELIMITER)
        and identifier.endswith(PATTERN_DELIMITER)
    ):
        return EntryKind.PATTERN, identifier[1:-1]
    return EntryKind.EXACT, identifier


def compile_entry(
    role: str, identifier: str, constraint: str, *, source: str | None = None
) -> ExactEntry | PatternEntry:
    """Compile a single ``identifier: constraint`` pair declared under *role*.

    Raises:
        InvalidPatternError: the pattern body is empty or not a valid regex.
    """
    kind, body = classify(identifier)
    if kind is EntryKind.EXACT:
        return ExactEntry(name=body, constraint=constraint)

    if not body:
        raise InvalidPatternError(role, identifier, "empty pattern", source=source)
    # Huge repeat counts overflow and deep nesting exhausts the recursion limit.
    try:
        regex = re.compile(body)
    except (re.error, OverflowError, RecursionError) as exc:
        raise InvalidPatternError(role, identifier, exc, source=source) from exc
    return PatternEntry(identifier=identifier, regex=regex, constraint=constraint)


def compile_policy(raw: RawPolicy, *, source: str | None = None) -> dict[str, ACL]:
    """Compile every role of *raw* into an :class:`ACL`.

    Roles without entries get no ACL, which leaves them default-deny.

    Raises:
        InvalidPatternError: a pattern failed to compile.
        DuplicateEntryError: an identifier was declared twice for one role.
    """
    acls: dict[str, ACL] = {}
    for role, pairs in raw.items():
        exact: dict[str, str] = {}
        patterns: list[PatternEntry] = []
        seen: set[str] = set()
        for identifier, constraint in pairs:
            if identifier in seen:
                raise DuplicateEntryError(role, identifier, source=source)
            seen.add(identifier)

            entry = compile_entry(role, identifier, constraint, source=source)
            if isinstance(entry, ExactEntry):
                exact[entry.name] = entry.constraint
            else:
                patterns.append(entry)

        if not seen:
            logger.debug("Role %r declares no entries, leaving it default-deny", role)
            continue
        acls[role] = ACL.build(exact, patterns)
        logger.debug(
            "Compiled role %r: %d exact, %d pattern entries", role, len(exact), len(patterns)
        )
    return acls
