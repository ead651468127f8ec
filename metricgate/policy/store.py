"""Immutable role -> ACL snapshot and the all-or-nothing loaders that build it."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from metricgate.policy.acl import ACL
from metricgate.policy.compiler import compile_policy
from metricgate.policy.source import parse_policy, read_policy

logger = logging.getLogger("metricgate.policy.store")


@dataclass(frozen=True)
class RoleACLStore:
    """Compiled policy for every role, safe for unsynchronized concurrent reads.

    Never mutated after construction.  A reload builds a new store and the
    authorizer swaps its reference to it.
    """

    acls: Mapping[str, ACL]
    source: str = "<memory>"
    loaded_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not isinstance(self.acls, MappingProxyType):
            object.__setattr__(self, "acls", MappingProxyType(dict(self.acls)))

    def acl_for(self, role: str) -> tuple[ACL | None, bool]:
        acl = self.acls.get(role)
        return acl, acl is not None

    @property
    def roles(self) -> frozenset[str]:
        return frozenset(self.acls)

    def __contains__(self, role: object) -> bool:
        return role in self.acls

    def __len__(self) -> int:
        return len(self.acls)


def load_store(path: str | Path) -> RoleACLStore:
    """Read and compile the policy file at *path* into a new store.

    Any :class:`~metricgate.exceptions.PolicyLoadError` propagates and no
    store is produced.
    """
    source = str(path)
    raw = read_policy(path)
    store = RoleACLStore(compile_policy(raw, source=source), source=source)
    logger.info("Loaded policy %s", source, extra={"role_count": len(store), "source": source})
    return store


def load_store_from_text(text: str, source: str = "<string>") -> RoleACLStore:
    """Compile in-memory policy *text* into a new store."""
    raw = parse_policy(text, source=source)
    store = RoleACLStore(compile_policy(raw, source=source), source=source)
    logger.info("Loaded policy %s", source, extra={"role_count": len(store), "source": source})
    return store
