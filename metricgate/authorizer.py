"""Query authorization against the compiled role ACL store.

:class:`QueryAuthorizer` owns the single reference to the current
:class:`~metricgate.policy.store.RoleACLStore`.  Request handlers call
:meth:`QueryAuthorizer.authorize` concurrently without locks; reloads build
a complete new store first and only then replace the reference, so every
call evaluates exactly one snapshot (old or new, never a mixture).

Decision rules:
    * A role with no ACL contributes nothing (default-deny).
    * Within a role, exact names are checked before patterns, and patterns
      are tried in declaration order (first match wins).
    * Across roles, permissions are a union.  When several roles grant, the
      first granting role in iteration order wins: the caller's order for
      lists and tuples (duplicates dropped), sorted order for sets.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from metricgate.policy.store import RoleACLStore, load_store, load_store_from_text

logger = logging.getLogger("metricgate.authorizer")
_audit_logger = logging.getLogger("metricgate.audit")


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    """Outcome of an authorization check.  A deny is a normal value."""

    allowed: bool
    constraint: str | None = None
    role: str | None = None


#: Shared deny decision; carries no constraint and no role.
DENY = AuthorizationDecision(allowed=False)


def role_order(roles: Iterable[str] | str) -> tuple[str, ...]:
    """Return *roles* in the deterministic order used for evaluation."""
    if isinstance(roles, str):
        return (roles,)
    if isinstance(roles, Sequence):
        return tuple(dict.fromkeys(roles))
    return tuple(sorted(set(roles)))


def decide_for_role(store: RoleACLStore, role: str, metric: str) -> AuthorizationDecision:
    """Evaluate *metric* against the ACL of a single *role*."""
    acl, found = store.acl_for(role)
    if not found:
        return DENY
    constraint = acl.match(metric)
    if constraint is None:
        return DENY
    return AuthorizationDecision(allowed=True, constraint=constraint, role=role)


def aggregate_decisions(decisions: Iterable[AuthorizationDecision]) -> AuthorizationDecision:
    """Merge per-role decisions with union-of-permissions semantics.

    Returns the first allowing decision in *decisions*, or :data:`DENY` when
    none allows (including when *decisions* is empty).
    """
    for decision in decisions:
        if decision.allowed:
            return decision
    return DENY


class QueryAuthorizer:
    """Answers "may these roles query this metric, and with which constraint?"."""

    def __init__(self, store: RoleACLStore) -> None:
        self._store = store
        self._reload_lock = threading.Lock()

    @property
    def store(self) -> RoleACLStore:
        """The store snapshot currently in effect."""
        return self._store

    def authorize(self, roles: Iterable[str] | str, metric: str) -> AuthorizationDecision:
        """Decide whether any of *roles* may query *metric*."""
        store = self._store
        # Generator keeps evaluation lazy: roles after the first grant are skipped.
        decision = aggregate_decisions(
            decide_for_role(store, role, metric) for role in role_order(roles)
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "authorize metric=%s allowed=%s role=%s", metric, decision.allowed, decision.role
            )
        return decision

    def replace_store(self, store: RoleACLStore) -> RoleACLStore:
        """Install an already-built *store* and return the one it replaced."""
        with self._reload_lock:
            previous, self._store = self._store, store
        return previous

    def reload(self, path: str | Path) -> RoleACLStore:
        """Load the policy file at *path* and swap it in.

        On any :class:`~metricgate.exceptions.PolicyLoadError` the current
        store stays in effect and the error propagates to the caller.
        """
        with self._reload_lock:
            try:
                store = load_store(path)
            except Exception as exc:
                self._log_reload_failure(str(path), exc)
                raise
            self._store = store
        self._log_reload_success(store)
        return store

    def reload_from_text(self, text: str, source: str = "<string>") -> RoleACLStore:
        """Like :meth:`reload`, with the policy supplied as a YAML string."""
        with self._reload_lock:
            try:
                store = load_store_from_text(text, source=source)
            except Exception as exc:
                self._log_reload_failure(source, exc)
                raise
            self._store = store
        self._log_reload_success(store)
        return store

    @staticmethod
    def _log_reload_success(store: RoleACLStore) -> None:
        _audit_logger.info(
            "Policy reloaded from %s (%d roles)",
            store.source,
            len(store),
            extra={
                "event_category": "audit",
                "action": "policy_reload",
                "source": store.source,
                "role_count": len(store),
            },
        )

    @staticmethod
    def _log_reload_failure(source: str, exc: Exception) -> None:
        _audit_logger.warning(
            "Policy reload from %s rejected, keeping current policy: %s",
            source,
            exc,
            extra={
                "event_category": "audit",
                "action": "policy_reload_failed",
                "source": source,
                "error_type": getattr(exc, "error_type", type(exc).__name__),
            },
        )
