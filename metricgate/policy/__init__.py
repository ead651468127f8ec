"""Policy reading, compilation, and the immutable role ACL store."""

from metricgate.policy.acl import ACL, ExactEntry, PatternEntry
from metricgate.policy.compiler import EntryKind, classify, compile_entry, compile_policy
from metricgate.policy.source import RawPolicy, parse_policy, read_policy
from metricgate.policy.store import RoleACLStore, load_store, load_store_from_text

__all__ = [
    "ACL",
    "EntryKind",
    "ExactEntry",
    "PatternEntry",
    "RawPolicy",
    "RoleACLStore",
    "classify",
    "compile_entry",
    "compile_policy",
    "load_store",
    "load_store_from_text",
    "parse_policy",
    "read_policy",
]
