"""Policy source reader.

Reads the YAML policy document into a raw, uncompiled structure::

    viewer:
      cpu_usage: 'namespace=~"prod.*"'
    admin:
      /.*/: ""

The document is walked at the node level (``yaml.compose``) instead of being
loaded into dicts, so that repeated keys survive until the compiler can
reject them.  Classification of identifiers and duplicate detection are the
compiler's job; this module only checks the shape.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from metricgate.exceptions import MalformedDocumentError, SourceUnreadableError

logger = logging.getLogger("metricgate.policy.source")

#: Role -> ordered (identifier, constraint) pairs, duplicates preserved.
RawPolicy = dict[str, list[tuple[str, str]]]

_NULL_TAG = "tag:yaml.org,2002:null"


def read_policy(path: str | Path) -> RawPolicy:
    """Read and decode the policy document at *path*.

    Raises:
        SourceUnreadableError: the file cannot be opened or decoded as UTF-8.
        MalformedDocumentError: the content is not a valid policy document.
    """
    source = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnreadableError(source, exc) from exc
    return parse_policy(text, source=source)


def parse_policy(text: str, source: str = "<string>") -> RawPolicy:
    """Decode policy *text* into a :data:`RawPolicy`."""
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except (yaml.YAMLError, RecursionError) as exc:
        raise MalformedDocumentError(
            f"unable to load policy {source}: {exc}", source=source
        ) from exc

    policy: RawPolicy = {}
    if root is None:
        logger.warning("Policy %s is empty, every request will be denied", source)
        return policy
    if not isinstance(root, yaml.MappingNode):
        raise _malformed(source, root, "top level must be a mapping of role names")

    for key_node, value_node in root.value:
        role = _scalar_key(source, key_node, "role name")
        # Repeated role blocks accumulate into one entry list.
        pairs = policy.setdefault(role, [])
        pairs.extend(_role_entries(source, role, value_node))

    logger.debug("Read policy %s with %d role(s)", source, len(policy))
    return policy


def _role_entries(source: str, role: str, node: yaml.Node) -> list[tuple[str, str]]:
    if isinstance(node, yaml.ScalarNode) and node.tag == _NULL_TAG:
        return []
    if isinstance(node, yaml.MappingNode):
        return _mapping_pairs(source, node)
    if isinstance(node, yaml.SequenceNode):
        pairs: list[tuple[str, str]] = []
        for item in node.value:
            if not isinstance(item, yaml.MappingNode):
                raise _malformed(
                    source, item, f"entries of role {role!r} must be identifier: constraint mappings"
                )
            pairs.extend(_mapping_pairs(source, item))
        return pairs
    raise _malformed(source, node, f"role {role!r} must map metric identifiers to constraints")


def _mapping_pairs(source: str, node: yaml.MappingNode) -> list[tuple[str, str]]:
    pairs = []
    for key_node, value_node in node.value:
        identifier = _scalar_key(source, key_node, "metric identifier")
        if not isinstance(value_node, yaml.ScalarNode):
            raise _malformed(source, value_node, f"constraint of {identifier!r} must be a string")
        constraint = "" if value_node.tag == _NULL_TAG else value_node.value
        pairs.append((identifier, constraint))
    return pairs


def _scalar_key(source: str, node: yaml.Node, what: str) -> str:
    if not isinstance(node, yaml.ScalarNode) or node.tag == _NULL_TAG:
        raise _malformed(source, node, f"{what} must be a non-null scalar")
    return node.value


def _malformed(source: str, node: yaml.Node, reason: str) -> MalformedDocumentError:
    line = node.start_mark.line + 1
    return MalformedDocumentError(f"unable to load policy {source} (line {line}): {reason}", source=source)
