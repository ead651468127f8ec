"""Tests for the YAML policy source reader."""

from __future__ import annotations

import pytest

from metricgate.exceptions import MalformedDocumentError, SourceUnreadableError
from metricgate.policy.source import parse_policy, read_policy


# ---------------------------------------------------------------------------
# Reading files
# ---------------------------------------------------------------------------


class TestReadPolicy:
    def test_reads_scenario_file(self, policy_file):
        raw = read_policy(policy_file)
        assert raw == {
            "viewer": [("cpu_usage", 'namespace=~"prod.*"')],
            "admin": [("/.*/", "")],
        }

    def test_missing_file_is_unreadable(self, tmp_path):
        missing = tmp_path / "nope.yml"
        with pytest.raises(SourceUnreadableError) as exc_info:
            read_policy(missing)
        assert exc_info.value.source == str(missing)
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_directory_is_unreadable(self, tmp_path):
        with pytest.raises(SourceUnreadableError):
            read_policy(tmp_path)

    def test_non_utf8_is_unreadable(self, tmp_path):
        path = tmp_path / "binary.yml"
        path.write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(SourceUnreadableError):
            read_policy(path)


# ---------------------------------------------------------------------------
# Document shape
# ---------------------------------------------------------------------------


class TestParsePolicy:
    def test_empty_document_is_empty_policy(self):
        assert parse_policy("") == {}

    def test_preserves_declaration_order(self):
        raw = parse_policy("ops:\n  b: '1'\n  a: '2'\n  c: '3'\n")
        assert [identifier for identifier, _ in raw["ops"]] == ["b", "a", "c"]

    def test_list_form(self):
        raw = parse_policy('ops:\n  - "/node_.*/": job="node"\n  - up: ""\n')
        assert raw == {"ops": [("/node_.*/", 'job="node"'), ("up", "")]}

    def test_null_constraint_becomes_empty_string(self):
        raw = parse_policy("ops:\n  up:\n  down: ~\n")
        assert raw == {"ops": [("up", ""), ("down", "")]}

    def test_non_string_scalar_kept_as_text(self):
        raw = parse_policy("ops:\n  up: 5\n")
        assert raw == {"ops": [("up", "5")]}

    def test_null_role_has_no_entries(self):
        assert parse_policy("ghost:\n") == {"ghost": []}

    def test_duplicate_identifiers_survive_reading(self):
        raw = parse_policy("ops:\n  up: a\n  up: b\n")
        assert raw == {"ops": [("up", "a"), ("up", "b")]}

    def test_repeated_role_blocks_are_merged(self):
        raw = parse_policy("ops:\n  up: a\nviewer:\n  x: ''\nops:\n  down: b\n")
        assert raw["ops"] == [("up", "a"), ("down", "b")]
        assert list(raw) == ["ops", "viewer"]

    def test_roles_are_case_sensitive(self):
        raw = parse_policy("Ops:\n  up: a\nops:\n  up: b\n")
        assert set(raw) == {"Ops", "ops"}


class TestMalformedDocuments:
    @pytest.mark.parametrize(
        "text",
        [
            "ops: [unclosed",
            "- just\n- a\n- list\n",
            "plain string",
            "ops: some-string\n",
            "ops:\n  - just-a-string\n",
            "ops:\n  up:\n    nested: mapping\n",
            "ops:\n  up: [a, b]\n",
            "~:\n  up: a\n",
            "ops:\n  ~: a\n",
            "? [a, b]\n: {up: a}\n",
            "a: 1\n---\nb: 2\n",
        ],
    )
    def test_rejected(self, text):
        with pytest.raises(MalformedDocumentError):
            parse_policy(text)

    def test_error_names_source_and_line(self):
        with pytest.raises(MalformedDocumentError) as exc_info:
            parse_policy("ok:\n  up: a\nbad: 3\n", source="acl.yml")
        assert exc_info.value.source == "acl.yml"
        assert "acl.yml" in exc_info.value.message
        assert "line 3" in exc_info.value.message

    def test_deep_nesting_is_malformed(self):
        text = "ops: " + "[" * 5000 + "]" * 5000
        with pytest.raises(MalformedDocumentError) as exc_info:
            parse_policy(text, source="deep.yml")
        assert exc_info.value.source == "deep.yml"
