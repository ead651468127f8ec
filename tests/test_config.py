"""Tests for MG_* settings validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from metricgate.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("MG_ACL_FILE", "MG_ADMIN_KEYS", "MG_LOG_FORMAT", "MG_LOG_LEVEL", "MG_PORT"):
            monkeypatch.delenv(var, raising=False)
        s = Settings()
        assert s.acl_file == "prometheus-acl.yml"
        assert s.port == 8080
        assert s.log_format == "text"
        assert s.admin_key_set == set()

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("MG_ACL_FILE", "/etc/metricgate/acl.yml")
        monkeypatch.setenv("MG_PORT", "9091")
        s = Settings()
        assert s.acl_file == "/etc/metricgate/acl.yml"
        assert s.port == 9091

    def test_admin_keys_parsed(self):
        s = Settings(admin_keys=" k1, ,k2 ")
        assert s.admin_key_set == {"k1", "k2"}

    def test_log_format_normalised(self):
        assert Settings(log_format="JSON").log_format == "json"

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError, match="MG_LOG_FORMAT"):
            Settings(log_format="xml")

    def test_log_level_normalised(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="MG_LOG_LEVEL"):
            Settings(log_level="chatty")

    def test_invalid_port(self):
        with pytest.raises(ValidationError):
            Settings(port=0)
