#!/usr/bin/env python3
"""
Tests for explicit, fail-fast configuration.
"""

import pytest

from src.config import Configuration


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestBundledConfig:
    def test_defaults(self):
        config = Configuration()
        stream = config.get_stream_config()
        assert stream["endpoint"] == "http://localhost:3000"
        assert stream["read_timeout"] > 0
        assert config.get_conversation_config()["capacity"] == 10
        assert config.get_logging_config()["level"] == "INFO"


class TestValidation:
    def test_load_from_path(self, tmp_path):
        path = write_config(
            tmp_path,
            "stream:\n"
            "  endpoint: https://example.test/chat\n"
            "  connect_timeout: 1\n"
            "  read_timeout: 2\n"
            "conversation:\n"
            "  capacity: 3\n",
        )
        config = Configuration(path)
        assert config.get_stream_config()["endpoint"] == "https://example.test/chat"
        assert config.get_conversation_config()["capacity"] == 3
        assert config.get_logging_config() == {}

    def test_non_mapping_yaml(self, tmp_path):
        path = write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ValueError, match="YAML dict"):
            Configuration(path)

    def test_missing_stream_key(self):
        config = Configuration.from_dict(
            {"stream": {"endpoint": "http://localhost:3000", "connect_timeout": 1}}
        )
        with pytest.raises(ValueError, match="read_timeout"):
            config.get_stream_config()

    def test_bad_endpoint(self):
        config = Configuration.from_dict(
            {"stream": {"endpoint": "localhost:3000", "connect_timeout": 1, "read_timeout": 1}}
        )
        with pytest.raises(ValueError, match="endpoint"):
            config.get_stream_config()

    @pytest.mark.parametrize("timeout", [0, -1, "fast"])
    def test_bad_timeout(self, timeout):
        config = Configuration.from_dict(
            {
                "stream": {
                    "endpoint": "http://localhost:3000",
                    "connect_timeout": 1,
                    "read_timeout": timeout,
                }
            }
        )
        with pytest.raises(ValueError, match="read_timeout"):
            config.get_stream_config()

    @pytest.mark.parametrize("capacity", [0, -5, 1.5, True, "ten"])
    def test_bad_capacity(self, capacity):
        config = Configuration.from_dict({"conversation": {"capacity": capacity}})
        with pytest.raises(ValueError, match="capacity"):
            config.get_conversation_config()

    def test_missing_capacity(self):
        with pytest.raises(ValueError, match="capacity"):
            Configuration.from_dict({}).get_conversation_config()
