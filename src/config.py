"""Configuration management for the stream client."""

import os
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


class Configuration:
    """Manages YAML configuration for the stream client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from a YAML file.

        Args:
            config_path: Path to a YAML file; defaults to the bundled
                config.yaml next to this module.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Configuration":
        """Build a configuration from an in-memory dictionary."""
        instance = cls.__new__(cls)
        instance.config_path = None
        instance._config = config
        return instance

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary.

        Returns:
            The complete configuration dictionary.
        """
        return self._config

    def get_stream_config(self) -> dict[str, Any]:
        """Get stream endpoint and timeout configuration.

        Returns:
            Stream configuration dictionary with validated values.

        Raises:
            ValueError: If required stream parameters are missing or invalid.
        """
        stream_config = self._config.get("stream", {})

        required_keys = ["endpoint", "connect_timeout", "read_timeout"]
        for key in required_keys:
            if key not in stream_config:
                raise ValueError(
                    f"stream.{key} must be explicitly configured in config.yaml"
                )

        endpoint = stream_config["endpoint"]
        if not isinstance(endpoint, str) or not endpoint.startswith(
            ("http://", "https://")
        ):
            raise ValueError("stream.endpoint must be an http(s) URL")

        timeout_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        for key in timeout_keys:
            if key in stream_config:
                value = stream_config[key]
                if not isinstance(value, int | float) or value <= 0:
                    raise ValueError(f"stream.{key} must be positive")

        return dict(stream_config)

    def get_conversation_config(self) -> dict[str, Any]:
        """Get conversation buffer configuration.

        Returns:
            Conversation configuration dictionary.

        Raises:
            ValueError: If capacity is missing or not a positive integer.
        """
        conversation_config = self._config.get("conversation", {})

        if "capacity" not in conversation_config:
            raise ValueError(
                "conversation.capacity must be explicitly configured in config.yaml"
            )

        capacity = conversation_config["capacity"]
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError("conversation.capacity must be a positive integer")

        return dict(conversation_config)

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})
