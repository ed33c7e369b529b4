"""
Settings and configuration for pastila.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at CLI start.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "Settings",
    "create_settings_from_env",
    "DEFAULT_PASTILA_URL",
    "DEFAULT_CLICKHOUSE_URL",
    "DEFAULT_EDITOR",
    "DEFAULT_USER_AGENT",
]

DEFAULT_PASTILA_URL = "https://pastila.nl/"
DEFAULT_CLICKHOUSE_URL = "https://play.clickhouse.com/?user=paste"
DEFAULT_EDITOR = "vi"
DEFAULT_USER_AGENT = "PastilaCLI/1.0"

_URL_PATTERN = r"^https?://[^\s/?#]+(?:[/?#]\S*)?$"


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for pastila.

    Service Settings:
        pastila_url: Base URL written into locators of new pastes
        clickhouse_url: ClickHouse HTTP endpoint used to read and write rows
        user_agent: Client identifier sent with every request
        http_timeout_s: HTTP timeout in seconds (None = wait forever)

    Edit Session Settings:
        editor: Editor command, split like a shell word list
        poll_interval_s: Interval between temp file checks
        quick_exit_threshold_s: Editors exiting faster than this are
            assumed to keep running in the background
    """
    pastila_url: str = DEFAULT_PASTILA_URL
    clickhouse_url: str = DEFAULT_CLICKHOUSE_URL
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout_s: Optional[float] = None

    editor: str = DEFAULT_EDITOR
    poll_interval_s: float = 0.01
    quick_exit_threshold_s: float = 1.0

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.pastila_url:
            raise ValueError("pastila_url is required")
        if not re.match(_URL_PATTERN, self.pastila_url):
            raise ValueError(f"Invalid pastila_url format: {self.pastila_url}")

        if not self.clickhouse_url:
            raise ValueError("clickhouse_url is required")
        if not re.match(_URL_PATTERN, self.clickhouse_url):
            raise ValueError(f"Invalid clickhouse_url format: {self.clickhouse_url}")

        if not self.user_agent:
            raise ValueError("user_agent is required")

        if not self.editor or not self.editor.strip():
            raise ValueError("editor is required")

        if self.http_timeout_s is not None and self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be positive, got {self.poll_interval_s}")

        if self.quick_exit_threshold_s < 0:
            raise ValueError(f"quick_exit_threshold_s must be non-negative, got {self.quick_exit_threshold_s}")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - PASTILA_URL (default: https://pastila.nl/)
        - PASTILA_CLICKHOUSE_URL (default: https://play.clickhouse.com/?user=paste)
        - EDITOR (default: vi)
        - PASTILA_HTTP_TIMEOUT (default: no timeout)
        - PASTILA_POLL_INTERVAL (default: 0.01)

    Empty values fall back to the defaults.

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_str(key: str, default: str) -> str:
        value = os.getenv(key)
        return value if value else default

    def get_float(key: str, default: Optional[float]) -> Optional[float]:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return float(value)
        except ValueError as e:
            raise ValueError(f"{key} must be a number, got {value!r}") from e

    return Settings(
        pastila_url=get_str("PASTILA_URL", DEFAULT_PASTILA_URL),
        clickhouse_url=get_str("PASTILA_CLICKHOUSE_URL", DEFAULT_CLICKHOUSE_URL),
        editor=get_str("EDITOR", DEFAULT_EDITOR),
        http_timeout_s=get_float("PASTILA_HTTP_TIMEOUT", None),
        poll_interval_s=get_float("PASTILA_POLL_INTERVAL", 0.01),
    )
