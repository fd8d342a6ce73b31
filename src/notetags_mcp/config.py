"""Configuration module for notetags-mcp.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from notetags_mcp.tags.walker import DEFAULT_EXTENSIONS, normalize_extensions

TRUE_VALUES = ("1", "true", "yes")


def _int_env(name: str, default: str, minimum: int, maximum: int | None = None) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
        if maximum is not None and not minimum <= value <= maximum:
            raise ValueError(f"must be between {minimum} and {maximum}, got {value}")
        if value < minimum:
            raise ValueError(f"must be at least {minimum}, got {value}")
    except ValueError as e:
        raise ValueError(f"Invalid {name} value '{raw}': {e}") from e
    return value


@dataclass
class Config:
    """Application configuration."""

    notes_root: Path
    port: int
    extensions: tuple[str, ...]
    snippet_length: int
    sync_interval: int  # Seconds, 0 disables polling
    hierarchical_rename: bool
    auth_token: str | None
    read_only: bool

    @classmethod
    def from_env(cls, read_only_override: bool | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            read_only_override: If provided, overrides the NOTETAGS_READ_ONLY env var.
        """
        default_root = str(Path.home() / "notes")
        notes_root = Path(os.getenv("NOTETAGS_ROOT", default_root)).expanduser()

        port = _int_env("NOTETAGS_PORT", "8080", 1, 65535)

        extensions = normalize_extensions(
            os.getenv("NOTETAGS_EXTENSIONS", ",".join(DEFAULT_EXTENSIONS)).split(",")
        )
        if not extensions:
            raise ValueError("NOTETAGS_EXTENSIONS must list at least one extension")

        snippet_length = _int_env("NOTETAGS_SNIPPET_LENGTH", "60", 1)
        sync_interval = _int_env("NOTETAGS_SYNC_INTERVAL", "5", 0)

        hierarchical_rename = (
            os.getenv("NOTETAGS_HIERARCHICAL_RENAME", "").lower() in TRUE_VALUES
        )

        # Auth token - must be at least 32 characters if set
        auth_token = os.getenv("NOTETAGS_AUTH_TOKEN")
        if auth_token is not None and len(auth_token) < 32:
            raise ValueError("NOTETAGS_AUTH_TOKEN must be at least 32 characters for security")

        # CLI flag takes precedence over env var
        if read_only_override is not None:
            read_only = read_only_override
        else:
            read_only = os.getenv("NOTETAGS_READ_ONLY", "").lower() in TRUE_VALUES

        return cls(
            notes_root=notes_root,
            port=port,
            extensions=extensions,
            snippet_length=snippet_length,
            sync_interval=sync_interval,
            hierarchical_rename=hierarchical_rename,
            auth_token=auth_token,
            read_only=read_only,
        )

