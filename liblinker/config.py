"""Configuration management for LibLinker.

Loads environment variables (optionally from a ``.env`` file in the working
directory) and provides centralized config access.
"""
import os
from pathlib import Path
from typing import Optional, Tuple
from dotenv import load_dotenv
from rich.errors import StyleSyntaxError
from rich.style import Style

# Version - Managed by tools/sync_version.py (DO NOT EDIT MANUALLY)
__version__ = "1.2.0"

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: Optional[Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_file: Explicit .env path (defaults to ./.env)

        Raises:
            ValueError: If a setting holds an unusable value
        """
        load_dotenv(env_file if env_file is not None else Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        """Validate settings that would otherwise fail deep inside a scan.

        Raises:
            ValueError: If the dependency field list is empty or the
                highlight style cannot be parsed by Rich
        """
        if not self.dependency_fields:
            raise ValueError(
                "LIBLINKER_DEPENDENCY_FIELDS is empty. "
                "Name at least one manifest section, e.g. 'dependencies'."
            )
        try:
            Style.parse(self.highlight_style)
        except StyleSyntaxError as e:
            raise ValueError(f"LIBLINKER_HIGHLIGHT_STYLE is not a valid style: {e}") from e

    @property
    def manifest_name(self) -> str:
        """File name of the project manifest, relative to the project root."""
        return os.getenv("LIBLINKER_MANIFEST", "package.json")

    @property
    def dependency_fields(self) -> Tuple[str, ...]:
        """Manifest sections whose keys count as dependencies.

        Returns:
            Tuple of section names, in the order they are read
        """
        raw = os.getenv("LIBLINKER_DEPENDENCY_FIELDS", "dependencies")
        return tuple(part.strip() for part in raw.split(",") if part.strip())

    @property
    def match_subpaths(self) -> bool:
        """Whether 'pkg/sub' specifiers count as imports from 'pkg'."""
        return os.getenv("LIBLINKER_MATCH_SUBPATHS", "false").strip().lower() in _TRUE_VALUES

    @property
    def highlight_style(self) -> str:
        """Rich style applied to highlighted ranges in the terminal host."""
        return os.getenv("LIBLINKER_HIGHLIGHT_STYLE", "on grey27")

    @property
    def debug(self) -> bool:
        return os.getenv("LIBLINKER_DEBUG", "false").strip().lower() in _TRUE_VALUES


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
