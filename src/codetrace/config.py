"""Configuration loading and management for CodeTrace.

Configuration sources are merged in priority order:
    1. Defaults (defined in RecorderConfig)
    2. Global config (~/.codetrace.toml)
    3. Project config (./codetrace.toml)
    4. Explicit config file
    5. Environment variables (CODETRACE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(max_sessions_to_keep=10)
    >>> config.max_sessions_to_keep
    10
    >>> config.commit_lookback
    10
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError, InvalidPathError

Verbosity = Literal["quiet", "normal", "verbose"]

GLOBAL_CONFIG_NAME = ".codetrace.toml"
PROJECT_CONFIG_NAME = "codetrace.toml"
ENV_PREFIX = "CODETRACE_"


@dataclass(frozen=True)
class RecorderConfig:
    """Configuration for session recording.

    Attributes:
        File tracking:
            ignore_patterns: Glob patterns for saves that are never recorded

        Storage:
            store_dir: Directory (relative to the workspace) holding session documents
            max_sessions_to_keep: Retention cap; oldest sessions are evicted first

        Commit tracking:
            poll_interval_seconds: Delay between commit polls
            commit_lookback: Commits inspected per poll (the lookback window)

        Summaries:
            auto_generate_summary: Summarize right after a session is saved
            ai_model: Model used for summaries
            openai_api_key: API key (falls back to OPENAI_API_KEY when unset)

        Output control:
            show_notifications: Print lifecycle notifications in the CLI
            verbosity: Logging verbosity level
    """

    # File tracking
    ignore_patterns: list[str] = field(
        default_factory=lambda: [
            ".git/**",
            ".codetrace/**",
            "node_modules/**",
            "__pycache__/**",
            "*.pyc",
            "dist/**",
            "build/**",
            ".venv/**",
        ]
    )

    # Storage
    store_dir: str = ".codetrace"
    max_sessions_to_keep: int = 50

    # Commit tracking
    poll_interval_seconds: float = 5.0
    commit_lookback: int = 10

    # Summaries
    auto_generate_summary: bool = False
    ai_model: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = None

    # Output control
    show_notifications: bool = True
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_sessions_to_keep < 1:
            raise InvalidConfigError(
                "max_sessions_to_keep", self.max_sessions_to_keep, "must be at least 1"
            )
        if self.poll_interval_seconds <= 0:
            raise InvalidConfigError(
                "poll_interval_seconds", self.poll_interval_seconds, "must be positive"
            )
        if self.commit_lookback < 1:
            raise InvalidConfigError("commit_lookback", self.commit_lookback, "must be at least 1")
        if not self.store_dir or Path(self.store_dir).is_absolute():
            raise InvalidConfigError(
                "store_dir", self.store_dir, "must be a relative directory name"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    @property
    def resolved_api_key(self) -> Optional[str]:
        """API key from config, falling back to the OPENAI_API_KEY variable."""
        key = self.openai_api_key or os.environ.get("OPENAI_API_KEY")
        if key and key.strip():
            return key.strip()
        return None


def resolve_workspace(path: Optional[Path]) -> Path:
    """Resolve the workspace root that all recorded paths are relative to.

    Raises:
        ConfigurationError: If no workspace was given
        InvalidPathError: If the path does not exist or is not a directory
    """
    if path is None:
        raise ConfigurationError("No workspace folder is open")

    root = Path(path).expanduser()
    if not root.exists():
        raise InvalidPathError(root, "does not exist")
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")
    return root.resolve()


def load_config(
    config_file: Optional[Path] = None, project_dir: Optional[Path] = None, **overrides
) -> RecorderConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        project_dir: Directory searched for codetrace.toml (default: cwd)
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated RecorderConfig instance

    Raises:
        ConfigurationError: If a config file or value is invalid
    """
    merged: dict = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    try:
        return RecorderConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CODETRACE_* environment variables.

    Supported environment variables:
        CODETRACE_MAX_SESSIONS_TO_KEEP: int
        CODETRACE_POLL_INTERVAL_SECONDS: float
        CODETRACE_COMMIT_LOOKBACK: int
        CODETRACE_STORE_DIR: str
        CODETRACE_AUTO_GENERATE_SUMMARY: bool (true/false/1/0)
        CODETRACE_AI_MODEL: str
        CODETRACE_OPENAI_API_KEY: str
        CODETRACE_SHOW_NOTIFICATIONS: bool
        CODETRACE_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any CODETRACE_* vars found.
    """
    type_hints = get_type_hints(RecorderConfig)

    result: dict[str, Any] = {}

    for field_name in RecorderConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value or None if the type is not settable from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    # Lists (ignore_patterns) belong in TOML files
    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Allow settings nested under a [codetrace] table
    if isinstance(data.get("codetrace"), dict):
        return data["codetrace"]
    return data
