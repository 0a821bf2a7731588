"""
Configuration -- Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables
  2. Project config (.revstream/config.yaml)
  3. User config (~/.revstream/config.yaml)
  4. Defaults

Environment overrides:
  REVSTREAM_GIT            git executable
  REVSTREAM_MAX_RESULTS    default record limit for `revstream log`
  REVSTREAM_PUBLISH_EVERY  checkpoint interval (records per snapshot)
"""

import codecs
import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .core.records import LEGACY_TIMESTAMP_OFFSET_MS
from .core.tokenizer import DEFAULT_ENCODING
from .services.git import NO_LIMIT


logger = logging.getLogger(__name__)

DEFAULT_PUBLISH_EVERY = 1000

VALID_SYMBOLS = ("unicode", "ascii", "auto")
VALID_FORMATS = ("auto", "list", "json")


@dataclass
class WalkConfig:
    """Revision walk settings."""
    publish_every: int = DEFAULT_PUBLISH_EVERY  # Checkpoint every N records
    max_results: int = NO_LIMIT
    default_encoding: str = DEFAULT_ENCODING    # When git reports no encoding
    timestamp_offset_ms: int = LEGACY_TIMESTAMP_OFFSET_MS
    git_executable: str = "git"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.publish_every < 1:
            return f"publish_every must be >= 1, got {self.publish_every}"

        if self.max_results == 0 or self.max_results < NO_LIMIT:
            return f"max_results must be positive or {NO_LIMIT} (no limit), got {self.max_results}"

        try:
            codecs.lookup(self.default_encoding)
        except LookupError:
            return f"Unknown encoding '{self.default_encoding}'"

        if not self.git_executable:
            return "git_executable must not be empty"

        return None


@dataclass
class DisplayConfig:
    """Display preferences."""
    symbols: str = "auto"  # "unicode" | "ascii" | "auto"
    format: str = "auto"   # "auto" | "list" | "json"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.symbols not in VALID_SYMBOLS:
            return f"Unknown symbols setting '{self.symbols}'. Valid: {', '.join(VALID_SYMBOLS)}"

        if self.format not in VALID_FORMATS:
            return f"Unknown format '{self.format}'. Valid: {', '.join(VALID_FORMATS)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    walk: WalkConfig = field(default_factory=WalkConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "walk": {
                "publish_every": self.walk.publish_every,
                "max_results": self.walk.max_results,
                "default_encoding": self.walk.default_encoding,
                "timestamp_offset_ms": self.walk.timestamp_offset_ms,
                "git_executable": self.walk.git_executable,
            },
            "display": {
                "symbols": self.display.symbols,
                "format": self.display.format
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        walk_data = data.get("walk") or {}
        display_data = data.get("display") or {}

        return cls(
            walk=WalkConfig(
                publish_every=int(walk_data.get("publish_every", DEFAULT_PUBLISH_EVERY)),
                max_results=int(walk_data.get("max_results", NO_LIMIT)),
                default_encoding=walk_data.get("default_encoding", DEFAULT_ENCODING),
                timestamp_offset_ms=int(walk_data.get("timestamp_offset_ms", LEGACY_TIMESTAMP_OFFSET_MS)),
                git_executable=walk_data.get("git_executable", "git"),
            ),
            display=DisplayConfig(
                symbols=display_data.get("symbols", "auto"),
                format=display_data.get("format", "auto")
            ),
        )

    def validate(self) -> Optional[str]:
        return self.walk.validate() or self.display.validate()


# Settings that can be changed with `revstream config --set`, by section
_INT_SETTINGS = {"publish_every", "max_results", "timestamp_offset_ms"}
SETTINGS = {
    "walk": ("publish_every", "max_results", "default_encoding",
             "timestamp_offset_ms", "git_executable"),
    "display": ("symbols", "format"),
}

# Environment variable -> walk setting
WALK_ENV = {
    "REVSTREAM_GIT": "git_executable",
    "REVSTREAM_MAX_RESULTS": "max_results",
    "REVSTREAM_PUBLISH_EVERY": "publish_every",
}


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment variables
      2. Project config (.revstream/config.yaml)
      3. User config (~/.revstream/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".revstream"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".revstream"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        # Start with defaults
        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        config = Config()
        for section, settings in SETTINGS.items():
            values = config_data.get(section)
            if not isinstance(values, dict):
                continue
            for setting in settings:
                if setting not in values:
                    continue
                error = self._apply(getattr(config, section), setting, values[setting])
                if error:
                    logger.warning("Ignoring %s.%s from config file: %s", section, setting, error)

        # Layer 3: Environment overrides (a bad value keeps the file setting)
        for env_key, setting in WALK_ENV.items():
            if os.environ.get(env_key):
                error = self._apply(config.walk, setting, os.environ[env_key])
                if error:
                    logger.warning("Ignoring %s: %s", env_key, error)

        self._config = config
        return self._config

    @staticmethod
    def _apply(target: Any, setting: str, value: Any) -> Optional[str]:
        """
        Set one value on a config section if it is valid.

        The section keeps its previous value when the new one fails to parse
        or validate.

        Returns:
            Error message or None if applied
        """
        if value is None:
            return f"{setting} has no value"
        if setting in _INT_SETTINGS:
            try:
                value = int(value)
            except (TypeError, ValueError):
                return f"{setting} must be an integer, got '{value}'"
        else:
            value = str(value)

        previous = getattr(target, setting)
        setattr(target, setting, value)
        error = target.validate()
        if error:
            setattr(target, setting, previous)
        return error

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}  # Ignore malformed config
        return data if isinstance(data, dict) else {}

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self._save(self.project_config_path, config)

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self._save(self.user_config_path, config)

    def _save(self, path: Path, config: Config):
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "walk.publish_every")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'walk.max_results')"

        section, setting = parts

        if section not in SETTINGS:
            return f"Unknown section: {section}. Valid: {', '.join(SETTINGS)}"
        if setting not in SETTINGS[section]:
            return f"Unknown {section} setting: {setting}. Valid: {', '.join(SETTINGS[section])}"

        error = self._apply(getattr(config, section), setting, value)
        if error:
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        if setting not in SETTINGS.get(section, ()):
            return None

        return str(getattr(getattr(config, section), setting))

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        max_results = config.walk.max_results
        limit = "none" if max_results == NO_LIMIT else str(max_results)

        lines = [
            "Configuration:",
            "",
            "Walk:",
            f"  Git executable: {config.walk.git_executable}",
            f"  Max results: {limit}",
            f"  Publish every: {config.walk.publish_every} records",
            f"  Default encoding: {config.walk.default_encoding}",
            f"  Timestamp offset: {config.walk.timestamp_offset_ms} ms",
            "",
            "Display:",
            f"  Symbols: {config.display.symbols}",
            f"  Format: {config.display.format}",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ]

        return "\n".join(lines)


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
