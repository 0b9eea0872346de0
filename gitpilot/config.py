"""
Persistent gitpilot settings.

Settings live in a YAML file (``~/.config/gitpilot/config.yaml`` unless
``GITPILOT_CONFIG`` points elsewhere). Environment variables override the
file at load time but are never written back.
"""

import logging
import os
import shutil
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from gitpilot.errors import ConfigError
from gitpilot.executor.models import ExecutionMode
from gitpilot.llm import SUPPORTED_PROVIDERS

logger = logging.getLogger(__name__)

OUTPUT_MODES = ("detail", "simple")
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"Expected a boolean value, got '{value}'")


@dataclass
class Settings:
    """Complete gitpilot configuration"""

    provider: str = "openai"
    api_key: str | None = None
    model: str | None = None
    default_mode: str = ExecutionMode.PREVIEW.value
    output_mode: str = "detail"
    debug: bool = False
    recovery_enabled: bool = True
    process_timeout: float | None = None
    capture_stderr: bool = False

    @property
    def execution_mode(self) -> ExecutionMode:
        return ExecutionMode.from_string(self.default_mode)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

        settings = cls()
        for key in known & set(data):
            if data[key] is not None:
                _apply(settings, key, data[key])
        return settings


def _apply(settings: Settings, key: str, value: Any) -> None:
    """Validate and set one field. Raises ConfigError."""
    if key == "provider":
        provider = str(value).strip().lower()
        if provider == "anthropic":
            provider = "claude"
        elif provider == "google":
            provider = "gemini"
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigError(f"Invalid provider '{value}'. Valid providers are: {', '.join(SUPPORTED_PROVIDERS)}")
        settings.provider = provider
    elif key == "default_mode":
        try:
            settings.default_mode = ExecutionMode.from_string(str(value)).value
        except ValueError as e:
            raise ConfigError(str(e)) from e
    elif key == "output_mode":
        if value not in OUTPUT_MODES:
            raise ConfigError(f"Invalid output mode '{value}'. Valid modes are: {', '.join(OUTPUT_MODES)}")
        settings.output_mode = value
    elif key in ("debug", "recovery_enabled", "capture_stderr"):
        setattr(settings, key, _to_bool(value))
    elif key == "process_timeout":
        if value in (None, "", "none", "null"):
            settings.process_timeout = None
            return
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"process_timeout must be a number, got '{value}'") from e
        if timeout <= 0:
            raise ConfigError("process_timeout must be positive")
        settings.process_timeout = timeout
    elif key in ("api_key", "model"):
        text = str(value).strip()
        setattr(settings, key, text or None)
    else:
        raise ConfigError(f"Unknown setting '{key}'")


class ConfigManager:
    """
    YAML-backed settings manager.

    Features:
    - Defaults when no file exists
    - Validation on load and on set
    - Environment variable overrides
    - Backup of the previous file on save
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gitpilot"
    DEFAULT_CONFIG_FILE = "config.yaml"
    BACKUP_SUFFIX = ".backup"

    def __init__(self, config_path: Path | str | None = None):
        if config_path:
            self.config_path = Path(config_path)
        elif os.environ.get("GITPILOT_CONFIG"):
            self.config_path = Path(os.environ["GITPILOT_CONFIG"])
        else:
            self.config_path = self.DEFAULT_CONFIG_DIR / self.DEFAULT_CONFIG_FILE
        self._settings: Settings | None = None

    def load(self) -> Settings:
        """Load settings from the file, without environment overrides."""
        if not self.config_path.exists():
            self._settings = Settings()
            return self._settings

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {self.config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {self.config_path}: {e}") from e

        if not data:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")

        self._settings = Settings.from_dict(data)
        return self._settings

    def effective(self) -> Settings:
        """Settings from the file with environment overrides applied."""
        settings = Settings(**self.settings.to_dict())
        env_map = {
            "GITPILOT_PROVIDER": "provider",
            "GITPILOT_MODEL": "model",
            "GITPILOT_MODE": "default_mode",
            "GITPILOT_RECOVERY": "recovery_enabled",
            "GITPILOT_DEBUG": "debug",
        }
        for env_name, key in env_map.items():
            value = os.environ.get(env_name)
            if value:
                _apply(settings, key, value)

        api_key = os.environ.get("GITPILOT_API_KEY") or self._provider_key_from_env(settings.provider)
        if api_key:
            settings.api_key = api_key
        return settings

    @staticmethod
    def _provider_key_from_env(provider: str) -> str | None:
        if provider == "openai":
            return os.environ.get("OPENAI_API_KEY")
        if provider == "claude":
            return os.environ.get("ANTHROPIC_API_KEY")
        if provider == "gemini":
            return os.environ.get("GEMINI_API_KEY")
        return None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self.load()
        return self._settings

    def save(self, backup: bool = True) -> Path:
        """Write the current settings to the config file."""
        settings = self.settings
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if backup and self.config_path.exists():
            shutil.copy2(self.config_path, self.config_path.with_suffix(self.BACKUP_SUFFIX))

        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save config file {self.config_path}: {e}") from e

        try:
            os.chmod(self.config_path, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.config_path)
        return self.config_path

    def get(self, key: str, default: Any = None) -> Any:
        return self.settings.to_dict().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Validate and set one setting. Raises ConfigError."""
        _apply(self.settings, key, value)
