"""
Configuration management for the Financial Exorcist

Handles defaults, an optional JSON config file and environment overrides.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

# Environment variables recognised by the config manager
ENV_PREFIX = "EXORCIST_"
ENV_CONFIG_FILE = "EXORCIST_CONFIG_FILE"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Ignoring non-integer value for {name}: {value!r}")
        return None


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "Financial Exorcist"
    version: str = "1.0.0"
    description: str = "Spending offerings, demon possessions and soul purity"

    # Logging
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"  # Directory for log files


@dataclass
class RitualSettings:
    """Ritual configuration."""

    rng_seed: Optional[int] = None  # None seeds from system entropy
    shame_min_length: int = 10


@dataclass
class PuritySettings:
    """Soul purity scoring configuration."""

    ceiling: Optional[int] = None  # None keeps the uncapped arithmetic
    possession_window_days: int = 7


@dataclass
class ExorcistConfig:
    """Complete configuration for the Financial Exorcist."""

    app: AppConfig = field(default_factory=AppConfig)
    ritual: RitualSettings = field(default_factory=RitualSettings)
    purity: PuritySettings = field(default_factory=PuritySettings)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "ritual": asdict(self.ritual),
            "purity": asdict(self.purity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExorcistConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            ritual=RitualSettings(**data.get("ritual", {})),
            purity=PuritySettings(**data.get("purity", {})),
        )


class ConfigManager:
    """Manages configuration loading, saving and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[ExorcistConfig] = None

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path of the config file, if one is configured."""
        path = os.getenv(ENV_CONFIG_FILE)
        return Path(path) if path else None

    def apply_environment(self, config: ExorcistConfig) -> ExorcistConfig:
        """Apply EXORCIST_* environment overrides in place."""
        config.app.debug = _env_flag(f"{ENV_PREFIX}DEBUG", config.app.debug)
        if config.app.debug:
            config.app.log_level = "DEBUG"

        log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            config.app.log_level = log_level.upper()

        config.app.log_to_file = _env_flag(
            f"{ENV_PREFIX}LOG_TO_FILE", config.app.log_to_file
        )

        log_dir = os.getenv(f"{ENV_PREFIX}LOG_DIR")
        if log_dir:
            config.app.log_dir = log_dir

        seed = _env_int(f"{ENV_PREFIX}RNG_SEED")
        if seed is not None:
            config.ritual.rng_seed = seed

        ceiling = _env_int(f"{ENV_PREFIX}PURITY_CEILING")
        if ceiling is not None:
            config.purity.ceiling = ceiling

        return config

    def load_config(self) -> ExorcistConfig:
        """Load configuration from file (when configured) or defaults."""
        self.config_file = self.get_config_file_path()

        if self.config_file is not None and self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                config = ExorcistConfig.from_dict(data)
                logging.info(f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError, TypeError) as e:
                logging.warning(f"Failed to load config from {self.config_file}: {e}")
                logging.info("Using default configuration")
                config = ExorcistConfig()
        else:
            config = ExorcistConfig()

        self.config = self.apply_environment(config)
        return self.config

    def get(self) -> ExorcistConfig:
        """Return the cached configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def reset(self) -> None:
        """Drop the cached configuration so the next read reloads it."""
        self.config = None
        self.config_file = None

    def save_config(
        self, config: Optional[ExorcistConfig] = None, path: Optional[Path] = None
    ) -> bool:
        """Save configuration to file."""
        config = config or self.config
        target = path or self.config_file or self.get_config_file_path()

        if config is None or target is None:
            logging.error("No configuration or config file path to save to")
            return False

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logging.info(f"Saved configuration to {target}")
            return True

        except OSError as e:
            logging.error(f"Failed to save config to {target}: {e}")
            return False

    def validate_config(self) -> List[str]:
        """Validate configuration and return a list of issues."""
        config = self.get()
        issues = []

        if config.app.log_level.upper() not in VALID_LOG_LEVELS:
            issues.append(f"Unknown log level: {config.app.log_level}")

        if config.ritual.shame_min_length < 1:
            issues.append(
                f"shame_min_length must be positive, got {config.ritual.shame_min_length}"
            )

        if config.purity.possession_window_days < 0:
            issues.append(
                "possession_window_days must not be negative, got "
                f"{config.purity.possession_window_days}"
            )

        if config.purity.ceiling is not None and config.purity.ceiling < 0:
            issues.append(f"Purity ceiling must not be negative: {config.purity.ceiling}")

        return issues


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> ExorcistConfig:
    """Get the current configuration."""
    return config_manager.get()


def reset_config() -> None:
    """Forget the cached configuration."""
    config_manager.reset()
