"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_ENV_VAR = "CHECKIN_CONFIG"


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".checkin"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "checkin.db"


def default_config_path() -> Path:
    """Return the config file path, honouring CHECKIN_CONFIG."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return _default_config_dir() / "config.yaml"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class MetricsConfig:
    """Windowing and trend thresholds for the progress metrics engine."""

    rolling_window: int = 4
    progressive_weeks: int = 4  # weeks 1..N use a zero-filled cumulative mean
    outlier_threshold: float = 5.0  # percent
    accelerating_factor: float = 1.2
    decelerating_factor: float = 0.8

    def __post_init__(self) -> None:
        if self.rolling_window < 1:
            raise ValueError(f"rolling_window must be >= 1, got {self.rolling_window}")
        if self.progressive_weeks < 1:
            raise ValueError(
                f"progressive_weeks must be >= 1, got {self.progressive_weeks}"
            )
        if self.outlier_threshold <= 0:
            raise ValueError(
                f"outlier_threshold must be positive, got {self.outlier_threshold}"
            )


@dataclass
class MessageConfig:
    """Weekly message defaults."""

    template_path: Optional[Path] = None
    default_goal_rate: float = 1.0
    default_protein_grams: float = 150.0
    protein_tolerance_grams: float = 3.0


@dataclass
class DisplayConfig:
    """Default values for output."""

    units: str = "imperial"  # unit system for new patients: "imperial" or "metric"
    output_format: str = "table"  # "table", "json", "markdown", "csv"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    message: MessageConfig = field(default_factory=MessageConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses $CHECKIN_CONFIG or
                ~/.checkin/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        if "metrics" in data:
            m_data = data["metrics"] or {}
            settings.metrics = MetricsConfig(
                rolling_window=int(m_data.get("rolling_window", 4)),
                progressive_weeks=int(m_data.get("progressive_weeks", 4)),
                outlier_threshold=float(m_data.get("outlier_threshold", 5.0)),
                accelerating_factor=float(m_data.get("accelerating_factor", 1.2)),
                decelerating_factor=float(m_data.get("decelerating_factor", 0.8)),
            )

        if "message" in data:
            msg_data = data["message"] or {}
            if msg_data.get("template_path"):
                settings.message.template_path = Path(
                    msg_data["template_path"]
                ).expanduser()
            if "default_goal_rate" in msg_data:
                settings.message.default_goal_rate = float(msg_data["default_goal_rate"])
            if "default_protein_grams" in msg_data:
                settings.message.default_protein_grams = float(
                    msg_data["default_protein_grams"]
                )
            if "protein_tolerance_grams" in msg_data:
                settings.message.protein_tolerance_grams = float(
                    msg_data["protein_tolerance_grams"]
                )

        if "display" in data:
            disp_data = data["display"] or {}
            if "units" in disp_data:
                settings.display.units = disp_data["units"]
            if "output_format" in disp_data:
                settings.display.output_format = disp_data["output_format"]

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses the default path
        """
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "metrics": {
                "rolling_window": self.metrics.rolling_window,
                "progressive_weeks": self.metrics.progressive_weeks,
                "outlier_threshold": self.metrics.outlier_threshold,
                "accelerating_factor": self.metrics.accelerating_factor,
                "decelerating_factor": self.metrics.decelerating_factor,
            },
            "message": {
                "template_path": (
                    str(self.message.template_path) if self.message.template_path else None
                ),
                "default_goal_rate": self.message.default_goal_rate,
                "default_protein_grams": self.message.default_protein_grams,
                "protein_tolerance_grams": self.message.protein_tolerance_grams,
            },
            "display": {
                "units": self.display.units,
                "output_format": self.display.output_format,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
