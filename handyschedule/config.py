"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHoursPolicy


class DefaultsConfig(BaseModel):
    """Defaults applied when a handyman or a request leaves a value open."""
    start_hour: int = 8
    end_hour: int = 18
    days_off: List[int] = Field(default_factory=lambda: [0])  # Sunday
    job_duration_hours: float = 4.0
    slot_duration_hours: float = 2.0
    suggestion_days: int = 7
    max_suggestions: int = 5
    store_timeout_seconds: Optional[float] = None

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("days_off")
    @classmethod
    def validate_days_off(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"days_off must be between 0 and 6, got {invalid_days}")
        return sorted(set(value))

    @field_validator("job_duration_hours", "slot_duration_hours")
    @classmethod
    def validate_positive_hours(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("durations must be greater than zero")
        return value

    @field_validator("suggestion_days", "max_suggestions")
    @classmethod
    def validate_positive_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("suggestion_days and max_suggestions must be at least 1")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the working day opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def working_hours_policy(self) -> WorkingHoursPolicy:
        """Policy built from the configured defaults."""
        return WorkingHoursPolicy(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            days_off=frozenset(self.days_off),
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    data_file: Path = Path("jobs.json")
    log_level: str = "WARNING"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative data paths are resolved next to the config file.
        if not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the config from ``config_path`` or the default location.

    Falls back to built-in defaults when no file exists at the default
    location; an explicitly given path must exist.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
