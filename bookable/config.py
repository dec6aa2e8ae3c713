"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Any, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

LEAD_TIME_HOURS_RANGE = (0, 720)
MAX_DAYS_IN_ADVANCE_RANGE = (1, 365)
SLOT_INTERVAL_MINUTES_RANGE = (5, 120)
SLOT_INTERVAL_MULTIPLE_OF = 5


def _check_range(name: str, value: int, bounds: tuple) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")
    return value


def _check_timezone(value: str) -> str:
    try:
        pendulum.timezone(value)
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value!r}") from exc
    return value


class ReservationDefaults(BaseModel):
    """Application-wide booking policy used when a tenant has no override."""
    lead_time_hours: int = 1
    max_days_in_advance: int = 30
    slot_interval_minutes: int = 30
    timezone: str = "UTC"

    @field_validator("lead_time_hours")
    @classmethod
    def validate_lead_time(cls, value: int) -> int:
        return _check_range("lead_time_hours", value, LEAD_TIME_HOURS_RANGE)

    @field_validator("max_days_in_advance")
    @classmethod
    def validate_max_days(cls, value: int) -> int:
        return _check_range("max_days_in_advance", value, MAX_DAYS_IN_ADVANCE_RANGE)

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_slot_interval(cls, value: int) -> int:
        """Slot step must be in range and a multiple of five minutes."""
        _check_range("slot_interval_minutes", value, SLOT_INTERVAL_MINUTES_RANGE)
        if value % SLOT_INTERVAL_MULTIPLE_OF:
            raise ValueError(
                f"slot_interval_minutes must be a multiple of {SLOT_INTERVAL_MULTIPLE_OF}, got {value}"
            )
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _check_timezone(value)


class TenantPolicy(ReservationDefaults):
    """Read-only booking policy of a single tenant."""
    tenant_id: int

    model_config = {"frozen": True}

    @classmethod
    def from_overrides(
        cls,
        tenant_id: int,
        defaults: Optional[ReservationDefaults] = None,
        **overrides: Any,
    ) -> "TenantPolicy":
        """
        Build a tenant policy, falling back to the defaults for every value
        that is missing or None.
        """
        values = (defaults or ReservationDefaults()).model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(tenant_id=tenant_id, **values)


class AppConfig(BaseModel):
    """Application configuration."""
    reservation: ReservationDefaults = Field(default_factory=ReservationDefaults)
    data_file: Optional[Path] = None

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
                f"Please create a bookable.yaml file."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative data files are resolved against the config file location
        if config.data_file is not None and not config.data_file.is_absolute():
            config = config.model_copy(
                update={"data_file": config_path.parent / config.data_file}
            )

        return config


DEFAULT_CONFIG_NAME = "bookable.yaml"


def get_default_config_path() -> Path:
    """
    Return the config file the CLI reads when --config is not given.

    A bookable.yaml in the working directory takes precedence over one next to
    the installed package. The returned path may not exist.
    """
    candidates = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path(__file__).resolve().parent.parent / DEFAULT_CONFIG_NAME,
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return candidates[-1]
