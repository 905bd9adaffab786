"""
Configuration management using Pydantic models loaded from YAML.

A config file describes one coach profile: timezone, weekly rules,
date overrides and offerings.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidTimezoneError
from .domain.models import AvailabilityOverride, CoachSchedule, Offering, WeeklyAvailabilityRule
from .domain.timezones import MINUTES_PER_DAY, format_minutes, get_timezone, parse_date, parse_wall_clock


def _check_wall_clock(value) -> Optional[str]:
    if value is None:
        return value
    # YAML 1.1 reads unquoted 17:30 as the base-60 integer 1050
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MINUTES_PER_DAY:
        value = format_minutes(value)
    if parse_wall_clock(value) is None:
        raise ValueError(f"Time must use HH:mm format, got {value!r}")
    return value


class DefaultsConfig(BaseModel):
    """Default settings for slot queries."""
    duration_minutes: int = 60
    buffer_minutes: int = 0
    granularity_minutes: int = 30

    @field_validator("duration_minutes", "granularity_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        """Buffers can be zero but never negative."""
        if value < 0:
            raise ValueError("buffer_minutes must not be negative")
        return value

    def default_offering(self) -> Offering:
        """Offering used when the coach has none configured."""
        return Offering(
            offering_id="default",
            duration_minutes=self.duration_minutes,
            buffer_minutes=self.buffer_minutes,
        )


class WeeklyRuleConfig(BaseModel):
    """Weekly availability rule (Sunday=0)."""
    day_of_week: int
    start_time: str = "09:00"
    end_time: str = "17:00"
    is_available: bool = True

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: int) -> int:
        """Validate day is between 0 (Sunday) and 6 (Saturday)."""
        if not 0 <= value <= 6:
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_times(cls, value) -> Optional[str]:
        """Validate HH:mm wall-clock strings."""
        return _check_wall_clock(value)

    def to_domain(self) -> WeeklyAvailabilityRule:
        return WeeklyAvailabilityRule(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            is_available=self.is_available,
        )


class OverrideConfig(BaseModel):
    """Date-specific override."""
    date: str
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, value) -> str:
        """Normalize to YYYY-MM-DD (YAML may already yield a date)."""
        try:
            return parse_date(value).isoformat()
        except ValueError as exc:
            raise ValueError(f"date must use YYYY-MM-DD format, got {value!r}") from exc

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_times(cls, value) -> Optional[str]:
        """Validate HH:mm wall-clock strings."""
        return _check_wall_clock(value)

    @model_validator(mode="after")
    def validate_window(self) -> "OverrideConfig":
        """An available override must bring its own window."""
        if self.is_available and (self.start_time is None or self.end_time is None):
            raise ValueError(f"Override for {self.date} is available but has no start_time/end_time")
        return self

    def to_domain(self) -> AvailabilityOverride:
        return AvailabilityOverride(
            date=self.date,
            is_available=self.is_available,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class OfferingConfig(BaseModel):
    """Named custom offering."""
    id: str
    name: str = ""
    duration_minutes: int
    buffer_minutes: int = 0
    is_active: bool = True

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    def to_domain(self) -> Offering:
        return Offering(
            offering_id=self.id,
            duration_minutes=self.duration_minutes,
            buffer_minutes=self.buffer_minutes,
            is_active=self.is_active,
            name=self.name,
        )


class AppConfig(BaseModel):
    """Coach profile configuration."""
    coach_id: str = ""
    timezone: str
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    weekly_rules: List[WeeklyRuleConfig] = Field(default_factory=list)
    overrides: List[OverrideConfig] = Field(default_factory=list)
    offerings: List[OfferingConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject identifiers unknown to the runtime."""
        try:
            get_timezone(value)
        except InvalidTimezoneError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("offerings")
    @classmethod
    def validate_offerings(cls, value: List[OfferingConfig]) -> List[OfferingConfig]:
        """Ensure offering ids are unique."""
        seen: set[str] = set()
        for offering in value:
            if offering.id in seen:
                raise ValueError(f"Duplicate offering id detected: {offering.id}")
            seen.add(offering.id)
        return value

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
                f"Please create a coach.yaml file. See coach.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def to_schedule(self) -> CoachSchedule:
        """Build the engine's schedule input from this profile."""
        return CoachSchedule(
            timezone=self.timezone,
            weekly_rules=tuple(rule.to_domain() for rule in self.weekly_rules),
            overrides=tuple(override.to_domain() for override in self.overrides),
            coach_id=self.coach_id,
        )

    def domain_offerings(self) -> List[Offering]:
        return [offering.to_domain() for offering in self.offerings]

    def find_offering(self, offering_id: str) -> Offering | None:
        """Find an offering by id, active or not."""
        for offering in self.offerings:
            if offering.id == offering_id:
                return offering.to_domain()
        return None


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for coach.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "coach.yaml"

    if not config_path.exists():
        # Try in the project root (parent of coachslots/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "coach.yaml"

    return config_path
