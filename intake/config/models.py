"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SenderConfig(BaseModel):
    """One sender identity the mail transport may send as."""

    email: EmailStr = Field(..., description="From address (must be verified with the provider)")
    name: str = Field("KR Property Investments", min_length=1, description="From display name")

    @field_validator("name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


def _default_senders() -> List[SenderConfig]:
    return [
        SenderConfig(email="info@kr-properties.co.uk"),
        SenderConfig(email="noreply@kr-properties.co.uk"),
        SenderConfig(email="hello@kr-properties.co.uk"),
    ]


def _default_kind_senders() -> Dict[str, List[SenderConfig]]:
    return {"confirmation": [SenderConfig(email="deals@krpropertyinvestments.com")]}


class DeliveryConfig(BaseModel):
    """Email delivery settings."""

    senders: List[SenderConfig] = Field(
        default_factory=_default_senders,
        min_length=1,
        description="Sender identities tried in order when no per-kind list exists",
    )
    kind_senders: Dict[str, List[SenderConfig]] = Field(
        default_factory=_default_kind_senders,
        description="Per notification kind sender lists (report, confirmation...)",
    )
    use_tls: bool = Field(True, description="Use TLS/STARTTLS for SMTP connections")

    @field_validator("kind_senders")
    @classmethod
    def reject_empty_lists(cls, v: Dict[str, List[SenderConfig]]) -> Dict[str, List[SenderConfig]]:
        """An explicit per-kind list must name at least one sender."""
        for kind, senders in v.items():
            if not senders:
                raise ValueError(f"Sender list for '{kind}' cannot be empty")
        return v

    def get_senders(self, kind: Optional[str] = None) -> List[SenderConfig]:
        """Return the ordered sender list for a notification kind."""
        if kind and kind in self.kind_senders:
            return list(self.kind_senders[kind])
        return list(self.senders)


class RetryQueueConfig(BaseModel):
    """Settings of the retry queue drainer."""

    max_attempts: int = Field(
        5, ge=1, le=100, description="Re-delivery attempts before an entry is marked failed"
    )
    drain_interval: str = Field("15m", description="How often the drainer runs")
    batch_size: int = Field(50, ge=1, le=1000, description="Entries processed per drain run")

    # Computed field
    drain_interval_seconds: Optional[int] = None

    @field_validator("drain_interval")
    @classmethod
    def validate_drain_interval(cls, v: str) -> str:
        """Validate and parse drain interval."""
        try:
            seconds = parse_duration(v)
            validate_duration_range(seconds, min_seconds=30, max_seconds=86400, label="Drain interval")
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def compute_interval_seconds(self):
        """Compute the drain interval in seconds."""
        self.drain_interval_seconds = parse_duration(self.drain_interval)
        return self


class CalculatorConfig(BaseModel):
    """Inflation calculator settings."""

    inflation_rate: float = Field(
        2.5, gt=-100, le=100, description="Annual inflation rate in percent"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the record intake service.

    Every section has defaults, so an empty file is a valid configuration.
    """

    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig, description="Email delivery")
    retry_queue: RetryQueueConfig = Field(
        default_factory=RetryQueueConfig, description="Retry queue drainer"
    )
    calculator: CalculatorConfig = Field(
        default_factory=CalculatorConfig, description="Inflation calculator"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
