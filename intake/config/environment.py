"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

MAIL_TRANSPORTS = ("auto", "sendgrid", "smtp", "none")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        mail_transport: str = "auto",
        sendgrid_api_key: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.database_url = database_url or "sqlite:///./data/intake.db"
        self.mail_transport = mail_transport
        self.sendgrid_api_key = sendgrid_api_key
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.log_level = log_level
        self.environment = environment or "development"

    def resolved_transport(self) -> str:
        """Return the transport to use: ``sendgrid``, ``smtp`` or ``none``.

        ``auto`` picks SendGrid when an API key is set, then SMTP when a
        host is set.
        """
        if self.mail_transport != "auto":
            return self.mail_transport
        if self.sendgrid_api_key:
            return "sendgrid"
        if self.smtp_host:
            return "smtp"
        return "none"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/intake.db)
    - MAIL_TRANSPORT: auto, sendgrid, smtp or none (default: auto)
    - SENDGRID_API_KEY: API key for the SendGrid transport
    - SMTP_HOST / SMTP_PORT: SMTP server (port default: 587)
    - SMTP_USER / SMTP_PASS: SMTP credentials (both or neither)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Deployment label attached to log records

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: Listing every invalid variable
    """
    errors = []

    database_url = os.getenv("DATABASE_URL")
    mail_transport = (os.getenv("MAIL_TRANSPORT") or "auto").strip().lower()
    sendgrid_api_key = os.getenv("SENDGRID_API_KEY")
    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if mail_transport not in MAIL_TRANSPORTS:
        errors.append(
            f"Invalid MAIL_TRANSPORT: '{mail_transport}'. Must be one of: {', '.join(MAIL_TRANSPORTS)}"
        )
    elif mail_transport == "sendgrid" and not sendgrid_api_key:
        errors.append("MAIL_TRANSPORT is 'sendgrid' but SENDGRID_API_KEY is not set")
    elif mail_transport == "smtp" and not smtp_host:
        errors.append("MAIL_TRANSPORT is 'smtp' but SMTP_HOST is not set")

    smtp_port = 587
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(
                    f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535."
                )
        except ValueError:
            errors.append(
                f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer."
            )

    if log_level and log_level.upper() not in LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(LOG_LEVELS)}"
        )

    if smtp_user and not smtp_pass:
        errors.append(
            "SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication."
        )
    elif smtp_pass and not smtp_user:
        errors.append(
            "SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set SENDGRID_API_KEY or SMTP_HOST to enable email delivery",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        database_url=database_url,
        mail_transport=mail_transport,
        sendgrid_api_key=sendgrid_api_key,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
