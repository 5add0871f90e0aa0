"""Factory function for instantiating the configured delivery transport."""

import logging
from typing import Optional

from intake.config.environment import EnvironmentConfig
from intake.config.exceptions import ConfigurationError
from intake.config.models import DeliveryConfig

from .coordinator import DeliveryTransport
from .sendgrid_client import SendGridTransport
from .smtp_client import SMTPTransport

logger = logging.getLogger(__name__)


def build_transport(
    env_config: EnvironmentConfig,
    delivery_config: Optional[DeliveryConfig] = None,
) -> Optional[DeliveryTransport]:
    """Create the transport selected by MAIL_TRANSPORT.

    Returns:
        SendGridTransport, SMTPTransport, or None when delivery is disabled
        (notifications are then queued without a send attempt)

    Raises:
        ConfigurationError: If the selected transport lacks its credentials

    Example:
        >>> env = load_environment_config()
        >>> transport = build_transport(env, app_config.delivery)
    """
    delivery_config = delivery_config or DeliveryConfig()
    kind = env_config.resolved_transport()

    if kind == "sendgrid":
        if not env_config.sendgrid_api_key:
            raise ConfigurationError(
                "SendGrid transport selected without an API key",
                suggestions=["Set SENDGRID_API_KEY or choose MAIL_TRANSPORT=smtp"],
            )
        logger.debug("Creating SendGrid transport")
        return SendGridTransport(env_config.sendgrid_api_key)

    if kind == "smtp":
        if not env_config.smtp_host:
            raise ConfigurationError(
                "SMTP transport selected without a host",
                suggestions=["Set SMTP_HOST or choose MAIL_TRANSPORT=sendgrid"],
            )
        logger.debug(f"Creating SMTP transport for {env_config.smtp_host}:{env_config.smtp_port}")
        return SMTPTransport(
            host=env_config.smtp_host,
            port=env_config.smtp_port,
            user=env_config.smtp_user,
            password=env_config.smtp_pass,
            use_tls=delivery_config.use_tls,
        )

    logger.warning("No mail transport configured; notifications will be queued only")
    return None
