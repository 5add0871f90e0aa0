"""Template rendering for email notifications using Jinja2.

This module wraps Jinja2 template rendering with caching and strict
undefined checking to catch template errors early.
"""

import logging
from typing import Any, Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


def format_money(value: Any) -> str:
    """Render an amount as pounds with thousands separators (``£1,234.50``)."""
    return f"£{float(value):,.2f}"


def format_percent(value: Any) -> str:
    """Render a percentage with two decimals (``25.00%``)."""
    return f"{float(value):.2f}%"


class TemplateRenderer:
    """Renders email bodies using Jinja2.

    Templates live in the intake.notifications.email_templates package and
    are cached by the Jinja2 environment after the first load.
    """

    def __init__(self, template_dir: str = "email_templates", env: Optional[Environment] = None):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within intake.notifications package
            env: Prebuilt environment (tests)
        """
        self.env = env or Environment(
            loader=PackageLoader("intake.notifications", template_dir),
            autoescape=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self.env.filters.setdefault("money", format_money)
        self.env.filters.setdefault("percent", format_percent)

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render one template with the provided context.

        Raises:
            NotificationTemplateError: If the template is missing or rendering fails
        """
        try:
            return self.env.get_template(template_name).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {template_name}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
        except (TypeError, ValueError) as e:
            error_msg = f"Invalid value while rendering {template_name}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
