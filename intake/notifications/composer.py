"""Notification composition: kind + data in, rendered Notification out.

Composition is pure. The same kind, data and recipient always produce a
byte-identical subject and body, so nothing here reads the clock or any
other ambient state.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic.alias_generators import to_camel

from intake.logging import get_logger

from .models import Notification, NotificationDataError
from .templates import TemplateRenderer

logger = get_logger(__name__, component="composer")


@dataclass(frozen=True)
class NotificationKind:
    """Template, subject and field contract for one kind of notification."""

    kind: str
    template: str
    subject: str
    email_type: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    numeric: Tuple[str, ...] = ()


NOTIFICATION_KINDS: Dict[str, NotificationKind] = {
    "report": NotificationKind(
        kind="report",
        template="inflation_report.html.j2",
        subject="Your Inflation Impact Report - KR Property Investments",
        email_type="inflation_report",
        required=("today_value", "percentage_increase"),
        optional=("name", "original_value", "loss_in_value", "month", "year", "chart_image"),
        numeric=("today_value", "percentage_increase", "original_value", "loss_in_value"),
    ),
    "confirmation": NotificationKind(
        kind="confirmation",
        template="deal_confirmation.html.j2",
        subject="Welcome to KR Property Investments Deal Sourcing Waitlist!",
        email_type="deal_confirmation",
        required=("name",),
    ),
}

# Alternative input names, tried after the field's own spellings
FIELD_FALLBACKS = {"original_value": ("amount",)}


def kind_for_email_type(email_type: str) -> Optional[str]:
    """Map a queue ``email_type`` label back to its notification kind."""
    for definition in NOTIFICATION_KINDS.values():
        if definition.email_type == email_type:
            return definition.kind
    return None


def _lookup(data: Mapping[str, Any], field: str) -> Any:
    for name in (field, to_camel(field)) + FIELD_FALLBACKS.get(field, ()):
        value = data.get(name)
        if value is not None:
            return value.strip() if isinstance(value, str) else value
    return None


class NotificationComposer:
    """Builds Notification values from a kind and its data."""

    def __init__(self, renderer: Optional[TemplateRenderer] = None):
        self.renderer = renderer or TemplateRenderer()

    def compose(
        self,
        kind: str,
        data: Mapping[str, Any],
        recipient: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> Notification:
        """Render the notification of ``kind`` for ``data``.

        Args:
            kind: Notification kind (``report``, ``confirmation``)
            data: Template data; camelCase or snake_case keys
            recipient: Recipient address; defaults to ``data["email"]``
            recipient_name: Recipient display name; defaults to ``data["name"]``

        Returns:
            Rendered Notification

        Raises:
            NotificationDataError: Unknown kind, missing required field,
                non-numeric amount, or no usable recipient
            NotificationTemplateError: The template itself failed to render
        """
        definition = NOTIFICATION_KINDS.get(kind)
        if definition is None:
            raise NotificationDataError(
                f"Unknown notification kind '{kind}'. "
                f"Must be one of: {', '.join(sorted(NOTIFICATION_KINDS))}"
            )

        address = self._resolve_recipient(recipient if recipient is not None else data.get("email"))
        context = self._build_context(definition, data)

        name = recipient_name if recipient_name is not None else _lookup(data, "name")
        html = self.renderer.render(definition.template, context)

        logger.debug(
            f"Composed {kind} notification for {address}",
            extra={"event": "notification.composed", "kind": kind},
        )

        return Notification(
            recipient=address,
            subject=definition.subject,
            html=html,
            kind=definition.kind,
            email_type=definition.email_type,
            recipient_name=name or None,
        )

    @staticmethod
    def _build_context(definition: NotificationKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        context = {}
        missing = []

        for field in definition.required + definition.optional:
            value = _lookup(data, field)
            if field in definition.required and (value is None or value == ""):
                missing.append(to_camel(field))
                continue
            if value is not None and field in definition.numeric:
                try:
                    value = float(value)
                except (TypeError, ValueError):
                    raise NotificationDataError(
                        f"Field '{to_camel(field)}' must be numeric, got {value!r}"
                    ) from None
            context[field] = value

        if missing:
            raise NotificationDataError(
                f"Missing required field(s) for {definition.kind} notification: {', '.join(missing)}"
            )

        return context

    @staticmethod
    def _resolve_recipient(address: Any) -> str:
        if not address or not isinstance(address, str) or not address.strip():
            raise NotificationDataError("Notification has no recipient address")

        try:
            validated = validate_email(address.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise NotificationDataError(f"Invalid recipient address '{address}': {e}") from e

        return validated.normalized
