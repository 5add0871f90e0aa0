"""Soft configuration checks that warn instead of failing."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    delivery = config_dict.get("delivery", {})
    if isinstance(delivery, dict):
        sender_lists = {"senders": delivery.get("senders", [])}
        kind_senders = delivery.get("kind_senders", {})
        if isinstance(kind_senders, dict):
            for kind, senders in kind_senders.items():
                sender_lists[f"kind_senders.{kind}"] = senders

        # A repeated sender only repeats the same rejection
        for label, senders in sender_lists.items():
            if not isinstance(senders, list):
                continue
            emails = [
                s.get("email", "").strip().lower()
                for s in senders
                if isinstance(s, dict) and isinstance(s.get("email"), str)
            ]
            duplicates = sorted({e for e in emails if emails.count(e) > 1})
            if duplicates:
                warning_messages.append(
                    f"Duplicate sender(s) in delivery.{label}: {', '.join(duplicates)}"
                )

    retry_queue = config_dict.get("retry_queue", {})
    if isinstance(retry_queue, dict):
        drain_interval = retry_queue.get("drain_interval")
        if isinstance(drain_interval, str):
            try:
                if parse_duration(drain_interval) < 60:
                    warning_messages.append(
                        f"Short drain_interval ({drain_interval}) may exceed provider rate limits"
                    )
            except DurationParseError:
                pass  # reported by model validation

        max_attempts = retry_queue.get("max_attempts")
        if isinstance(max_attempts, int) and max_attempts == 1:
            warning_messages.append(
                "retry_queue.max_attempts is 1: queued emails fail after a single retry"
            )

        batch_size = retry_queue.get("batch_size")
        if isinstance(batch_size, int) and batch_size > 500:
            warning_messages.append(
                f"Large retry_queue.batch_size ({batch_size}) may hold the drainer for a long time"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
