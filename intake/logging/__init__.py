"""Structured logging helpers shared by every intake component."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name onto every record.

    Fields passed through ``extra`` at the call site win over the adapter's
    own fields.
    """

    def process(self, msg, kwargs):
        """Merge the adapter's fields with the call's ``extra``."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Return a logger, optionally bound to a component label.

    Args:
        name: Logger name (normally ``__name__``)
        component: Component label added to every record (``ingest``,
            ``delivery``, ``retry_queue``...)

    Returns:
        Plain logger, or ComponentLoggerAdapter when a component is given

    Example:
        >>> logger = get_logger(__name__, component="ingest")
        >>> logger.info("Record created", extra={"event": "ingest.created"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
