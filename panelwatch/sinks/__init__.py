"""Downstream consumers of emitted panelist events."""

from panelwatch.sinks.log import log_event
from panelwatch.sinks.webhook import WebhookForwarder

__all__ = [
    "WebhookForwarder",
    "log_event",
]
