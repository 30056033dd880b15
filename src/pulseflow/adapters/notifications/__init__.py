"""Alert delivery adapters."""

from pulseflow.adapters.notifications.base import BaseAlertProvider, map_delivery_error
from pulseflow.adapters.notifications.email_notifier import (
    EmailAlertProvider,
    SmtpEmailTransport,
)
from pulseflow.adapters.notifications.webhook_notifier import (
    WebhookAlertProvider,
    build_webhook_payload,
)

__all__ = [
    "BaseAlertProvider",
    "EmailAlertProvider",
    "SmtpEmailTransport",
    "WebhookAlertProvider",
    "build_webhook_payload",
    "map_delivery_error",
]
