from autoglass.notifications.dispatcher import Channel, Notifier
from autoglass.notifications.templates import Template

__all__ = ["Channel", "Notifier", "Template"]
