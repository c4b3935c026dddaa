"""Notification sinks for debugport."""

from debugport.notify.base import LoggingNotifier, Notifier

__all__ = ["LoggingNotifier", "Notifier"]
