"""User-visible notification sink.

The lifecycle manager announces every transition (started, stopped,
failed) through a ``Notifier``. The default sink writes them to the log.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Abstract interface for short user-facing messages."""

    @abstractmethod
    def notify(self, message: str) -> None:
        ...


class LoggingNotifier(Notifier):
    """Renders notifications as log records."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def notify(self, message: str) -> None:
        logger.log(self._level, message)
