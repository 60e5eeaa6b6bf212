"""
User-facing notifications for transfer outcomes.
"""
import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ADVISORY = "advisory"
    ERROR = "error"


class Notifier(Protocol):
    """Receives one message per user-visible event"""

    def notify(self, level: NotificationLevel, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes messages to a logger."""

    _LEVELS = {
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.ADVISORY: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.log.log(self._LEVELS.get(level, logging.INFO), message)
