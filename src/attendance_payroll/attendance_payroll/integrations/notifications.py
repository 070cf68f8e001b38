from __future__ import annotations

import logging
from typing import Protocol

from ..core.enums import NotificationChannel

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget delivery owned by the notification service."""

    def notify(self, user_id: int, title: str, message: str, channel: NotificationChannel) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier: records the message; real delivery is wired outside this engine."""

    def notify(self, user_id: int, title: str, message: str, channel: NotificationChannel) -> None:
        logger.info("notify user=%s channel=%s title=%r message=%r", user_id, channel.value, title, message)


def safe_notify(
    notifier: Notifier,
    user_id: int,
    title: str,
    message: str,
    channel: NotificationChannel = NotificationChannel.IN_APP,
) -> None:
    """Notification failures never reach the caller of the primary operation."""
    try:
        notifier.notify(user_id, title, message, channel)
    except Exception:
        logger.exception("notification to user=%s failed (title=%r)", user_id, title)
