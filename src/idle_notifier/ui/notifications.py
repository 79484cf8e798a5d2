import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from idle_notifier.model.models import NotificationRecord
from idle_notifier.watchers.logger import logger

DEFAULT_TITLE = "Idle Notifier"

IDLE_MESSAGE = "You are now out of combat!"
LONG_SESSION_MESSAGE = "You are about to log out from being online for 6 hours!"


class NotificationLevel(Enum):
    """Notification severity levels used by the service."""

    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"


@dataclass
class NotificationConfig:
    """Configuration for :class:`NotificationService`."""

    title: str = DEFAULT_TITLE
    max_history: int = 100


# 購読者は通知メッセージを受け取るだけ。戻り値は見ない
Subscriber = Callable[[str], object]


class NotificationService:
    """Fire-and-forget notification sink with history and subscribers.

    Every notification is recorded and then forwarded to each subscriber
    (Discord webhook, SMS, ...). A failing subscriber is logged and skipped so
    the remaining ones still run and the caller never sees the error.
    """

    def __init__(self, config: NotificationConfig | None = None) -> None:
        self.config = config or NotificationConfig()
        self._history: deque[NotificationRecord] = deque(
            maxlen=max(self.config.max_history, 0)
        )
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        title: str | None = None,
    ) -> bool:
        """Record ``message`` and forward it to every subscriber.

        Returns ``True`` when every subscriber accepted the message.
        """
        delivered = True
        for subscriber in list(self._subscribers):
            try:
                subscriber(message)
            except Exception:
                logger.exception(f"Notification subscriber {subscriber!r} failed")
                delivered = False

        self._history.append(
            {
                "title": title or self.config.title,
                "message": message,
                "level": level.value,
                "timestamp": time.time(),
                "delivered": delivered,
            },
        )
        logger.info(f"Notification fired: {message}")
        return delivered

    # ------------------------------------------------------------------
    # Query helpers
    def get_notification_history(self, limit: int | None = None) -> list[NotificationRecord]:
        """Return a copy of the notification history (newest last)."""
        if limit is None:
            return list(self._history)
        return list(self._history)[-limit:] if limit > 0 else []

    def clear_history(self) -> None:
        self._history.clear()


_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Return the process-wide default service."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = NotificationService()
    return _service


def notify_idle(service: NotificationService | None = None) -> bool:
    """便利関数: 戦闘終了（アイドル）通知."""
    return (service or get_notification_service()).notify(
        IDLE_MESSAGE, NotificationLevel.WARNING
    )


def notify_long_session(service: NotificationService | None = None) -> bool:
    """便利関数: 長時間ログインの警告."""
    return (service or get_notification_service()).notify(
        LONG_SESSION_MESSAGE, NotificationLevel.URGENT
    )
