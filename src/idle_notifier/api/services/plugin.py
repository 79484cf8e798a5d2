"""Caller-owned event loop wiring the session tracker and idle detector."""

from __future__ import annotations

from collections import deque
from typing import Any

from idle_notifier.config import NotifierConfig, load_config
from idle_notifier.model.models import (
    IdleState,
    InteractionEvent,
    SessionState,
    SessionTrackerState,
    Tick,
)
from idle_notifier.ui.discord import DiscordWebhookNotifier
from idle_notifier.ui.notifications import (
    NotificationService,
    notify_idle,
    notify_long_session,
)
from idle_notifier.ui.sms import SmsService, TextMessageNotifier
from idle_notifier.watchers import idle, session
from idle_notifier.watchers.logger import logger

Event = SessionState | InteractionEvent | Tick


class IdleNotifierPlugin:
    """Owns both state values and processes events one at a time.

    Handlers run to completion before the next event is taken; callers must
    deliver events in occurrence order.
    """

    def __init__(
        self,
        config: NotifierConfig,
        notifications: NotificationService | None = None,
        sms: TextMessageNotifier | None = None,
        webhook: DiscordWebhookNotifier | None = None,
    ) -> None:
        self.config = config
        self.notifications = notifications or NotificationService()
        self.sms = sms
        self.webhook = webhook
        self.session_state = SessionTrackerState()
        self.idle_state = IdleState()
        self.idle_events = 0
        self._queue: deque[tuple[Event, int]] = deque()

    # --- lifecycle -----------------------------------------------------

    def start_up(self) -> None:
        logger.info("Starting Idle Notifier.")

    def shut_down(self) -> None:
        if self.webhook is not None:
            # 送信待ちの webhook を流し切ってから止める
            self.webhook.shutdown(wait=True)
        logger.info("Idle Notifier stopped!")

    # --- handlers ------------------------------------------------------

    def on_session_transition(self, new_state: SessionState, now_ms: int) -> bool:
        """Returns ``True`` when the transition reset the idle detector."""
        update = session.on_session_transition(
            self.session_state, new_state, now_ms, self.config
        )
        self.session_state = update.state
        if update.reset:
            self.idle_state = idle.reset()
        logger.info(f"Session state -> {new_state.value} (reset={update.reset})")
        return update.reset

    def on_interaction_changed(self, event: InteractionEvent) -> None:
        self.idle_state = idle.on_interaction_changed(
            self.idle_state, event, self.config
        )

    def on_tick(self, tick: Tick) -> bool:
        """Evaluate a tick. Returns ``True`` when an idle event fired."""
        logged_in = session.is_logged_in(self.session_state)
        if logged_in:
            self.session_state, warn = session.check_long_session(
                self.session_state, tick.timestamp_ms
            )
            if warn:
                notify_long_session(self.notifications)

        result = idle.on_tick(
            self.idle_state, tick, logged_in=logged_in, config=self.config
        )
        self.idle_state = result.state
        if result.idle_fired:
            self.idle_events += 1
            notify_idle(self.notifications)
            if self.sms is not None:
                self.sms.send()
        return result.idle_fired

    # --- queue ---------------------------------------------------------

    def dispatch(self, event: Event, now_ms: int | None = None) -> bool:
        """Route any input type to its handler.

        ``now_ms`` is only needed for session transitions, which carry no
        timestamp of their own.
        """
        if isinstance(event, SessionState):
            if now_ms is None:
                msg = "now_ms is required for session transitions"
                raise ValueError(msg)
            return self.on_session_transition(event, now_ms)
        if isinstance(event, InteractionEvent):
            self.on_interaction_changed(event)
            return False
        if isinstance(event, Tick):
            return self.on_tick(event)
        msg = f"Unsupported event type: {type(event).__name__}"
        raise TypeError(msg)

    def enqueue(self, event: Event, now_ms: int = 0) -> None:
        self._queue.append((event, now_ms))

    def drain(self) -> int:
        """Process queued events in order. Returns the number of idle events fired."""
        fired = 0
        while self._queue:
            event, now_ms = self._queue.popleft()
            handled = self.dispatch(event, now_ms)
            if isinstance(event, Tick) and handled:
                fired += 1
        return fired

    def status(self) -> dict[str, Any]:
        target = self.idle_state.active_target
        current = self.session_state.current
        return {
            "session_state": current.value if current else None,
            "ready_for_fresh_session": self.session_state.ready_for_fresh_session,
            "long_session_deadline_ms": self.session_state.long_session_deadline_ms,
            "active_target": (
                None if target is None else {"id": target.id, "name": target.name}
            ),
            "active_since": self.idle_state.active_since,
            "combat_countdown": self.idle_state.combat_countdown,
            "idle_events": self.idle_events,
        }


def create_plugin(config: NotifierConfig | None = None) -> IdleNotifierPlugin:
    """プラグインのファクトリ関数.

    Discord webhook は全通知を転送し、SMS はアイドル時のみ送る。
    """
    config = config or load_config()
    notifications = NotificationService()
    webhook = DiscordWebhookNotifier(config)
    notifications.subscribe(webhook)
    sms = TextMessageNotifier(SmsService(config))
    return IdleNotifierPlugin(
        config, notifications=notifications, sms=sms, webhook=webhook
    )
