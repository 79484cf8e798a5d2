"""Session lifecycle tracking.

Turns game-state transitions into a "fresh session" reset signal and keeps the
one-shot long-session warning deadline.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from idle_notifier.config import DEFAULT_LONG_SESSION_MINUTES
from idle_notifier.model.models import SessionState, SessionTrackerState
from idle_notifier.watchers.logger import logger

if TYPE_CHECKING:
    from idle_notifier.config import NotifierConfig

# ログイン直前の遷移。次の LOGGED_IN を新規セッションとして扱う
_ARMING_STATES = frozenset(
    {SessionState.LOGGING_IN, SessionState.HOPPING, SessionState.CONNECTION_LOST}
)


@dataclass(frozen=True)
class SessionUpdate:
    state: SessionTrackerState
    reset: bool = False


def on_session_transition(
    state: SessionTrackerState,
    new_state: SessionState,
    now_ms: int,
    config: NotifierConfig | None = None,
) -> SessionUpdate:
    """Apply a session transition and report whether the idle detector must reset."""
    long_session_minutes = (
        config.long_session_minutes if config else DEFAULT_LONG_SESSION_MINUTES
    )
    moved = replace(state, current=new_state)

    if new_state is SessionState.LOGIN_SCREEN:
        return SessionUpdate(moved, reset=True)

    if new_state in _ARMING_STATES:
        return SessionUpdate(replace(moved, ready_for_fresh_session=True))

    if state.ready_for_fresh_session:
        deadline = now_ms + long_session_minutes * 60 * 1000
        logger.info(f"Fresh session started, long-session warning at {deadline}")
        return SessionUpdate(
            replace(
                moved,
                ready_for_fresh_session=False,
                long_session_deadline_ms=deadline,
            ),
            reset=True,
        )

    # LOGGED_IN のまま（セッション内の揺らぎ）
    return SessionUpdate(moved)


def check_long_session(
    state: SessionTrackerState,
    now_ms: int,
) -> tuple[SessionTrackerState, bool]:
    """Fire once when the long-session deadline has passed, then clear it."""
    deadline = state.long_session_deadline_ms
    if deadline is None or now_ms < deadline:
        return state, False
    return replace(state, long_session_deadline_ms=None), True


def is_logged_in(state: SessionTrackerState) -> bool:
    return state.current is SessionState.LOGGED_IN
