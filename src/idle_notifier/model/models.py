__all__ = [
    "ActorRef",
    "IdleState",
    "InteractionEvent",
    "NotificationRecord",
    "SessionState",
    "SessionTrackerState",
    "TargetKind",
    "Tick",
]


from dataclasses import dataclass
from enum import Enum
from typing import TypedDict


class SessionState(str, Enum):
    """ゲームクライアントのセッション状態."""

    LOGIN_SCREEN = "login_screen"
    LOGGING_IN = "logging_in"
    HOPPING = "hopping"
    CONNECTION_LOST = "connection_lost"
    LOGGED_IN = "logged_in"


class TargetKind(str, Enum):
    """Kind of the actor the local player is interacting with."""

    NONE = "none"
    NPC = "npc"
    OTHER = "other"


@dataclass(frozen=True)
class ActorRef:
    """Reference to an in-game actor. Two refs are the same actor iff equal."""

    id: int
    name: str | None = None


@dataclass(frozen=True)
class InteractionEvent:
    """インタラクション変更イベント.

    ``target_actionable`` / ``combat`` are resolved by the caller (see
    :func:`idle_notifier.watchers.targets.classify_target`) so the detector
    never inspects NPC menus itself.
    """

    source_is_local_actor: bool
    target: ActorRef | None
    target_kind: TargetKind
    target_actionable: bool
    timestamp_ms: int
    combat: bool = False


@dataclass(frozen=True)
class Tick:
    """Periodic heartbeat carrying the local input snapshot."""

    timestamp_ms: int
    pointer_idle_ms: int  # 最後のマウスクリックからの経過時間
    keyboard_idle_ticks: int
    local_actor_present: bool = True
    current_target: ActorRef | None = None


@dataclass(frozen=True)
class IdleState:
    active_target: ActorRef | None = None
    active_since: int | None = None
    combat_countdown: int = 0
    last_interaction_was_combat: bool = False


@dataclass(frozen=True)
class SessionTrackerState:
    current: SessionState | None = None
    ready_for_fresh_session: bool = False
    long_session_deadline_ms: int | None = None


class NotificationRecord(TypedDict):
    """通知履歴の1件分."""

    title: str
    message: str
    level: str
    timestamp: float
    delivered: bool
