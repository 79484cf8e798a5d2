"""Interaction idle detection.

The detector is a pair of pure handlers over :class:`IdleState`:

* ``on_interaction_changed`` tracks the target the local player engages with.
* ``on_tick`` decides, once per tick, whether the player has been without a
  target for longer than the idle threshold.

States: *disengaged* (no active target), *engaged* (target present) and
*decaying* (target lost, waiting for the threshold and the combat grace
countdown). An idle event moves decaying -> disengaged, so it fires at most
once until a new actionable interaction starts.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from idle_notifier.config import NotifierConfig
from idle_notifier.model.models import IdleState, InteractionEvent, TargetKind, Tick

if TYPE_CHECKING:
    from idle_notifier.model.models import ActorRef

_DEFAULT_CONFIG = NotifierConfig()


@dataclass(frozen=True)
class TickResult:
    state: IdleState
    idle_fired: bool = False


def reset() -> IdleState:
    """Zero value of the detector state."""
    return IdleState()


def on_interaction_changed(
    state: IdleState,
    event: InteractionEvent,
    config: NotifierConfig | None = None,
) -> IdleState:
    """インタラクション変更を反映した新しい状態を返す."""
    config = config or _DEFAULT_CONFIG
    if not event.source_is_local_actor:
        return state

    if event.target is not None:
        # 何かを対象にしている間はアイドル判定を止める
        state = replace(state, active_target=None)
    else:
        state = replace(state, active_since=event.timestamp_ms)

    if event.target_kind is not TargetKind.NPC or not event.target_actionable:
        return state

    # The grace countdown is carried over; only ticks decay it.
    countdown = config.combat_grace_ticks if event.combat else state.combat_countdown
    return IdleState(
        active_target=event.target,
        active_since=event.timestamp_ms,
        combat_countdown=countdown,
        last_interaction_was_combat=event.combat,
    )


def _input_is_recent(tick: Tick, config: NotifierConfig) -> bool:
    return (
        tick.pointer_idle_ms < config.pointer_recency_ms
        or tick.keyboard_idle_ticks < config.min_keyboard_idle_ticks
    )


def on_tick(
    state: IdleState,
    tick: Tick,
    *,
    logged_in: bool,
    config: NotifierConfig | None = None,
) -> TickResult:
    """Evaluate one tick.

    Args:
        state: 現在の検出状態
        tick: ティックとローカル入力のスナップショット
        logged_in: セッションが LOGGED_IN かどうか
        config: 閾値などの設定

    Returns:
        TickResult: 新しい状態とアイドルイベントが発火したかどうか

    """
    config = config or _DEFAULT_CONFIG
    state = replace(state, combat_countdown=max(state.combat_countdown - 1, 0))

    if not logged_in or not tick.local_actor_present or _input_is_recent(tick, config):
        return TickResult(reset())

    tracked: ActorRef | None = state.active_target
    if tracked is None:
        return TickResult(state)

    current = tick.current_target
    if current is not None:
        # 何かを対象にしている限り減衰は始まらない
        refreshed = replace(state, active_since=tick.timestamp_ms)
        if current == tracked and state.last_interaction_was_combat:
            refreshed = replace(refreshed, combat_countdown=config.combat_grace_ticks)
        return TickResult(refreshed)

    if (
        state.active_since is not None
        and tick.timestamp_ms - state.active_since >= config.idle_threshold_ms
        and state.combat_countdown == 0
    ):
        return TickResult(
            replace(state, active_target=None, active_since=None),
            idle_fired=True,
        )

    return TickResult(state)
