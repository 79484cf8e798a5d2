"""Classify interaction targets into actionable / combat flags."""

from collections.abc import Iterable, Sequence

from idle_notifier.model.models import ActorRef, InteractionEvent, TargetKind

COMBAT_ACTION = "Attack"
PASSIVE_ACTIVITY_NAMES: tuple[str, ...] = ("Fishing spot",)


def classify_target(
    kind: TargetKind,
    name: str | None,
    actions: Iterable[str | None] = (),
    passive_names: Sequence[str] = PASSIVE_ACTIVITY_NAMES,
) -> tuple[bool, bool]:
    """Return ``(actionable, combat)`` for a target.

    NPC のメニューに "Attack" があれば戦闘、名前が採集ポイントに一致すれば
    放置系の作業とみなす。それ以外（プレイヤーや未知の種別）は対象外。
    """
    if kind is not TargetKind.NPC:
        return False, False
    if COMBAT_ACTION in list(actions):
        return True, True
    if name is not None and any(pattern in name for pattern in passive_names):
        return True, False
    return False, False


def build_interaction_event(
    *,
    source_is_local_actor: bool,
    timestamp_ms: int,
    target_id: int | None = None,
    target_name: str | None = None,
    target_kind: TargetKind = TargetKind.NONE,
    target_actions: Iterable[str | None] = (),
) -> InteractionEvent:
    """Build an :class:`InteractionEvent` from a raw target description."""
    target = None if target_id is None else ActorRef(target_id, target_name)
    kind = TargetKind.NONE if target is None else target_kind
    actionable, combat = classify_target(kind, target_name, target_actions)
    return InteractionEvent(
        source_is_local_actor=source_is_local_actor,
        target=target,
        target_kind=kind,
        target_actionable=actionable,
        timestamp_ms=timestamp_ms,
        combat=combat,
    )
