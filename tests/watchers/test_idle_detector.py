import pytest

from idle_notifier.config import NotifierConfig
from idle_notifier.model.models import ActorRef, IdleState, InteractionEvent, TargetKind
from idle_notifier.watchers import idle


def _engaged_then_lost(config, attack, target_lost, lost_at: int) -> IdleState:
    state = idle.on_interaction_changed(idle.reset(), attack(0), config)
    return idle.on_interaction_changed(state, target_lost(lost_at), config)


class TestInteractionChanged:
    """インタラクション変更の取り込み"""

    def test_ignores_other_actors(self, config, goblin):
        event = InteractionEvent(
            source_is_local_actor=False,
            target=goblin,
            target_kind=TargetKind.NPC,
            target_actionable=True,
            timestamp_ms=100,
            combat=True,
        )
        assert idle.on_interaction_changed(idle.reset(), event, config) == IdleState()

    def test_actionable_npc_engages(self, config, attack, goblin):
        state = idle.on_interaction_changed(idle.reset(), attack(250), config)

        assert state.active_target == goblin
        assert state.active_since == 250
        assert state.last_interaction_was_combat is True

    def test_target_lost_starts_decay_window(self, config, attack, target_lost, goblin):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)

        assert state.active_target == goblin
        assert state.active_since == 1000

    def test_non_actionable_target_disengages(self, config, attack):
        # Given: 戦闘中
        state = idle.on_interaction_changed(idle.reset(), attack(0), config)

        # When: 他のプレイヤーを対象にする
        event = InteractionEvent(
            source_is_local_actor=True,
            target=ActorRef(99, "Zezima"),
            target_kind=TargetKind.OTHER,
            target_actionable=False,
            timestamp_ms=500,
        )
        state = idle.on_interaction_changed(state, event, config)

        # Then: 追跡対象は外れるがタイムスタンプは残る
        assert state.active_target is None
        assert state.active_since == 0

    def test_passive_activity_keeps_grace_countdown(self, fishing_spot):
        config = NotifierConfig(combat_grace_ticks=8)
        event = InteractionEvent(
            source_is_local_actor=True,
            target=fishing_spot,
            target_kind=TargetKind.NPC,
            target_actionable=True,
            timestamp_ms=10,
        )
        state = idle.on_interaction_changed(IdleState(combat_countdown=5), event, config)

        assert state.active_target == fishing_spot
        assert state.combat_countdown == 5
        assert state.last_interaction_was_combat is False

    def test_combat_arms_grace_countdown(self, attack):
        config = NotifierConfig(combat_grace_ticks=8)
        state = idle.on_interaction_changed(idle.reset(), attack(0), config)
        assert state.combat_countdown == 8

    def test_non_actionable_npc_only_clears_target(self, config, attack):
        state = idle.on_interaction_changed(idle.reset(), attack(0), config)
        banker = InteractionEvent(
            source_is_local_actor=True,
            target=ActorRef(5, "Banker"),
            target_kind=TargetKind.NPC,
            target_actionable=False,
            timestamp_ms=300,
        )
        state = idle.on_interaction_changed(state, banker, config)
        assert state.active_target is None


class TestTick:
    """ティック毎のアイドル判定"""

    def test_fires_after_threshold(self, config, attack, target_lost, make_tick):
        # Given: T0=1000 で対象を見失う
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)

        # When/Then: 4999ms 後は発火しない
        early = idle.on_tick(state, make_tick(1000 + 4999), logged_in=True, config=config)
        assert early.idle_fired is False

        # When/Then: 5001ms 後に発火し、非追跡状態へ
        late = idle.on_tick(early.state, make_tick(1000 + 5001), logged_in=True, config=config)
        assert late.idle_fired is True
        assert late.state.active_target is None
        assert late.state.active_since is None

    def test_fires_exactly_at_threshold(self, config, attack, target_lost, make_tick):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)
        result = idle.on_tick(state, make_tick(6000), logged_in=True, config=config)
        assert result.idle_fired is True

    @pytest.mark.parametrize("delta", [0, 600, 2400, 4999])
    def test_no_fire_before_threshold(self, config, attack, target_lost, make_tick, delta):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)
        result = idle.on_tick(state, make_tick(1000 + delta), logged_in=True, config=config)
        assert result.idle_fired is False

    def test_fires_only_once_per_episode(self, config, attack, target_lost, make_tick):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=0)

        first = idle.on_tick(state, make_tick(6000), logged_in=True, config=config)
        second = idle.on_tick(first.state, make_tick(6600), logged_in=True, config=config)

        assert first.idle_fired is True
        assert second.idle_fired is False

        # 新しい戦闘で再び発火可能になる
        state = idle.on_interaction_changed(second.state, attack(7000), config)
        state = idle.on_interaction_changed(state, target_lost(7200), config)
        third = idle.on_tick(state, make_tick(12_200), logged_in=True, config=config)
        assert third.idle_fired is True

    def test_reengagement_cancels_decay(self, config, attack, target_lost, make_tick, goblin):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)

        # 閾値前に同じ対象が戻ってくる
        back = idle.on_tick(state, make_tick(3000, target=goblin), logged_in=True, config=config)
        assert back.idle_fired is False
        assert back.state.active_since == 3000

        later = idle.on_tick(back.state, make_tick(6500), logged_in=True, config=config)
        assert later.idle_fired is False

    def test_reengagement_via_interaction_event(self, config, attack, target_lost, make_tick):
        state = _engaged_then_lost(config, attack, target_lost, lost_at=1000)
        state = idle.on_interaction_changed(state, attack(4000), config)

        result = idle.on_tick(state, make_tick(6500), logged_in=True, config=config)
        assert result.idle_fired is False
        assert result.state.active_since == 4000

    def test_any_current_target_refreshes_decay(self, config, attack, target_lost, make_tick):
        # Given: T0=0 で追跡対象を見失う
        state = _engaged_then_lost(config, attack, target_lost, lost_at=0)

        # When: 別の対象 (Cow) と関わっているティック
        cow = idle.on_tick(
            state, make_tick(4000, target=ActorRef(1, "Cow")), logged_in=True, config=config
        )

        # Then: 発火せず、タイムスタンプが更新される
        assert cow.idle_fired is False
        assert cow.state.active_since == 4000

        # And: 閾値内の対象なしティックでは発火しない
        soon = idle.on_tick(cow.state, make_tick(5000), logged_in=True, config=config)
        assert soon.idle_fired is False

        # And: 更新後の時刻から閾値を超えたら発火する
        late = idle.on_tick(soon.state, make_tick(9000), logged_in=True, config=config)
        assert late.idle_fired is True

    def test_other_target_does_not_rearm_grace(self, attack, target_lost, make_tick):
        config = NotifierConfig(combat_grace_ticks=4)
        state = _engaged_then_lost(config, attack, target_lost, lost_at=0)
        result = idle.on_tick(
            state, make_tick(600, target=ActorRef(1, "Cow")), logged_in=True, config=config
        )
        assert result.state.combat_countdown == 3

    def test_disengaged_never_fires(self, config, make_tick):
        result = idle.on_tick(idle.reset(), make_tick(100_000), logged_in=True, config=config)
        assert result.idle_fired is False
        assert result.state == IdleState()

    def test_grace_countdown_delays_fire(self, attack, target_lost, make_tick):
        config = NotifierConfig(combat_grace_ticks=3)
        state = _engaged_then_lost(config, attack, target_lost, lost_at=0)

        fired = []
        for ts in (6000, 6600, 7200):
            result = idle.on_tick(state, make_tick(ts), logged_in=True, config=config)
            state = result.state
            fired.append(result.idle_fired)

        assert fired == [False, False, True]

    def test_engaged_combat_tick_rearms_grace(self, attack, make_tick, goblin):
        config = NotifierConfig(combat_grace_ticks=4)
        state = idle.on_interaction_changed(idle.reset(), attack(0), config)
        for ts in range(600, 6000, 600):
            state = idle.on_tick(
                state, make_tick(ts, target=goblin), logged_in=True, config=config
            ).state
        assert state.combat_countdown == 4

    def test_countdown_never_negative(self, config, make_tick):
        state = IdleState(combat_countdown=2)
        for ts in range(0, 12_000, 600):
            state = idle.on_tick(state, make_tick(ts), logged_in=True, config=config).state
            assert state.combat_countdown >= 0
        assert state.combat_countdown == 0


class TestPresenceOverride:
    """入力や状態による強制リセット"""

    @pytest.mark.parametrize(
        ("logged_in", "overrides"),
        [
            (False, {}),
            (True, {"local_actor_present": False}),
            (True, {"pointer_idle_ms": 500}),
            (True, {"keyboard_idle_ticks": 3}),
        ],
    )
    def test_override_resets_and_suppresses(
        self, config, attack, target_lost, make_tick, logged_in, overrides
    ):
        # Given: 閾値を大きく超えた減衰中の状態
        state = _engaged_then_lost(config, attack, target_lost, lost_at=0)

        # When
        result = idle.on_tick(
            state, make_tick(60_000, **overrides), logged_in=logged_in, config=config
        )

        # Then: 発火せず、状態はゼロ値
        assert result.idle_fired is False
        assert result.state == IdleState()

    def test_recent_input_resets_even_while_engaged(self, config, attack, make_tick, goblin):
        state = idle.on_interaction_changed(idle.reset(), attack(0), config)
        result = idle.on_tick(
            state,
            make_tick(1000, target=goblin, pointer_idle_ms=500, keyboard_idle_ticks=3),
            logged_in=True,
            config=config,
        )
        assert result.idle_fired is False
        assert result.state.active_target is None
        assert result.state.active_since is None


def test_reset_is_idempotent():
    assert idle.reset() == idle.reset() == IdleState()
