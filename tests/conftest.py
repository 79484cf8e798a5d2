from unittest.mock import Mock

import pytest

from idle_notifier.api.services.plugin import IdleNotifierPlugin
from idle_notifier.config import NotifierConfig
from idle_notifier.model.models import ActorRef, InteractionEvent, TargetKind, Tick
from idle_notifier.ui.notifications import NotificationService

# 入力が十分に止まっているとみなせる値
QUIET_POINTER_MS = 60_000
QUIET_KEYBOARD_TICKS = 100


@pytest.fixture
def config():
    """テスト用の設定（通知先はすべて未設定）"""
    return NotifierConfig(combat_grace_ticks=0)


@pytest.fixture
def full_config():
    """Webhook / SMS がすべて設定済み"""
    return NotifierConfig(
        webhook_url="https://discord.example/api/webhooks/1/abc",
        sms_account_sid="AC123",
        sms_auth_token="secret",
        sms_from_number="+15550001111",
        sms_to_number="+15550002222",
    )


@pytest.fixture
def goblin():
    return ActorRef(id=42, name="Goblin")


@pytest.fixture
def fishing_spot():
    return ActorRef(id=7, name="Fishing spot")


@pytest.fixture
def make_tick():
    """入力が静かなティックを作るヘルパー"""

    def _make(timestamp_ms: int, target: ActorRef | None = None, **overrides) -> Tick:
        values = {
            "timestamp_ms": timestamp_ms,
            "local_actor_present": True,
            "current_target": target,
            "pointer_idle_ms": QUIET_POINTER_MS,
            "keyboard_idle_ticks": QUIET_KEYBOARD_TICKS,
        }
        values.update(overrides)
        return Tick(**values)

    return _make


@pytest.fixture
def attack(goblin):
    """Attack 可能な NPC への戦闘開始イベント"""

    def _make(timestamp_ms: int) -> InteractionEvent:
        return InteractionEvent(
            source_is_local_actor=True,
            target=goblin,
            target_kind=TargetKind.NPC,
            target_actionable=True,
            timestamp_ms=timestamp_ms,
            combat=True,
        )

    return _make


@pytest.fixture
def target_lost():
    def _make(timestamp_ms: int) -> InteractionEvent:
        return InteractionEvent(
            source_is_local_actor=True,
            target=None,
            target_kind=TargetKind.NONE,
            target_actionable=False,
            timestamp_ms=timestamp_ms,
        )

    return _make


@pytest.fixture
def mock_sms():
    """SMS送信のモック"""
    mock = Mock()
    mock.send = Mock(return_value=True)
    return mock


@pytest.fixture
def plugin(config, mock_sms):
    return IdleNotifierPlugin(config, notifications=NotificationService(), sms=mock_sms)
