"""FastAPI app through which the game client feeds events to the idle notifier."""

from collections import deque
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from idle_notifier.api.services.plugin import IdleNotifierPlugin, create_plugin
from idle_notifier.model.models import ActorRef, SessionState, TargetKind, Tick
from idle_notifier.watchers.targets import build_interaction_event

# FastAPIアプリケーションのインスタンスを作成
app = FastAPI(
    title="Idle Notifier",
    description="Derives idle notifications from game client events",
)

# グローバルな状態管理
STATE: dict[str, Any] = {
    "plugin": None,
    "logs": deque(maxlen=100),  # ログを保存 (最大100件)
}

# --- ロギング ---


def log_message(message: str) -> None:
    """ログキューに追加する."""
    STATE["logs"].append(message)


# --- Pydanticモデル定義 ---


class SessionTransition(BaseModel):
    """セッション状態遷移リクエスト."""

    state: SessionState
    timestamp_ms: int

    @field_validator("timestamp_ms")
    @classmethod
    def timestamp_must_not_be_negative(cls, v: int) -> int:
        """タイムスタンプは0以上."""
        if v < 0:
            msg = "timestamp_ms must not be negative"
            raise ValueError(msg)
        return v


class Interaction(BaseModel):
    """インタラクション変更イベント."""

    source_is_local_actor: bool
    timestamp_ms: int
    target_id: int | None = None
    target_name: str | None = None
    target_kind: TargetKind = TargetKind.NONE
    target_actions: list[str | None] = []


class TickEvent(BaseModel):
    """ティックとローカル入力のスナップショット."""

    timestamp_ms: int
    pointer_idle_ms: int
    keyboard_idle_ticks: int
    local_actor_present: bool = True
    current_target_id: int | None = None
    current_target_name: str | None = None

    @field_validator("pointer_idle_ms", "keyboard_idle_ticks")
    @classmethod
    def must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            msg = "idle durations must not be negative"
            raise ValueError(msg)
        return v

    def to_tick(self) -> Tick:
        target = (
            None
            if self.current_target_id is None
            else ActorRef(self.current_target_id, self.current_target_name)
        )
        return Tick(
            timestamp_ms=self.timestamp_ms,
            local_actor_present=self.local_actor_present,
            current_target=target,
            pointer_idle_ms=self.pointer_idle_ms,
            keyboard_idle_ticks=self.keyboard_idle_ticks,
        )


# --- アプリケーションのライフサイクルイベント ---


# Deprecated on_event usage is temporarily retained for simplicity.
@app.on_event("startup")  # pyright: ignore[reportDeprecated]
async def startup_event() -> None:
    """アプリケーション起動時にプラグインを初期化."""
    if STATE["plugin"] is None:
        STATE["plugin"] = create_plugin()
    STATE["plugin"].start_up()
    log_message("Idle Notifier started")


@app.on_event("shutdown")  # pyright: ignore[reportDeprecated]
async def shutdown_event() -> None:
    plugin: IdleNotifierPlugin | None = STATE["plugin"]
    if plugin:
        plugin.shut_down()


def _get_plugin() -> IdleNotifierPlugin:
    plugin: IdleNotifierPlugin | None = STATE["plugin"]
    if not plugin:
        raise HTTPException(status_code=503, detail="Plugin not initialized")
    return plugin


# --- APIエンドポイント定義 ---


@app.post("/session")
async def session_transition(req: SessionTransition) -> dict[str, Any]:
    """セッション状態の遷移を取り込む."""
    plugin = _get_plugin()
    reset = plugin.on_session_transition(req.state, req.timestamp_ms)
    log_message(f"Session -> {req.state.value} reset={reset}")
    return {"ok": True, "reset": reset}


@app.post("/interactions")
async def interaction_changed(req: Interaction) -> dict[str, Any]:
    """インタラクション変更を取り込む."""
    plugin = _get_plugin()
    event = build_interaction_event(
        source_is_local_actor=req.source_is_local_actor,
        timestamp_ms=req.timestamp_ms,
        target_id=req.target_id,
        target_name=req.target_name,
        target_kind=req.target_kind,
        target_actions=req.target_actions,
    )
    plugin.on_interaction_changed(event)
    return {"ok": True, "actionable": event.target_actionable, "combat": event.combat}


@app.post("/ticks")
async def tick(req: TickEvent) -> dict[str, Any]:
    """ティックを評価し、アイドルイベントが発火したかを返す."""
    plugin = _get_plugin()
    fired = plugin.on_tick(req.to_tick())
    if fired:
        log_message(f"Idle event fired at {req.timestamp_ms}")
    return {"ok": True, "idle": fired}


@app.get("/status")
async def get_current_status() -> dict[str, Any]:
    """現在の検出状態を取得する."""
    plugin = _get_plugin()
    return {**plugin.status(), "logs": list(STATE["logs"])}
