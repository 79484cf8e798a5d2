"""Environment-driven configuration (optionally loaded from ``.env.local``)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from idle_notifier.errors import ConfigurationMissingError
from idle_notifier.watchers.logger import logger

REPO_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_IDLE_THRESHOLD_MS = 5000
DEFAULT_LONG_SESSION_MINUTES = 340
DEFAULT_POINTER_RECENCY_MS = 1000
DEFAULT_MIN_KEYBOARD_IDLE_TICKS = 10
DEFAULT_COMBAT_GRACE_TICKS = 8


@dataclass(frozen=True)
class NotifierConfig:
    """Flat set of options. Blank strings mean "not configured"."""

    webhook_url: str = ""
    sms_account_sid: str = ""
    sms_auth_token: str = ""
    sms_from_number: str = ""
    sms_to_number: str = ""

    idle_threshold_ms: int = DEFAULT_IDLE_THRESHOLD_MS
    long_session_minutes: int = DEFAULT_LONG_SESSION_MINUTES
    pointer_recency_ms: int = DEFAULT_POINTER_RECENCY_MS
    min_keyboard_idle_ticks: int = DEFAULT_MIN_KEYBOARD_IDLE_TICKS
    combat_grace_ticks: int = DEFAULT_COMBAT_GRACE_TICKS

    @property
    def long_session_ms(self) -> int:
        return self.long_session_minutes * 60 * 1000

    def require(self, *names: str) -> None:
        """Raise :class:`ConfigurationMissingError` for the first blank option."""
        for name in names:
            value = getattr(self, name)
            if not value or not value.strip():
                raise ConfigurationMissingError(name)


def load_local_env() -> None:
    load_dotenv(dotenv_path=REPO_ROOT / ".env.local", override=True)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if value < 0:
        logger.warning(f"{name}={value} is negative, using {default}")
        return default
    return value


def load_config(*, load_env_file: bool = True) -> NotifierConfig:
    """設定のファクトリ関数.

    環境変数で設定（すべて任意）:
    - DISCORD_WEBHOOK_URL
    - TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_FROM_NUMBER / TWILIO_TO_NUMBER
    - IDLE_THRESHOLD_MS, LONG_SESSION_MINUTES, POINTER_RECENCY_MS,
      MIN_KEYBOARD_IDLE_TICKS, COMBAT_GRACE_TICKS
    """
    if load_env_file:
        load_local_env()
    return NotifierConfig(
        webhook_url=os.getenv("DISCORD_WEBHOOK_URL", "").strip(),
        sms_account_sid=os.getenv("TWILIO_ACCOUNT_SID", "").strip(),
        sms_auth_token=os.getenv("TWILIO_AUTH_TOKEN", "").strip(),
        sms_from_number=os.getenv("TWILIO_FROM_NUMBER", "").strip(),
        sms_to_number=os.getenv("TWILIO_TO_NUMBER", "").strip(),
        idle_threshold_ms=_int_env("IDLE_THRESHOLD_MS", DEFAULT_IDLE_THRESHOLD_MS),
        long_session_minutes=_int_env(
            "LONG_SESSION_MINUTES", DEFAULT_LONG_SESSION_MINUTES
        ),
        pointer_recency_ms=_int_env("POINTER_RECENCY_MS", DEFAULT_POINTER_RECENCY_MS),
        min_keyboard_idle_ticks=_int_env(
            "MIN_KEYBOARD_IDLE_TICKS", DEFAULT_MIN_KEYBOARD_IDLE_TICKS
        ),
        combat_grace_ticks=_int_env("COMBAT_GRACE_TICKS", DEFAULT_COMBAT_GRACE_TICKS),
    )
