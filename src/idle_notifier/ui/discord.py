"""Forward notifications to a Discord webhook."""

import json
from concurrent.futures import Future, ThreadPoolExecutor

import requests

from idle_notifier.config import NotifierConfig
from idle_notifier.errors import ConfigurationMissingError, DeliveryError
from idle_notifier.watchers.logger import logger

HTTP_OK_MIN = 200
HTTP_OK_MAX = 300


def build_webhook_body(message: str) -> dict[str, str]:
    return {"content": message}


class DiscordWebhookNotifier:
    """Send each notification to the configured Discord webhook.

    Requests run on a single background worker so the tick that produced the
    notification is never blocked. Failures are logged and dropped (no retry).
    """

    def __init__(
        self,
        config: NotifierConfig,
        timeout: float = 10.0,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.config = config
        self.timeout = timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="discord-webhook"
        )

    def __call__(self, message: str) -> Future[None] | None:
        return self.send(message)

    def send(self, message: str) -> Future[None] | None:
        """Queue ``message`` for delivery. Returns ``None`` when not configured."""
        try:
            self.config.require("webhook_url")
        except ConfigurationMissingError:
            logger.warning("Missing Discord webhook. Cannot send message.")
            return None
        return self._executor.submit(self._deliver, message)

    def post(self, message: str) -> None:
        """Blocking POST of the webhook body. Raises :class:`DeliveryError`."""
        payload = json.dumps(build_webhook_body(message))
        try:
            response = requests.post(
                self.config.webhook_url.strip(),
                files={"payload_json": (None, payload, "application/json")},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            msg = f"Discord webhook request failed: {e}"
            raise DeliveryError(msg) from e

        status_code = int(getattr(response, "status_code", 0))
        response.close()
        if not HTTP_OK_MIN <= status_code < HTTP_OK_MAX:
            msg = f"Discord webhook returned HTTP {status_code}"
            raise DeliveryError(msg, status_code=status_code)

    def _deliver(self, message: str) -> None:
        try:
            self.post(message)
        except DeliveryError:
            logger.exception("Error submitting message to Discord webhook.")
            return
        logger.info("Successfully sent message to Discord.")

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
