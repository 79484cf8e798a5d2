"""SMS delivery through the Twilio Messages REST API."""

import requests

from idle_notifier.config import NotifierConfig
from idle_notifier.errors import ConfigurationMissingError, DeliveryError
from idle_notifier.watchers.logger import logger

TWILIO_API_BASE = "https://api.twilio.com"
IDLE_SMS_BODY = "You are idle!"

HTTP_OK_MIN = 200
HTTP_OK_MAX = 300

_REQUIRED = ("sms_account_sid", "sms_auth_token", "sms_from_number", "sms_to_number")


class SmsService:
    """Twilio互換のSMS送信クライアント（requestsで直接REST APIを叩く）."""

    def __init__(
        self,
        config: NotifierConfig,
        base_url: str = TWILIO_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self.config = config
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        sid = self.config.sms_account_sid.strip()
        return f"{self.base_url}/2010-04-01/Accounts/{sid}/Messages.json"

    def is_configured(self) -> bool:
        try:
            self.config.require(*_REQUIRED)
        except ConfigurationMissingError:
            return False
        return True

    def send(self, body: str) -> str:
        """Send ``body`` to the configured number and return the message SID.

        Raises:
            ConfigurationMissingError: 認証情報や番号が未設定
            DeliveryError: API 呼び出しに失敗

        """
        self.config.require(*_REQUIRED)
        try:
            response = requests.post(
                self.messages_url,
                data={
                    "To": self.config.sms_to_number.strip(),
                    "From": self.config.sms_from_number.strip(),
                    "Body": body,
                },
                auth=(
                    self.config.sms_account_sid.strip(),
                    self.config.sms_auth_token.strip(),
                ),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            msg = f"SMS request failed: {e}"
            raise DeliveryError(msg) from e

        status_code = int(getattr(response, "status_code", 0))
        if not HTTP_OK_MIN <= status_code < HTTP_OK_MAX:
            msg = f"SMS API returned HTTP {status_code}"
            raise DeliveryError(msg, status_code=status_code)

        try:
            return str(response.json().get("sid", ""))
        except ValueError:
            return ""


class TextMessageNotifier:
    """Send a fixed SMS body whenever it is called.

    Missing configuration is a warning, API failure an error; neither
    propagates to the caller.
    """

    def __init__(self, service: SmsService, body: str = IDLE_SMS_BODY) -> None:
        self.service = service
        self.body = body

    def send(self) -> bool:
        try:
            logger.info("Attempting to send message...")
            self.service.send(self.body)
        except ConfigurationMissingError as e:
            logger.warning(f"Missing Parameters: {e.name}")
            return False
        except DeliveryError:
            logger.exception("Failed to send SMS.")
            return False
        logger.info("Message sent.")
        return True
