"""Exceptions raised by the delivery layer.

Neither is fatal: notifiers catch them, log, and carry on.
"""


class ConfigurationMissingError(RuntimeError):
    """A required credential or URL is blank."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not configured")
        self.name = name


class DeliveryError(RuntimeError):
    """An external sink (webhook, SMS API) rejected or failed the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
