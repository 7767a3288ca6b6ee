"""PumpAlert exception hierarchy.

This module defines the base exception class and specialized exceptions
for the failure classes the alerting pipeline distinguishes.
"""


class PumpAlertError(Exception):
    """Base exception for all PumpAlert errors.

    All custom exceptions in PumpAlert should inherit from this class
    to enable consistent error handling and logging.
    """

    pass


class ConfigurationError(PumpAlertError):
    """Raised when configuration is invalid or missing.

    This is the only failure class that stops the process. It is raised
    at startup, never from inside a polling round.

    Example:
        raise ConfigurationError("Missing required env var: MORALIS_API_KEYS")
    """

    pass


class ExternalServiceError(PumpAlertError):
    """Raised when an external service call fails.

    Use this for API errors from Moralis, DexScreener, etc.

    Attributes:
        service: Name of the external service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise ExternalServiceError(service="moralis", message="Rate limited", status_code=429)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class NotificationError(PumpAlertError):
    """Raised when an alert could not be delivered to its channel.

    Attributes:
        channel: Name of the channel (tier) the alert was meant for.
    """

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        super().__init__(f"{channel}: {message}")
