from typing import Optional


class JinWeChatError(Exception):
    """Base class for every error raised by the SDK itself.

    Transport failures coming from httpx are not wrapped in this class; they
    reach the caller unchanged.
    """

    def __init__(self, message: str = "JinWeChat SDK error") -> None:
        self.message = message
        super().__init__(self.message)


class ConfigurationError(JinWeChatError):
    """Raised when a required configuration value is absent or malformed."""

    def __init__(
        self,
        message: str = "Invalid configuration.",
        key: Optional[str] = None,
    ) -> None:
        self.key = key
        super().__init__(message)
