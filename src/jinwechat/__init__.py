from ._auth import AccessToken, AccessTokenInterface, RefreshableAccessToken
from ._config import Config, HttpConfig
from ._jinwechat import JinWeChat
from ._services import (
    BaseClient,
    HttpMiddleware,
    LogMiddleware,
    MessageFormatter,
    TokenMiddleware,
)
from .models import (
    Collection,
    ConfigurationError,
    JinWeChatError,
    Response,
    ResponseType,
)

__all__ = [
    "JinWeChat",
    "Config",
    "HttpConfig",
    "AccessToken",
    "AccessTokenInterface",
    "RefreshableAccessToken",
    "BaseClient",
    "HttpMiddleware",
    "LogMiddleware",
    "MessageFormatter",
    "TokenMiddleware",
    "Collection",
    "ConfigurationError",
    "JinWeChatError",
    "Response",
    "ResponseType",
]
