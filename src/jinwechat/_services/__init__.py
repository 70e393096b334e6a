from ._base_client import BaseClient, is_token_expired
from ._middlewares import (
    HttpMiddleware,
    LogMiddleware,
    MessageFormatter,
    TokenMiddleware,
)

__all__ = [
    "BaseClient",
    "is_token_expired",
    "HttpMiddleware",
    "LogMiddleware",
    "MessageFormatter",
    "TokenMiddleware",
]
