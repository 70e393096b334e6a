from .exceptions import ConfigurationError, JinWeChatError
from .response import (
    Collection,
    Response,
    ResponseType,
    cast_response_to_type,
    resolve_response_type,
)

__all__ = [
    "ConfigurationError",
    "JinWeChatError",
    "Collection",
    "Response",
    "ResponseType",
    "cast_response_to_type",
    "resolve_response_type",
]
