from ._logs import setup_logging
from ._request_spec import RequestSpec
from ._ssl_context import get_httpx_client_kwargs

__all__ = [
    "setup_logging",
    "RequestSpec",
    "get_httpx_client_kwargs",
]
