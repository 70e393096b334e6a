import threading
from logging import getLogger
from typing import Callable, Optional, Protocol, runtime_checkable

from httpx import Request

from ._utils.constants import TOKEN_QUERY_KEY
from .models.exceptions import JinWeChatError

logger = getLogger("jinwechat")


@runtime_checkable
class AccessTokenInterface(Protocol):
    """Anything that owns the current access token and can renew it."""

    def get_token(self) -> str: ...

    def refresh(self) -> None: ...

    def apply_to_request(self, request: Request) -> Request: ...


def apply_token(request: Request, token: str) -> Request:
    """Set the ``token`` query parameter of ``request`` in place."""
    request.url = request.url.copy_set_param(TOKEN_QUERY_KEY, token)
    return request


class AccessToken:
    """A fixed access token, e.g. one read from ``JINWECHAT_TOKEN``.

    There is nothing to renew it from, so ``refresh`` leaves it untouched and
    the retried request goes out with the same value.
    """

    def __init__(self, token: str) -> None:
        self._token = token

    def get_token(self) -> str:
        return self._token

    def refresh(self) -> None:
        logger.debug("Static access token cannot be refreshed; keeping current value.")

    def apply_to_request(self, request: Request) -> Request:
        return apply_token(request, self.get_token())


class RefreshableAccessToken:
    """Access token backed by a fetcher that obtains a new one on demand.

    Args:
        fetcher: Called with no arguments; must return a fresh token string.
            Whatever it raises propagates to the caller of ``refresh``.
        token: Optional initial value. When omitted the first ``get_token``
            call fetches one.

    Refreshes are serialized, so concurrent callers that hit an expired token
    at the same time share the lock instead of racing each other.
    """

    def __init__(
        self, fetcher: Callable[[], str], token: Optional[str] = None
    ) -> None:
        self._fetcher = fetcher
        self._token = token
        self._lock = threading.Lock()

    def get_token(self) -> str:
        if not self._token:
            self.refresh()
        return self._token  # type: ignore[return-value]

    def refresh(self) -> None:
        with self._lock:
            token = self._fetcher()
            if not token:
                raise JinWeChatError("Token fetcher returned an empty access token.")
            self._token = token
        logger.debug("Access token refreshed.")

    def apply_to_request(self, request: Request) -> Request:
        return apply_token(request, self.get_token())
