from os import environ as env
from typing import Any, Optional

from dotenv import load_dotenv

from ._auth import AccessToken, AccessTokenInterface
from ._config import Config, HttpConfig
from ._services import BaseClient
from ._utils import setup_logging
from ._utils.constants import ENV_ACCESS_TOKEN, ENV_BASE_URL, ENV_RESPONSE_TYPE

load_dotenv()


class JinWeChat:
    """
    Entry point of the SDK, wiring configuration, the access token and the client.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        access_token: Optional[AccessTokenInterface] = None,
        response_type: Optional[Any] = None,
        http: Optional[HttpConfig] = None,
        debug: bool = False,
    ) -> None:
        """
        Initialize the SDK.

        Args:
            base_url (Optional[str]): Base URL of the platform API. Falls back to
                the `JINWECHAT_URL` environment variable.
            token (Optional[str]): A fixed access token. Falls back to
                `JINWECHAT_TOKEN`. Ignored when `access_token` is given.
            access_token (Optional[AccessTokenInterface]): A token holder that
                knows how to refresh itself, e.g. a `RefreshableAccessToken`.
            response_type (Optional[Any]): Shape of returned responses. Falls back
                to `JINWECHAT_RESPONSE_TYPE`, then to "array".
            http (Optional[HttpConfig]): Retry, timeout, logging and middleware
                settings.
            debug (bool): Enable debug logging if set to True. Defaults to False.
        """
        self._config = Config(
            # base_url may still be None here; pydantic rejects it
            base_url=base_url or env.get(ENV_BASE_URL),  # type: ignore
            response_type=response_type or env.get(ENV_RESPONSE_TYPE) or "array",
            http=http or HttpConfig(),
        )

        if access_token is None:
            access_token = AccessToken(token or env.get(ENV_ACCESS_TOKEN) or "")
        self._access_token = access_token

        setup_logging(debug)
        self._client: Optional[BaseClient] = None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def access_token(self) -> AccessTokenInterface:
        return self._access_token

    @property
    def client(self) -> BaseClient:
        """
        Client for direct requests against the platform API. Built once and
        shared, so middlewares pushed on it stay installed.
        """
        if self._client is None:
            self._client = BaseClient(self._config, self._access_token)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
