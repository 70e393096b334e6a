import os
from contextlib import ExitStack
from logging import getLogger
from typing import Any, Mapping

from httpx import Client, Headers, Response
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from .._auth import AccessTokenInterface
from .._config import Config
from .._utils import RequestSpec, get_httpx_client_kwargs
from .._utils.constants import (
    CONFIG_HTTP_LOG_TEMPLATE,
    CONFIG_HTTP_MIDDLEWARES,
    CONFIG_HTTP_RETRIES,
    CONFIG_HTTP_RETRY_DELAY,
    CONFIG_RESPONSE_TYPE,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    HEADER_USER_AGENT,
    TOKEN_EXPIRED_ERROR_CODES,
    TOKEN_QUERY_KEY,
    USER_AGENT,
)
from ..models.exceptions import ConfigurationError
from ..models.response import Response as ApiResponse
from ..models.response import cast_response_to_type, resolve_response_type
from ._middlewares import (
    HttpMiddleware,
    LogMiddleware,
    MessageFormatter,
    TokenMiddleware,
    build_event_hooks,
)

REQUEST_OPTIONS = frozenset(
    {"query", "json", "form_params", "multipart", "headers", "timeout"}
)


def is_token_expired(response: Response) -> bool:
    """Check whether the body reports an invalid or expired access token.

    The platform signals this with an ``errcode`` of 40001 or 42001; the sign
    of the code is ignored.
    """
    try:
        body = response.json()
    except ValueError:
        return False

    if not isinstance(body, dict) or not body.get("errcode"):
        return False

    try:
        errcode = abs(int(body["errcode"]))
    except (TypeError, ValueError):
        return False

    return errcode in TOKEN_EXPIRED_ERROR_CODES


def _return_last_response(retry_state: RetryCallState) -> Any:
    return retry_state.outcome.result()  # type: ignore[union-attr]


class BaseClient:
    """Low-level client for the messaging platform's HTTP API.

    Builds GET, form POST, JSON POST and multipart upload requests relative to
    ``config.base_url`` and returns the response in the shape selected by
    ``config.response_type``.

    When a response carries an expired-token ``errcode`` the client refreshes
    ``access_token`` and re-issues the same request, up to ``http.retries``
    times with ``http.retry_delay`` milliseconds between attempts. Once the
    budget is spent the last response is returned untouched. HTTP status
    errors and transport errors from httpx are never caught or wrapped.

    Args:
        config: SDK configuration.
        access_token: Token holder shared with the rest of the application.
            The client only reads it and calls ``refresh`` on expiry.
        http_client: Optional pre-built ``httpx.Client``. The client does not
            close an injected instance.
    """

    def __init__(
        self,
        config: Config,
        access_token: AccessTokenInterface,
        http_client: Client | None = None,
    ) -> None:
        self._logger = getLogger("jinwechat")
        self._config = config
        self._access_token = access_token
        self._http_client: Client | None = None
        self._owns_http_client = False
        self._client_event_hooks: dict[str, list[Any]] = {}
        self._middlewares: dict[str, HttpMiddleware] = {}
        self._middlewares_registered = False

        if http_client is not None:
            self.set_http_client(http_client)

    def __enter__(self) -> "BaseClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            self._http_client.close()
            self._http_client = None

    def http_get(self, url: str, query: Mapping[str, Any] | None = None) -> Any:
        """Issue a GET request carrying the current access token.

        Args:
            url: Path relative to the base URL.
            query: Query parameters. A ``token`` key is replaced by the token
                holder's current value; all other keys are kept.
        """
        query = {**(query or {}), TOKEN_QUERY_KEY: self._access_token.get_token()}
        return self.request(url, "GET", {"query": query})

    def http_post(self, url: str, data: Mapping[str, Any] | None = None) -> Any:
        """Issue a POST request with ``data`` as a form-encoded body."""
        return self.request(url, "POST", {"form_params": dict(data or {})})

    def http_post_json(
        self,
        url: str,
        data: Any | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> Any:
        """Issue a POST request with a JSON body and a query string."""
        return self.request(
            url,
            "POST",
            {"query": dict(query or {}), "json": data if data is not None else {}},
        )

    def http_upload(
        self,
        url: str,
        files: Mapping[str, str] | None = None,
        form: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> Any:
        """Upload files as a multipart POST.

        Args:
            url: Path relative to the base URL.
            files: Field name to local file path. Files are streamed from disk
                and closed once the call returns.
            form: Field name to literal value, sent after the file parts.
            query: Query parameters.

        Examples:
            >>> client.http_upload(
            ...     "/media/upload",
            ...     files={"media": "/tmp/photo.jpg"},
            ...     form={"caption": "hi"},
            ... )
        """
        with ExitStack() as stack:
            multipart: list[dict[str, Any]] = []
            for name, path in (files or {}).items():
                multipart.append(
                    {"name": name, "contents": stack.enter_context(open(path, "rb"))}
                )
            for name, contents in (form or {}).items():
                multipart.append({"name": name, "contents": contents})

            return self.request(
                url, "POST", {"query": dict(query or {}), "multipart": multipart}
            )

    def request(
        self,
        url: str,
        method: str = "GET",
        options: Mapping[str, Any] | None = None,
        return_raw: bool = False,
    ) -> Any:
        """Send a request and shape its response.

        Args:
            url: Path relative to the base URL, or an absolute URL.
            method: HTTP method.
            options: Any of ``query``, ``json``, ``form_params``,
                ``multipart``, ``headers`` and ``timeout``.
            return_raw: Return the ``httpx.Response`` instead of shaping it.

        Raises:
            ConfigurationError: If ``response_type`` is missing or unknown,
                or a configured middleware name is unknown. Raised before any
                request is sent.
            httpx.HTTPStatusError: For non-2xx responses.
            httpx.TransportError: For connection level failures.
        """
        response_type = None
        if not return_raw:
            response_type = resolve_response_type(
                self._config.get(CONFIG_RESPONSE_TYPE)
            )

        if not self._middlewares_registered:
            self.register_http_middlewares()

        spec = self._build_request_spec(url, method, options or {})
        response = self._send(spec)

        if return_raw:
            return response

        return cast_response_to_type(response, response_type)

    def request_raw(
        self,
        url: str,
        method: str = "GET",
        options: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        """Send a request and wrap the untouched transport response."""
        return ApiResponse.build_from_httpx_response(
            self.request(url, method, options, return_raw=True)
        )

    def get_access_token(self) -> AccessTokenInterface:
        return self._access_token

    def set_access_token(self, access_token: AccessTokenInterface) -> "BaseClient":
        self._access_token = access_token
        return self

    def get_http_client(self) -> Client:
        if self._http_client is None:
            client_kwargs = get_httpx_client_kwargs(self._config.http.timeout)
            self._http_client = Client(
                **client_kwargs,
                base_url=self._config.base_url,
                headers=Headers(self.default_headers),
            )
            self._owns_http_client = True
            self._client_event_hooks = {"request": [], "response": []}
            self._install_event_hooks()

        return self._http_client

    def set_http_client(self, http_client: Client) -> "BaseClient":
        self.close()
        self._http_client = http_client
        self._owns_http_client = False
        self._client_event_hooks = {
            event: list(hooks) for event, hooks in http_client.event_hooks.items()
        }
        self._install_event_hooks()
        return self

    @property
    def middlewares(self) -> dict[str, HttpMiddleware]:
        return dict(self._middlewares)

    def push_middleware(
        self, middleware: HttpMiddleware, name: str | None = None
    ) -> "BaseClient":
        """Append a middleware; pushing under an existing name replaces it."""
        self._middlewares[name or type(middleware).__name__] = middleware
        self._install_event_hooks()
        return self

    def register_http_middlewares(self) -> None:
        """Install the optional stages listed in ``http.middlewares``.

        Nothing is installed unless every listed name is known, so a bad
        entry keeps failing on each request.
        """
        pending: list[tuple[str, HttpMiddleware]] = []

        for name in self._config.get(CONFIG_HTTP_MIDDLEWARES, []):
            if name == "token":
                pending.append(("token", TokenMiddleware(self._access_token)))
            elif name == "log":
                template = self._config.get(
                    CONFIG_HTTP_LOG_TEMPLATE, MessageFormatter.DEBUG
                )
                pending.append(
                    ("log", LogMiddleware(self._logger, MessageFormatter(template)))
                )
            else:
                raise ConfigurationError(
                    f"Unknown HTTP middleware {name!r}; expected 'token' or 'log'.",
                    key=CONFIG_HTTP_MIDDLEWARES,
                )

        for name, middleware in pending:
            self.push_middleware(middleware, name)
        self._middlewares_registered = True

    @property
    def default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            HEADER_USER_AGENT: USER_AGENT,
            **self.custom_headers,
        }

    @property
    def custom_headers(self) -> dict[str, str]:
        return {}

    def _install_event_hooks(self) -> None:
        if self._http_client is None:
            return

        hooks = build_event_hooks(self._middlewares.values())
        self._http_client.event_hooks = {
            "request": [*self._client_event_hooks.get("request", []), *hooks["request"]],
            "response": [
                *self._client_event_hooks.get("response", []),
                *hooks["response"],
            ],
        }

    def _build_request_spec(
        self, url: str, method: str, options: Mapping[str, Any]
    ) -> RequestSpec:
        unknown = set(options) - REQUEST_OPTIONS
        if unknown:
            raise ValueError(f"Unsupported request options: {', '.join(sorted(unknown))}")

        spec = RequestSpec(
            method=method.upper(),
            endpoint=url,
            params=dict(options.get("query") or {}),
            headers=dict(options.get("headers") or {}),
            json=options.get("json"),
            data=options.get("form_params"),
        )
        if "multipart" in options:
            spec.files = self._build_multipart(options["multipart"])
        if options.get("timeout") is not None:
            spec.timeout = options["timeout"]

        return spec

    @staticmethod
    def _build_multipart(
        parts: list[Mapping[str, Any]],
    ) -> list[tuple[str, tuple[str | None, Any]]]:
        files: list[tuple[str, tuple[str | None, Any]]] = []
        for part in parts:
            if "name" not in part or "contents" not in part:
                raise ValueError("Multipart parts need both 'name' and 'contents'.")

            contents = part["contents"]
            filename = part.get("filename")
            if hasattr(contents, "read"):
                if filename is None and isinstance(getattr(contents, "name", None), str):
                    filename = os.path.basename(contents.name)
            elif not isinstance(contents, (str, bytes)):
                contents = str(contents)

            files.append((part["name"], (filename, contents)))

        return files

    def _send(self, spec: RequestSpec) -> Response:
        retries = max(int(self._config.get(CONFIG_HTTP_RETRIES, DEFAULT_RETRIES)), 0)
        delay_ms = abs(self._config.get(CONFIG_HTTP_RETRY_DELAY, DEFAULT_RETRY_DELAY_MS))

        retrying = Retrying(
            retry=retry_if_result(is_token_expired),
            stop=stop_after_attempt(retries + 1),
            wait=wait_fixed(delay_ms / 1000),
            before_sleep=self._refresh_access_token,
            retry_error_callback=_return_last_response,
        )
        response = retrying(self._perform_request, spec)

        response.raise_for_status()

        return response

    def _perform_request(self, spec: RequestSpec) -> Response:
        self._logger.debug(f"Request: {spec.method} {spec.endpoint}")

        return self.get_http_client().request(
            spec.method, spec.endpoint, **spec.to_httpx_kwargs()
        )

    def _refresh_access_token(self, retry_state: RetryCallState) -> None:
        self._access_token.refresh()

        spec: RequestSpec = retry_state.args[0]
        if TOKEN_QUERY_KEY in spec.params:
            spec.params[TOKEN_QUERY_KEY] = self._access_token.get_token()

        self._logger.debug(
            f"Retrying with refreshed access token "
            f"(attempt {retry_state.attempt_number}/"
            f"{self._config.get(CONFIG_HTTP_RETRIES, DEFAULT_RETRIES)})."
        )
