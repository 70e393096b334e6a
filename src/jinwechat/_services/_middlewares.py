"""Optional request/response stages plugged into the httpx client.

Each middleware may implement ``on_request`` (called before a request is
sent, may mutate it) and ``on_response`` (called once the response headers
arrive). They run in the order they were pushed and are installed through
httpx ``event_hooks``. The expired-token retry is not one of these stages; it
is always performed by the client itself.
"""

import string
from datetime import datetime, timezone
from logging import Logger
from typing import Any, Callable, Dict, Iterable, List

from httpx import Request, RequestNotRead, Response, ResponseNotRead

from .._auth import AccessTokenInterface


class HttpMiddleware:
    def on_request(self, request: Request) -> None:
        return None

    def on_response(self, response: Response) -> None:
        return None


class TokenMiddleware(HttpMiddleware):
    """Put the current access token on every outgoing request's query."""

    def __init__(self, access_token: AccessTokenInterface) -> None:
        self._access_token = access_token

    def on_request(self, request: Request) -> None:
        self._access_token.apply_to_request(request)


class _SafeFormatter(string.Formatter):
    def get_value(self, key, args, kwargs):
        if isinstance(key, str):
            return kwargs.get(key, "")
        return super().get_value(key, args, kwargs)


class MessageFormatter:
    """Render request/response pairs through a ``str.format`` template.

    Placeholders: ``{method}``, ``{uri}``, ``{target}``, ``{host}``,
    ``{version}``, ``{code}``, ``{phrase}``, ``{req_headers}``,
    ``{res_headers}``, ``{req_body}``, ``{res_body}``, ``{request}``,
    ``{response}``, ``{ts}``. Unknown placeholders render as empty strings.
    """

    CLF = '{host} - - [{ts}] "{method} {target} HTTP/{version}" {code} {res_body_length}'
    DEBUG = ">>>>>>>>\n{request}\n<<<<<<<<\n{response}\n--------"
    SHORT = "[{ts}] \"{method} {target} HTTP/{version}\" {code}"

    def __init__(self, template: str = DEBUG) -> None:
        self.template = template
        self._formatter = _SafeFormatter()

    def format(self, request: Request, response: Response) -> str:
        return self._formatter.format(self.template, **self._fields(request, response))

    @staticmethod
    def _headers(headers: Iterable) -> str:
        return "\n".join(f"{name}: {value}" for name, value in headers)

    @staticmethod
    def _body(message: Any) -> str:
        try:
            content = message.content
        except (RequestNotRead, ResponseNotRead):
            # streamed body that was never read
            return ""
        return content.decode("utf-8", errors="replace")

    def _fields(self, request: Request, response: Response) -> Dict[str, Any]:
        version = response.http_version.replace("HTTP/", "")
        req_headers = self._headers(request.headers.items())
        res_headers = self._headers(response.headers.items())
        req_body = self._body(request)
        res_body = self._body(response)
        target = request.url.raw_path.decode("ascii")

        return {
            "method": request.method,
            "uri": str(request.url),
            "url": str(request.url),
            "target": target,
            "host": request.url.host,
            "version": version,
            "code": response.status_code,
            "phrase": response.reason_phrase,
            "req_headers": req_headers,
            "res_headers": res_headers,
            "req_body": req_body,
            "res_body": res_body,
            "res_body_length": len(res_body),
            "request": f"{request.method} {target} HTTP/{version}\n{req_headers}\n\n{req_body}",
            "response": f"HTTP/{version} {response.status_code} {response.reason_phrase}\n{res_headers}\n\n{res_body}",
            "ts": datetime.now(timezone.utc).isoformat(),
        }


class LogMiddleware(HttpMiddleware):
    """Log every response at DEBUG level through a MessageFormatter."""

    def __init__(self, logger: Logger, formatter: MessageFormatter) -> None:
        self._logger = logger
        self._formatter = formatter

    def on_response(self, response: Response) -> None:
        response.read()
        self._logger.debug(self._formatter.format(response.request, response))


def build_event_hooks(
    middlewares: Iterable[HttpMiddleware],
) -> Dict[str, List[Callable[..., Any]]]:
    """Compile middlewares, in order, into an httpx ``event_hooks`` mapping."""
    hooks: Dict[str, List[Callable[..., Any]]] = {"request": [], "response": []}
    for middleware in middlewares:
        if type(middleware).on_request is not HttpMiddleware.on_request:
            hooks["request"].append(middleware.on_request)
        if type(middleware).on_response is not HttpMiddleware.on_response:
            hooks["response"].append(middleware.on_response)
    return hooks
