import json
from contextlib import contextmanager
from typing import Any, Callable, Generator, Tuple

import click
import httpx

from .._jinwechat import JinWeChat
from .._services import BaseClient
from ..models.exceptions import JinWeChatError
from ..models.response import ResponseType
from ._utils._common import format_result, get_env_vars, parse_key_values
from ._utils._console import ConsoleLogger

console = ConsoleLogger()

RESPONSE_TYPES = [t.value for t in ResponseType if t is not ResponseType.RAW]


def request_options(function: Callable[..., Any]) -> Callable[..., Any]:
    function = click.option(
        "--debug", is_flag=True, default=False, help="Log every request to stderr"
    )(function)
    function = click.option(
        "--response-type",
        "-t",
        type=click.Choice(RESPONSE_TYPES),
        default=ResponseType.ARRAY.value,
        show_default=True,
        help="Shape of the printed response",
    )(function)
    return function


@contextmanager
def api_client(response_type: str, debug: bool) -> Generator[BaseClient, None, None]:
    [base_url, token] = get_env_vars()

    sdk = JinWeChat(
        base_url=base_url, token=token, response_type=response_type, debug=debug
    )
    try:
        yield sdk.client
    except (httpx.HTTPError, JinWeChatError, OSError) as e:
        console.error(f"Request failed: {e}")
        raise click.Abort() from e
    finally:
        sdk.close()


@click.command()
@click.argument("path")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
@request_options
def get(path: str, query: Tuple[str, ...], response_type: str, debug: bool) -> None:
    """Send a GET request carrying the access token."""
    params = parse_key_values(query, "--query")
    with api_client(response_type, debug) as client:
        result = client.http_get(path, params)
    console.message(format_result(result))


@click.command()
@click.argument("path")
@click.option("--data", "-d", multiple=True, help="Form field as key=value")
@request_options
def post(path: str, data: Tuple[str, ...], response_type: str, debug: bool) -> None:
    """Send a form encoded POST request."""
    form = parse_key_values(data, "--data")
    with api_client(response_type, debug) as client:
        result = client.http_post(path, form)
    console.message(format_result(result))


@click.command("post-json")
@click.argument("path")
@click.argument("body")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
@request_options
def post_json(
    path: str, body: str, query: Tuple[str, ...], response_type: str, debug: bool
) -> None:
    """Send a POST request with BODY as its JSON payload."""
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="BODY") from e

    params = parse_key_values(query, "--query")
    with api_client(response_type, debug) as client:
        result = client.http_post_json(path, payload, params)
    console.message(format_result(result))


@click.command()
@click.argument("path")
@click.option("--file", "-f", "files", multiple=True, help="File part as name=path")
@click.option("--data", "-d", multiple=True, help="Form field as key=value")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
@request_options
def upload(
    path: str,
    files: Tuple[str, ...],
    data: Tuple[str, ...],
    query: Tuple[str, ...],
    response_type: str,
    debug: bool,
) -> None:
    """Upload files as a multipart POST request."""
    file_parts = parse_key_values(files, "--file")
    form = parse_key_values(data, "--data")
    params = parse_key_values(query, "--query")

    with api_client(response_type, debug) as client:
        result = client.http_upload(path, file_parts, form, params)
    console.message(format_result(result))
