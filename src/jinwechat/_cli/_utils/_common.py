import json
import os
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List

import click

from ..._utils.constants import ENV_ACCESS_TOKEN, ENV_BASE_URL
from ...models.response import Collection


def get_env_vars() -> List[str]:
    base_url = os.environ.get(ENV_BASE_URL)
    token = os.environ.get(ENV_ACCESS_TOKEN)

    if not all([base_url, token]):
        click.echo(
            "❌ Missing required environment variables. Please check your .env file contains:",
            err=True,
        )
        click.echo(f"{ENV_BASE_URL}, {ENV_ACCESS_TOKEN}", err=True)
        click.get_current_context().exit(1)

    return [base_url, token]  # type: ignore


def parse_key_values(pairs: Iterable[str], option: str) -> Dict[str, str]:
    """Turn repeated ``key=value`` option values into a dict, keeping order."""
    result: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint=option)
        key, value = pair.split("=", 1)
        result[key] = value
    return result


def serialize_object(obj: Any) -> Any:
    """Recursively convert shaped responses into JSON-serializable values."""
    if hasattr(obj, "model_dump"):
        return serialize_object(obj.model_dump(by_alias=True))
    elif isinstance(obj, Collection):
        return serialize_object(obj.to_array())
    elif isinstance(obj, SimpleNamespace):
        return serialize_object(vars(obj))
    elif isinstance(obj, dict):
        return {k: serialize_object(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [serialize_object(item) for item in obj]
    return obj


def format_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(serialize_object(result), indent=2, ensure_ascii=False)
