import json
from enum import Enum
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

import httpx
from pydantic import BaseModel

from .exceptions import ConfigurationError


class ResponseType(str, Enum):
    """Shapes a decoded response body can be returned in."""

    RAW = "raw"
    COLLECTION = "collection"
    ARRAY = "array"
    OBJECT = "object"
    STRING = "string"


class Collection(Mapping[str, Any]):
    """Read-only, key-ordered view over a decoded JSON object.

    Nested values are reachable with dotted keys::

        >>> Collection({"user": {"name": "jin"}}).get("user.name")
        'jin'
    """

    def __init__(self, items: Optional[Mapping[str, Any]] = None) -> None:
        self._items: Dict[str, Any] = dict(items or {})

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Collection({self._items!r})"

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._items:
            return self._items[key]

        value: Any = self._items
        for segment in key.split("."):
            if isinstance(value, Mapping) and segment in value:
                value = value[segment]
            elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
                value = value[int(segment)]
            else:
                return default
        return value

    def has(self, key: str) -> bool:
        marker = object()
        return self.get(key, marker) is not marker

    def only(self, *keys: str) -> "Collection":
        return Collection({k: v for k, v in self._items.items() if k in keys})

    def except_(self, *keys: str) -> "Collection":
        return Collection({k: v for k, v in self._items.items() if k not in keys})

    def first(self) -> Any:
        return next(iter(self._items.values()), None)

    def last(self) -> Any:
        return next(reversed(self._items.values()), None) if self._items else None

    def to_array(self) -> Dict[str, Any]:
        return dict(self._items)

    def to_json(self) -> str:
        return json.dumps(self._items, ensure_ascii=False)


class Response:
    """Wrapper around an ``httpx.Response`` with body decoding helpers."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @classmethod
    def build_from_httpx_response(cls, response: httpx.Response) -> "Response":
        return cls(response)

    @property
    def http_response(self) -> httpx.Response:
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def get_body_contents(self) -> str:
        return self._response.text

    def to_array(self) -> Union[Dict[str, Any], List[Any], Any]:
        """Decode the body as JSON.

        An empty or non-JSON body decodes to an empty dict.
        """
        content = self.get_body_contents()
        if not content.strip():
            return {}
        try:
            return json.loads(content)
        except ValueError:
            return {}

    def to_object(self) -> Any:
        return json.loads(
            self.to_json(), object_hook=lambda item: SimpleNamespace(**item)
        )

    def to_collection(self) -> Collection:
        data = self.to_array()
        if isinstance(data, list):
            data = {str(index): value for index, value in enumerate(data)}
        elif not isinstance(data, Mapping):
            data = {}
        return Collection(data)

    def to_json(self) -> str:
        return json.dumps(self.to_array(), ensure_ascii=False)

    def __str__(self) -> str:
        return self.get_body_contents()


_CASTERS: Dict[ResponseType, Callable[[Response], Any]] = {
    ResponseType.RAW: lambda wrapped: wrapped.http_response,
    ResponseType.COLLECTION: Response.to_collection,
    ResponseType.ARRAY: Response.to_array,
    ResponseType.OBJECT: Response.to_object,
    ResponseType.STRING: Response.get_body_contents,
}


def resolve_response_type(value: Any) -> Union[ResponseType, type]:
    """Turn a configured ``response_type`` into a ResponseType or model class.

    Raises:
        ConfigurationError: If the value is missing or not a known shape.
    """
    if value is None or value == "":
        raise ConfigurationError(
            'Config key "response_type" is required.', key="response_type"
        )

    if isinstance(value, type):
        if issubclass(value, BaseModel):
            return value
        raise ConfigurationError(
            f'Config key "response_type" classname must be a subclass of '
            f"pydantic.BaseModel, got {value.__name__}.",
            key="response_type",
        )

    try:
        return ResponseType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ResponseType)
        raise ConfigurationError(
            f'Config key "response_type" must be one of: {allowed}; got {value!r}.',
            key="response_type",
        ) from None


def cast_response_to_type(response: httpx.Response, response_type: Any) -> Any:
    """Convert ``response`` into the shape selected by ``response_type``."""
    resolved = resolve_response_type(response_type)
    wrapped = Response.build_from_httpx_response(response)

    if isinstance(resolved, ResponseType):
        return _CASTERS[resolved](wrapped)

    return resolved.model_validate(wrapped.to_array())
