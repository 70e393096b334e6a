from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ._utils.constants import DEFAULT_RETRIES, DEFAULT_RETRY_DELAY_MS


class HttpConfig(BaseModel):
    retries: int = DEFAULT_RETRIES
    retry_delay: int = DEFAULT_RETRY_DELAY_MS  # milliseconds
    log_template: Optional[str] = None
    timeout: float = 30.0
    middlewares: List[str] = Field(default_factory=list)


class Config(BaseModel):
    """Settings shared by every client built from the same SDK instance."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    base_url: str
    # a ResponseType value or a pydantic model class; resolved per request
    response_type: Any = "array"
    http: HttpConfig = Field(default_factory=HttpConfig)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``"http.retries"``.

        Returns ``default`` when any segment is missing or resolves to None.
        """
        value: Any = self
        for segment in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, segment, None)
            elif isinstance(value, dict):
                value = value.get(segment)
            else:
                value = None

            if value is None:
                return default

        return value
