from typing import Generator
from unittest.mock import Mock

import pytest

from jinwechat._auth import RefreshableAccessToken
from jinwechat._config import Config, HttpConfig
from jinwechat._services import BaseClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    monkeypatch.delenv("JINWECHAT_URL", raising=False)
    monkeypatch.delenv("JINWECHAT_TOKEN", raising=False)
    monkeypatch.delenv("JINWECHAT_RESPONSE_TYPE", raising=False)


@pytest.fixture
def base_url() -> str:
    return "https://api.example.com"


@pytest.fixture
def token() -> str:
    return "T1"


@pytest.fixture
def refreshed_token() -> str:
    return "T2"


@pytest.fixture
def config(base_url: str) -> Config:
    return Config(base_url=base_url, response_type="array", http=HttpConfig())


@pytest.fixture
def token_fetcher(refreshed_token: str) -> Mock:
    return Mock(return_value=refreshed_token)


@pytest.fixture
def access_token(token: str, token_fetcher: Mock) -> RefreshableAccessToken:
    return RefreshableAccessToken(token_fetcher, token=token)


@pytest.fixture
def client(
    config: Config, access_token: RefreshableAccessToken
) -> Generator[BaseClient, None, None]:
    with BaseClient(config, access_token) as client:
        yield client
