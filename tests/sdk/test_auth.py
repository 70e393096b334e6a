import threading
import time
from unittest.mock import Mock

import httpx
import pytest

from jinwechat._auth import AccessToken, AccessTokenInterface, RefreshableAccessToken
from jinwechat._services import TokenMiddleware
from jinwechat.models.exceptions import JinWeChatError


class TestAccessToken:
    def test_satisfies_interface(self):
        assert isinstance(AccessToken("T1"), AccessTokenInterface)
        assert isinstance(RefreshableAccessToken(lambda: "T1"), AccessTokenInterface)

    def test_static_token_refresh_keeps_value(self):
        token = AccessToken("T1")

        token.refresh()

        assert token.get_token() == "T1"

    def test_apply_to_request_replaces_token_param(self):
        request = httpx.Request("GET", "https://api.example.com/menu/get?token=old")

        AccessToken("T1").apply_to_request(request)

        assert request.url.params.get_list("token") == ["T1"]


class TestRefreshableAccessToken:
    def test_initial_token_is_used_without_fetching(self):
        fetcher = Mock(return_value="T2")
        token = RefreshableAccessToken(fetcher, token="T1")

        assert token.get_token() == "T1"
        fetcher.assert_not_called()

    def test_apply_to_request_fetches_lazily(self):
        fetcher = Mock(return_value="T2")
        request = httpx.Request("POST", "https://api.example.com/message/send?a=1")

        RefreshableAccessToken(fetcher).apply_to_request(request)

        assert request.url == "https://api.example.com/message/send?a=1&token=T2"
        fetcher.assert_called_once()

    def test_token_middleware_delegates_to_holder(self):
        holder = Mock(spec=RefreshableAccessToken)
        request = httpx.Request("POST", "https://api.example.com/message/send")

        TokenMiddleware(holder).on_request(request)

        holder.apply_to_request.assert_called_once_with(request)

    def test_first_get_fetches_when_empty(self):
        fetcher = Mock(return_value="T1")
        token = RefreshableAccessToken(fetcher)

        assert token.get_token() == "T1"
        assert token.get_token() == "T1"
        fetcher.assert_called_once()

    def test_refresh_stores_new_token(self):
        token = RefreshableAccessToken(Mock(return_value="T2"), token="T1")

        token.refresh()

        assert token.get_token() == "T2"

    def test_empty_fetched_token_raises(self):
        token = RefreshableAccessToken(Mock(return_value=""), token="T1")

        with pytest.raises(JinWeChatError, match="empty access token"):
            token.refresh()

        assert token.get_token() == "T1"

    def test_fetcher_errors_propagate(self):
        token = RefreshableAccessToken(Mock(side_effect=ConnectionError("down")))

        with pytest.raises(ConnectionError, match="down"):
            token.refresh()

    def test_concurrent_refreshes_are_serialized(self):
        active = 0
        overlaps = []
        counter = iter(range(100))

        def fetcher() -> str:
            nonlocal active
            active += 1
            overlaps.append(active)
            time.sleep(0.01)
            active -= 1
            return f"T{next(counter)}"

        token = RefreshableAccessToken(fetcher, token="T")
        threads = [threading.Thread(target=token.refresh) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert max(overlaps) == 1
        assert len(overlaps) == 5
