import json

import pytest
from click.testing import CliRunner
from pytest_httpx import HTTPXMock

from jinwechat._cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, base_url: str, token: str) -> None:
    monkeypatch.setenv("JINWECHAT_URL", base_url)
    monkeypatch.setenv("JINWECHAT_TOKEN", token)


class TestGet:
    def test_prints_json_result(
        self, runner: CliRunner, httpx_mock: HTTPXMock, cli_env, base_url: str
    ):
        httpx_mock.add_response(
            url=f"{base_url}/user/info?openid=abc&token=T1",
            json={"openid": "abc", "nickname": "jin"},
        )

        result = runner.invoke(cli, ["get", "/user/info", "-q", "openid=abc"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"openid": "abc", "nickname": "jin"}

    def test_string_response_type_prints_body(
        self, runner: CliRunner, httpx_mock: HTTPXMock, cli_env, base_url: str
    ):
        httpx_mock.add_response(url=f"{base_url}/ping?token=T1", text="pong")

        result = runner.invoke(cli, ["get", "/ping", "--response-type", "string"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "pong"

    def test_missing_env_vars(self, runner: CliRunner):
        result = runner.invoke(cli, ["get", "/user/info"])

        assert result.exit_code == 1
        assert "Missing required environment variables" in result.output

    def test_bad_query_pair(self, runner: CliRunner, cli_env):
        result = runner.invoke(cli, ["get", "/user/info", "-q", "openid"])

        assert result.exit_code == 2
        assert "expected key=value" in result.output

    def test_http_error_aborts(
        self, runner: CliRunner, httpx_mock: HTTPXMock, cli_env, base_url: str
    ):
        httpx_mock.add_response(url=f"{base_url}/user/info?token=T1", status_code=500)

        result = runner.invoke(cli, ["get", "/user/info"])

        assert result.exit_code == 1
        assert "Request failed" in result.output


class TestPost:
    def test_form_fields(
        self, runner: CliRunner, httpx_mock: HTTPXMock, cli_env, base_url: str
    ):
        httpx_mock.add_response(
            url=f"{base_url}/menu/create", method="POST", json={"errcode": 0}
        )

        result = runner.invoke(cli, ["post", "/menu/create", "-d", "name=main"])

        assert result.exit_code == 0, result.output
        sent_request = httpx_mock.get_request()
        assert sent_request is not None
        assert sent_request.content == b"name=main"


class TestPostJson:
    def test_sends_payload_and_query(
        self, runner: CliRunner, httpx_mock: HTTPXMock, cli_env, base_url: str
    ):
        httpx_mock.add_response(
            url=f"{base_url}/message/send?agent=1",
            method="POST",
            json={"errcode": 0, "msgid": 7},
        )

        result = runner.invoke(
            cli, ["post-json", "/message/send", '{"text": "hi"}', "-q", "agent=1"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"errcode": 0, "msgid": 7}
        sent_request = httpx_mock.get_request()
        assert sent_request is not None
        assert json.loads(sent_request.content) == {"text": "hi"}

    def test_invalid_json_body(self, runner: CliRunner, cli_env):
        result = runner.invoke(cli, ["post-json", "/message/send", "{not json"])

        assert result.exit_code == 2
        assert "invalid JSON" in result.output


class TestUpload:
    def test_upload_file(
        self,
        runner: CliRunner,
        httpx_mock: HTTPXMock,
        cli_env,
        base_url: str,
        tmp_path,
    ):
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"image-bytes")
        httpx_mock.add_response(
            url=f"{base_url}/media/upload?type=image",
            method="POST",
            json={"media_id": "m1"},
        )

        result = runner.invoke(
            cli,
            ["upload", "/media/upload", "-f", f"media={media}", "-q", "type=image"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"media_id": "m1"}
        sent_request = httpx_mock.get_request()
        assert sent_request is not None
        assert b"image-bytes" in sent_request.content

    def test_missing_file_aborts(self, runner: CliRunner, cli_env, tmp_path):
        result = runner.invoke(
            cli, ["upload", "/media/upload", "-f", f"media={tmp_path / 'nope.jpg'}"]
        )

        assert result.exit_code == 1
        assert "Request failed" in result.output
