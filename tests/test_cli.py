import json

import pytest
from click.testing import CliRunner

from promofire_sdk import cli as cli_module
from promofire_sdk.cli import cli
from promofire_sdk.token_store import TOKEN_KEY
from tests.fakes import BASE_URL
from tests.fakes import TEMPLATE_ID
from tests.fakes import FakeBackend
from tests.fakes import backend_error
from tests.fakes import json_response
from tests.fakes import make_client


@pytest.fixture
def token_path(tmp_path, monkeypatch):
    path = tmp_path / "token.json"
    monkeypatch.setenv("PROMOFIRE_TOKEN_CACHE_PATH", str(path))
    monkeypatch.setenv("PROMOFIRE_BASE_URL", BASE_URL)
    monkeypatch.setenv("PROMOFIRE_PERSIST_TOKEN", "false")
    monkeypatch.delenv("PROMOFIRE_SECRET", raising=False)
    return path


@pytest.fixture
def backend(monkeypatch):
    backend = FakeBackend()
    monkeypatch.setattr(
        cli_module,
        "PromofireClient",
        lambda settings: make_client(backend, settings=settings),
    )
    return backend


def test_campaigns_command(token_path, backend):
    runner = CliRunner()
    result = runner.invoke(cli, ["--secret", "valid", "campaigns", "--limit", "5"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["templates"][0]["id"] == TEMPLATE_ID
    assert backend.calls_to("POST", "/auth/sdk")[0]["json"] == {"secret": "valid"}


def test_availability_command(token_path, backend):
    runner = CliRunner()
    result = runner.invoke(cli, ["--secret", "valid", "availability"])

    assert result.exit_code == 0
    assert result.output.strip() == "available"


def test_command_reports_backend_error(token_path, backend):
    backend.route("POST", "/auth/sdk", backend_error(401, "Unauthorized", "Invalid secret"))
    runner = CliRunner()
    result = runner.invoke(cli, ["--secret", "bad", "me"])

    assert result.exit_code == 1
    assert "Error: Unauthorized: Invalid secret" in result.output


def test_command_requires_secret(token_path, backend):
    runner = CliRunner()
    result = runner.invoke(cli, ["campaigns"])

    assert result.exit_code == 2
    assert "SDK secret is required" in result.output
    assert backend.calls == []


def test_invalid_argument_is_usage_error(token_path, backend):
    runner = CliRunner()
    result = runner.invoke(cli, ["--secret", "valid", "campaign", "--id", "not-a-uuid"])

    assert result.exit_code == 2


def test_debug_token(token_path):
    token_path.write_text(json.dumps({TOKEN_KEY: "abcdefghijklmnop"}))
    runner = CliRunner()
    result = runner.invoke(cli, ["debug-token"])

    assert result.exit_code == 0
    assert "Token prefix: abcdefghij..." in result.output


def test_debug_token_missing_file(token_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["debug-token"])

    assert result.exit_code == 1
    assert "Token file does not exist." in result.output


def test_logout_removes_token(token_path):
    token_path.write_text(json.dumps({TOKEN_KEY: "abc"}))
    runner = CliRunner()
    result = runner.invoke(cli, ["logout"])

    assert result.exit_code == 0
    assert not token_path.exists()


@pytest.mark.parametrize(
    "args",
    [
        ["generate-code", "--template-id", TEMPLATE_ID, "--value", "A", "--payload", "{bad"],
        ["generate-code", "--template-id", TEMPLATE_ID, "--value", "A", "--payload", "[1]"],
        ["generate-code", "--template-id", "nope", "--value", "A"],
        ["generate-codes", "--template-id", TEMPLATE_ID, "--count", "2", "--payload", "{bad"],
        ["generate-codes", "--template-id", "nope", "--count", "2"],
    ],
)
def test_bad_code_arguments_are_usage_errors(token_path, backend, args):
    runner = CliRunner()
    result = runner.invoke(cli, ["--secret", "valid", *args])

    assert result.exit_code == 2, result.output
    assert "Traceback" not in result.output
    assert backend.calls_to("POST", "/codes") == []
    assert backend.calls_to("POST", "/codes/batch") == []


def test_generate_code_sends_payload(token_path, backend):
    backend.route("POST", "/codes", json_response(201, {"value": "A"}))
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--secret",
            "valid",
            "generate-code",
            "--template-id",
            TEMPLATE_ID,
            "--value",
            "A",
            "--payload",
            '{"source": "cli"}',
        ],
    )

    assert result.exit_code == 0, result.output
    assert backend.calls_to("POST", "/codes")[0]["json"]["payload"] == {"source": "cli"}
