"""
Tests for the command line entry point.
"""

import json

import httpx
import pytest

from metal_batch import main as cli
from metal_batch.api.gateway import MetalGateway


@pytest.fixture
def configured_env(clean_env, tmp_path, restore_logger):
    clean_env.setenv("METAL_API_KEY", "cli-key")
    clean_env.setenv("METAL_MERCHANT_ADDRESS", "0xmerchant")
    clean_env.setenv("METAL_LOG_FILE", "")
    clean_env.setenv("METAL_POLL_INTERVAL_SEC", "0")
    clean_env.setenv("METAL_LIQUIDITY_DELAY_SEC", "0")
    return ["--env-file", str(tmp_path / "missing.env")]


def install_service(monkeypatch, handler):
    """Route every gateway the CLI builds to an in-memory service."""

    def factory(*args, **kwargs):
        kwargs["client"] = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MetalGateway(*args, **kwargs)

    monkeypatch.setattr(cli, "MetalGateway", factory)


def test_missing_api_key_is_config_error(clean_env, tmp_path, capsys):
    code = cli.main(["--env-file", str(tmp_path / "missing.env"), "init-liquidity"])
    assert code == cli.EXIT_CONFIG
    assert "METAL_API_KEY" in capsys.readouterr().err


def test_bad_entity_is_config_error(configured_env):
    code = cli.main(configured_env + ["create-tokens", "--entity", "Acme"])
    assert code == cli.EXIT_CONFIG


def test_create_tokens_all_succeed(configured_env, monkeypatch):
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, request.headers["x-api-key"]))
        if request.url.path == "/merchant/create-token":
            symbol = json.loads(request.content)["symbol"]
            return httpx.Response(200, json={"jobId": f"job-{symbol}"})
        return httpx.Response(200, json={"status": "success", "data": {"address": "0xnew"}})

    install_service(monkeypatch, handler)

    code = cli.main(configured_env + ["create-tokens", "--entity", "0:Acme", "--entity", "1:Blue Line"])

    assert code == cli.EXIT_OK
    assert [path for _, path, _ in seen] == [
        "/merchant/create-token",
        "/merchant/create-token/status/job-A0",
        "/merchant/create-token",
        "/merchant/create-token/status/job-BL1",
    ]
    assert all(key == "cli-key" for _, _, key in seen)


def test_init_liquidity_with_rejection_exits_nonzero(configured_env, monkeypatch):
    def handler(request):
        if request.url.path == "/merchant/all-tokens":
            return httpx.Response(200, json=[
                {"address": "0x1", "merchantAddress": "0xmerchant"},
                {"address": "0x2", "merchantAddress": "0xmerchant"},
            ])
        ok = request.url.path == "/token/0x1/liquidity"
        return httpx.Response(200, json={"success": ok})

    install_service(monkeypatch, handler)

    assert cli.main(configured_env + ["init-liquidity"]) == cli.EXIT_FAILED_ITEMS


def test_init_liquidity_nothing_to_do(configured_env, monkeypatch):
    install_service(monkeypatch, lambda request: httpx.Response(200, json=[]))
    assert cli.main(configured_env + ["init-liquidity"]) == cli.EXIT_OK


def test_list_tokens_prints_json_lines(configured_env, monkeypatch, capsys):
    install_service(monkeypatch, lambda request: httpx.Response(200, json=[
        {"address": "0x1", "name": "One", "merchantAddress": "0xmerchant"},
    ]))

    assert cli.main(configured_env + ["list-tokens"]) == cli.EXIT_OK

    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    assert json.loads(lines[0])["address"] == "0x1"


def test_settings_are_logged_after_logger_is_built(configured_env, monkeypatch):
    order = []
    real_build_logger = cli.build_logger

    def build_logger(*args, **kwargs):
        order.append("build_logger")
        return real_build_logger(*args, **kwargs)

    monkeypatch.setattr(cli, "build_logger", build_logger)
    monkeypatch.setattr(cli.Settings, "log_summary", lambda self, logger=None: order.append("log_summary"))
    install_service(monkeypatch, lambda request: httpx.Response(200, json=[]))

    assert cli.main(configured_env + ["init-liquidity"]) == cli.EXIT_OK
    assert order == ["build_logger", "log_summary"]
