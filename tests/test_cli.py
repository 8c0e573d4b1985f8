from __future__ import annotations

import json
import logging

import pytest

from lighter_tx import cli

from .conftest import PRIVATE_KEY_HEX


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        f"LIGHTER_API_KEY={PRIVATE_KEY_HEX}\n"
        "LIGHTER_ACCOUNT_INDEX=42\n"
        "LIGHTER_API_KEY_INDEX=3\n"
        "LIGHTER_CRYPTO_BACKEND=tests.conftest:StubCrypto\n"
        "LIGHTER_API_URL=https://exchange.test\n"
    )
    for name in ("LIGHTER_API_KEY", "LIGHTER_ACCOUNT_INDEX", "LIGHTER_API_KEY_INDEX",
                 "LIGHTER_CRYPTO_BACKEND", "LIGHTER_API_URL", "LIGHTER_CHAIN_ID", "LIGHTER_HTTP_TIMEOUT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: logging.getLogger("lighter_tx.test"))
    return env_file


def _run(monkeypatch, env_file, *argv):
    monkeypatch.setattr("sys.argv", ["lighter-tx", "--env-file", str(env_file), *argv])
    cli.main()


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_parser_limit_defaults() -> None:
    args = cli.build_parser().parse_args(["limit", "--market", "0", "--side", "BUY", "--size", "1", "--price", "2"])
    assert args.size_decimals == 6
    assert args.nonce is None
    assert not args.dry_run
    assert not args.post_only


def test_dry_run_limit_prints_payload(monkeypatch, cli_env, capsys) -> None:
    _run(
        monkeypatch, cli_env,
        "limit", "--market", "0", "--side", "BUY", "--size", "0.0001", "--price", "2950",
        "--size-decimals", "6", "--price-decimals", "2", "--client-order-index", "7",
        "--nonce", "12", "--dry-run",
    )

    out = capsys.readouterr().out
    assert "SIGNED (not submitted)" in out
    body = json.loads(out[out.index("{"):])
    assert body["tx_type"] == 14
    info = json.loads(body["tx_info"])
    assert info["BaseAmount"] == 100
    assert info["Price"] == 295_000
    assert info["Nonce"] == 12
    assert info["AccountIndex"] == 42


def test_invalid_size_exits_with_error(monkeypatch, cli_env) -> None:
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, cli_env, "market", "--market", "0", "--side", "buy", "--size", "-1", "--price", "1",
             "--nonce", "1", "--dry-run")
    assert exc.value.code == 1


def test_missing_configuration_exits(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("LIGHTER_API_KEY", "")
    monkeypatch.delenv("LIGHTER_API_KEY")
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: logging.getLogger("lighter_tx.test"))

    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, env_file, "nonce")
    assert exc.value.code == 1


def test_zero_client_order_index_is_kept(monkeypatch, cli_env, capsys) -> None:
    _run(
        monkeypatch, cli_env,
        "market", "--market", "0", "--side", "SELL", "--size", "1", "--price", "2900",
        "--client-order-index", "0", "--nonce", "3", "--dry-run",
    )

    out = capsys.readouterr().out
    info = json.loads(json.loads(out[out.index("{"):])["tx_info"])
    assert info["ClientOrderIndex"] == 0


def test_client_order_index_defaults_to_clock(monkeypatch, cli_env, capsys) -> None:
    monkeypatch.setattr(cli.time, "time", lambda: 1_700_000_000.5)
    _run(
        monkeypatch, cli_env,
        "limit", "--market", "0", "--side", "BUY", "--size", "1", "--price", "2950", "--nonce", "3", "--dry-run",
    )

    out = capsys.readouterr().out
    info = json.loads(json.loads(out[out.index("{"):])["tx_info"])
    assert info["ClientOrderIndex"] == 1_700_000_000_500
