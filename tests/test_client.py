from __future__ import annotations

import pytest
import requests

from lighter_tx.client import interpret_response
from lighter_tx.errors import ExchangeRejected, NonceUnavailableError, TransportError

from .conftest import FakeResponse

BODY = {"tx_type": 14, "tx_info": "{}"}


def test_send_tx_posts_form_body(http, fake_session) -> None:
    fake_session.push(FakeResponse(200, {"code": 200, "message": "ok", "tx_hash": "ab12"}))

    result = http.send_tx(BODY)

    call = fake_session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://exchange.test/api/v1/sendTx"
    assert call["data"] == BODY
    assert call["timeout"] == 5
    assert result.ok
    assert result.tx_hash == "ab12"
    assert fake_session.headers["Accept"] == "application/json"


def test_rejection_with_code_is_data_even_on_http_error(http, fake_session) -> None:
    fake_session.push(FakeResponse(400, {"code": 21120, "message": "invalid nonce"}))

    result = http.send_tx(BODY)

    assert result.rejected
    assert result.code == 21120
    assert result.message == "invalid nonce"
    with pytest.raises(ExchangeRejected) as exc:
        result.raise_for_code()
    assert exc.value.code == 21120


def test_connection_error_is_transport_error(http, fake_session) -> None:
    fake_session.push(requests.ConnectionError("refused"))
    with pytest.raises(TransportError, match="Cannot reach"):
        http.send_tx(BODY)


def test_timeout_is_transport_error(http, fake_session) -> None:
    fake_session.push(requests.Timeout("slow"))
    with pytest.raises(TransportError):
        http.send_tx(BODY)


def test_non_json_body_is_transport_error(http, fake_session) -> None:
    fake_session.push(FakeResponse(502, None, text="<html>Bad Gateway</html>"))
    with pytest.raises(TransportError) as exc:
        http.send_tx(BODY)
    assert exc.value.status_code == 502


def test_error_status_without_code_is_transport_error(http, fake_session) -> None:
    fake_session.push(FakeResponse(500, {"error": "internal"}))
    with pytest.raises(TransportError) as exc:
        http.send_tx(BODY)
    assert exc.value.status_code == 500


def test_ok_status_without_code_is_transport_error(http, fake_session) -> None:
    fake_session.push(FakeResponse(200, {"message": "hi"}))
    with pytest.raises(TransportError, match="integer 'code'"):
        http.send_tx(BODY)


@pytest.mark.parametrize("body", [[], "ok", {"code": "200"}, {"code": True}])
def test_interpret_response_rejects_malformed(body) -> None:
    with pytest.raises(TransportError):
        interpret_response(body)


def test_interpret_response_keeps_raw_body() -> None:
    body = {"code": 200, "tx_hash": 123, "extra": 1}
    result = interpret_response(body)
    assert result.tx_hash == "123"
    assert result.message is None
    assert result.raw == body


def test_next_nonce(http, fake_session) -> None:
    fake_session.push(FakeResponse(200, {"code": 200, "nonce": 17}))

    assert http.next_nonce(42, 3) == 17
    call = fake_session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://exchange.test/api/v1/nextNonce"
    assert call["params"] == {"account_index": 42, "api_key_index": 3}


@pytest.mark.parametrize(
    "body",
    [{"code": 200}, {"code": 21100, "message": "account not found"}, {"code": 200, "nonce": "17"}],
)
def test_next_nonce_unavailable(http, fake_session, body) -> None:
    fake_session.push(FakeResponse(200, body))
    with pytest.raises(NonceUnavailableError):
        http.next_nonce(42, 3)


def test_context_manager_closes_session(http, fake_session) -> None:
    with http:
        pass
    assert fake_session.closed
