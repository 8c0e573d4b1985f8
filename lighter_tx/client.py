"""
Low-level Lighter REST transport.

Handles request dispatch and response-envelope parsing.  Business
rejections (a well-formed ``{"code": ...}`` body with a non-200 code) are
returned as ``SubmissionResult`` data; only connectivity failures and
malformed envelopes raise ``TransportError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .constants import CODE_OK, MAINNET_URL, NEXT_NONCE_PATH, SEND_TX_PATH
from .errors import NonceUnavailableError, TransportError
from .types import SubmissionResult

logger = logging.getLogger("lighter_tx")

DEFAULT_TIMEOUT = 10.0


def interpret_response(body: Any) -> SubmissionResult:
    """
    Classify a parsed ``sendTx`` response body.

    Raises
    ------
    TransportError
        If *body* is not an object with an integer ``code``.
    """
    if not isinstance(body, dict):
        raise TransportError(f"Malformed response envelope: expected object, got {type(body).__name__}")

    code = body.get("code")
    if isinstance(code, bool) or not isinstance(code, int):
        raise TransportError(f"Malformed response envelope: missing integer 'code' in {body!r}")

    message = body.get("message")
    tx_hash = body.get("tx_hash")
    return SubmissionResult(
        code=code,
        message=str(message) if message is not None else None,
        tx_hash=str(tx_hash) if tx_hash is not None else None,
        raw=body,
    )


class LighterHttpClient:
    """Thin wrapper around the Lighter transaction endpoints."""

    def __init__(
        self,
        base_url: str = MAINNET_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    # ── context-manager support ────────────────────────────────────────

    def __enter__(self) -> "LighterHttpClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    # ── internal helpers ───────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send an HTTP request and return the decoded JSON object.

        A non-2xx status is not an error by itself: the exchange reports
        rejections as ``{"code": ..., "message": ...}`` with a 4xx status,
        and those bodies are handed back for classification.

        Raises
        ------
        TransportError
            On network failure, a non-JSON body, or a non-object body
            without an exchange ``code``.
        """
        url = f"{self.base_url}{path}"

        logger.debug(
            "API request  -> %s %s params=%s fields=%s",
            method,
            url,
            params,
            sorted(data) if data else None,
        )

        try:
            response = self._session.request(method, url, params=params, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Cannot reach {url}: {exc}") from exc

        logger.debug(
            "API response <- %s (%.1f KB)",
            response.status_code,
            len(response.content) / 1024,
        )

        try:
            body = response.json()
        except ValueError:
            raise TransportError(
                f"Non-JSON response from {url}: {response.text[:200]!r}", response.status_code
            ) from None

        if not isinstance(body, dict) or ("code" not in body and not response.ok):
            raise TransportError(f"Malformed response envelope from {url}: {body!r}", response.status_code)

        return body

    # ── public API methods ─────────────────────────────────────────────

    def send_tx(self, payload: Dict[str, Any]) -> SubmissionResult:
        """
        Submit an encoded transaction (``POST /api/v1/sendTx``).

        Parameters
        ----------
        payload : dict
            ``{"tx_type": ..., "tx_info": ...}`` from ``wire.encode_transaction``.
        """
        body = self._request("POST", SEND_TX_PATH, data=payload)
        return interpret_response(body)

    def next_nonce(self, account_index: int, api_key_index: int) -> int:
        """Next nonce the exchange expects for a key (``GET /api/v1/nextNonce``)."""
        body = self._request(
            "GET",
            NEXT_NONCE_PATH,
            params={"account_index": account_index, "api_key_index": api_key_index},
        )
        code = body.get("code", CODE_OK)
        nonce = body.get("nonce")
        if code != CODE_OK or isinstance(nonce, bool) or not isinstance(nonce, int):
            raise NonceUnavailableError(
                f"Exchange returned no nonce for account {account_index} key {api_key_index}: "
                f"code={code} message={body.get('message')!r}"
            )
        return nonce
