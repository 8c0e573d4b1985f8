from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List, Optional

import pytest

from lighter_tx.client import LighterHttpClient
from lighter_tx.signer import KeyManager
from lighter_tx.tx_client import TxClient

NOW_MS = 1_700_000_000_000
ACCOUNT_INDEX = 42
API_KEY_INDEX = 3
CHAIN_ID = 304
PRIVATE_KEY_HEX = "01" * 40


class StubCrypto:
    """
    Deterministic stand-in for the Poseidon / Schnorr backend.

    Not secure: the "public key" is a hash of the private key and verify()
    only checks that the response binds (public key, digest, commitment).
    """

    def __init__(self) -> None:
        self.hashed: List[List[int]] = []

    def hash_elements(self, elements) -> bytes:
        self.hashed.append(list(elements))
        data = b"".join(int(e).to_bytes(8, "little") for e in elements)
        return hashlib.blake2b(data, digest_size=40).digest()

    def derive_public_key(self, private_key: bytes) -> bytes:
        return hashlib.blake2b(b"pub" + private_key, digest_size=40).digest()

    def sign(self, private_key: bytes, digest: bytes, ephemeral: bytes) -> bytes:
        public_key = self.derive_public_key(private_key)
        commitment = hashlib.blake2b(b"R" + ephemeral, digest_size=40).digest()
        response = hashlib.blake2b(public_key + digest + commitment, digest_size=40).digest()
        return commitment + response

    def verify(self, public_key: bytes, digest: bytes, signature: bytes) -> bool:
        if len(signature) != 80:
            return False
        commitment, response = signature[:40], signature[40:]
        return hashlib.blake2b(public_key + digest + commitment, digest_size=40).digest() == response


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)
        self.content = self.text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self) -> None:
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self.queue: List[Any] = []
        self.closed = False

    def push(self, item: Any) -> None:
        self.queue.append(item)

    def request(self, method, url, params=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "data": data, "timeout": timeout})
        if not self.queue:
            raise AssertionError(f"Unexpected HTTP call: {method} {url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def crypto() -> StubCrypto:
    return StubCrypto()


@pytest.fixture
def key_manager(crypto) -> KeyManager:
    return KeyManager(PRIVATE_KEY_HEX, crypto)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def http(fake_session) -> LighterHttpClient:
    return LighterHttpClient("https://exchange.test/", timeout=5, session=fake_session)


@pytest.fixture
def offline_client(key_manager) -> TxClient:
    return TxClient(key_manager, ACCOUNT_INDEX, API_KEY_INDEX, CHAIN_ID, clock=lambda: NOW_MS)


@pytest.fixture
def online_client(key_manager, http) -> TxClient:
    return TxClient(key_manager, ACCOUNT_INDEX, API_KEY_INDEX, CHAIN_ID, http=http, clock=lambda: NOW_MS)
