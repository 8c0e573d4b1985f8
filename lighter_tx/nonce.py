"""
Nonce sequencing and expiry resolution.

Nonces are tracked per ``(account_index, api_key_index)``.  Each pair has
its own lock, so builds for one key never wait on another key's fetch.
The cache is in memory only; after a restart it is fetched again.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple

from .constants import DEFAULT_TX_EXPIRY_MS
from .errors import EncodingError, NonceUnavailableError
from .types import TxKind

logger = logging.getLogger("lighter_tx")

NonceKey = Tuple[int, int]
NonceFetcher = Callable[[int, int], int]


class NonceSequencer:
    """
    Hands out strictly increasing nonces per account/key pair.

    Parameters
    ----------
    fetch : callable, optional
        ``fetch(account_index, api_key_index) -> int`` returning the next
        nonce the exchange expects.  Called on a cache miss only.
    """

    def __init__(self, fetch: Optional[NonceFetcher] = None):
        self._fetch = fetch
        self._next: Dict[NonceKey, int] = {}
        self._locks: Dict[NonceKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: NonceKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _load(self, key: NonceKey) -> int:
        # Caller holds the pair lock.
        if key in self._next:
            return self._next[key]
        if self._fetch is None:
            raise NonceUnavailableError(
                f"No cached nonce for account {key[0]} key {key[1]} and no transport to fetch one; "
                "pass an explicit nonce."
            )
        value = self._fetch(*key)
        logger.debug("Fetched nonce %s for account=%s key=%s", value, *key)
        self._next[key] = value
        return value

    @contextmanager
    def reserve(
        self, account_index: int, api_key_index: int, explicit: Optional[int] = None
    ) -> Iterator[int]:
        """
        Yield the nonce for one build.

        The cached value advances only if the ``with`` block finishes
        without raising, so a failed build leaves the nonce available.
        An *explicit* nonce is yielded unchanged and touches nothing.
        """
        if explicit is not None:
            yield explicit
            return

        key = (account_index, api_key_index)
        with self._lock_for(key):
            nonce = self._load(key)
            yield nonce
            self._next[key] = nonce + 1

    def next(self, account_index: int, api_key_index: int, explicit: Optional[int] = None) -> int:
        """Return the next nonce and advance the cache."""
        with self.reserve(account_index, api_key_index, explicit) as nonce:
            return nonce

    def peek(self, account_index: int, api_key_index: int) -> Optional[int]:
        """Cached next nonce, or ``None`` if it has not been fetched yet."""
        key = (account_index, api_key_index)
        with self._lock_for(key):
            return self._next.get(key)

    def set(self, account_index: int, api_key_index: int, nonce: int) -> None:
        """Manually override the next nonce for a pair."""
        key = (account_index, api_key_index)
        with self._lock_for(key):
            self._next[key] = nonce
        logger.info("Nonce for account=%s key=%s set to %s", account_index, api_key_index, nonce)

    def invalidate(self, account_index: int, api_key_index: int) -> None:
        """Drop the cached nonce so the next build fetches a fresh one."""
        key = (account_index, api_key_index)
        with self._lock_for(key):
            self._next.pop(key, None)
        logger.info("Nonce cache cleared for account=%s key=%s", account_index, api_key_index)


def resolve_expiry(
    kind: TxKind,
    expired_at: Optional[int],
    now_ms: int,
    horizon_ms: int = DEFAULT_TX_EXPIRY_MS,
) -> int:
    """
    Return the envelope expiry in milliseconds.

    ``None`` means "now + horizon".  An explicit value on a CreateOrder must
    lie in the future; zero or a past timestamp is rejected, never replaced.
    """
    if expired_at is None:
        return now_ms + horizon_ms
    if kind == TxKind.CREATE_ORDER and expired_at <= now_ms:
        raise EncodingError("expired_at", expired_at, "must be a non-zero timestamp in the future")
    return expired_at
