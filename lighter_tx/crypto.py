"""
Injected cryptographic capability.

The Poseidon permutation over Goldilocks and Schnorr over ECgFp5 are not
implemented here.  Any object providing the four methods of
``CryptoBackend`` can be plugged in, either directly or by dotted path via
``load_backend`` (e.g. ``LIGHTER_CRYPTO_BACKEND=my_pkg.poseidon:Backend``).
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Protocol, Sequence, runtime_checkable

logger = logging.getLogger("lighter_tx")

_REQUIRED = ("hash_elements", "derive_public_key", "sign", "verify")


@runtime_checkable
class CryptoBackend(Protocol):
    def hash_elements(self, elements: Sequence[int]) -> bytes:
        """Poseidon hash of Goldilocks elements, 40 little-endian bytes."""

    def derive_public_key(self, private_key: bytes) -> bytes:
        """Encoded public point (40 bytes) for a 40-byte private scalar."""

    def sign(self, private_key: bytes, digest: bytes, ephemeral: bytes) -> bytes:
        """Schnorr signature (80 bytes) of *digest* using the given ephemeral scalar."""

    def verify(self, public_key: bytes, digest: bytes, signature: bytes) -> bool:
        """True if *signature* is valid for *digest* under *public_key*."""


def load_backend(path: str) -> CryptoBackend:
    """
    Resolve ``"package.module:attribute"`` to a backend instance.

    Classes and zero-argument factories are called; anything else is used
    as-is.  Raises ``ValueError`` if the result lacks a required method.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid crypto backend '{path}'. Expected 'package.module:attribute'.")

    target = getattr(importlib.import_module(module_name), attr)
    if inspect.isclass(target) or (callable(target) and not hasattr(target, "hash_elements")):
        backend = target()
    else:
        backend = target

    missing = [m for m in _REQUIRED if not callable(getattr(backend, m, None))]
    if missing:
        raise ValueError(f"Crypto backend '{path}' is missing: {', '.join(missing)}")

    logger.debug("Crypto backend loaded: %s", path)
    return backend
