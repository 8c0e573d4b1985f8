"""
Signing key management.

Signatures are deterministic: the Schnorr ephemeral scalar is derived as
``SHA-256(private_key || digest)`` zero-padded to 40 bytes, so signing the
same digest with the same key always yields the same 80 bytes.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Union

from .constants import (
    DIGEST_LENGTH,
    ECGFP5_SCALAR_ORDER,
    LEGACY_PRIVATE_KEY_LENGTH,
    PRIVATE_KEY_LENGTH,
    SIGNATURE_LENGTH,
)
from .crypto import CryptoBackend
from .errors import EncodingError, InvalidKeyError

logger = logging.getLogger("lighter_tx")


def parse_private_key(key: Union[str, bytes]) -> bytes:
    """
    Return the canonical 40-byte little-endian private scalar.

    Accepts raw bytes or hex (``0x`` prefix optional), 40 bytes or the
    legacy 32-byte form, which is zero-padded.
    """
    if isinstance(key, str):
        text = key.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise InvalidKeyError("Private key is not valid hex.") from None
    elif isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
    else:
        raise InvalidKeyError(f"Private key must be hex or bytes, got {type(key).__name__}.")

    if len(raw) not in (PRIVATE_KEY_LENGTH, LEGACY_PRIVATE_KEY_LENGTH):
        raise InvalidKeyError(
            f"Private key must be {PRIVATE_KEY_LENGTH} or {LEGACY_PRIVATE_KEY_LENGTH} bytes, got {len(raw)}."
        )

    scalar = int.from_bytes(raw, "little")
    if scalar == 0:
        raise InvalidKeyError("Private key is zero.")
    if scalar >= ECGFP5_SCALAR_ORDER:
        raise InvalidKeyError("Private key is not below the curve's scalar order.")

    return raw.ljust(PRIVATE_KEY_LENGTH, b"\x00")


def derive_ephemeral(private_key: bytes, digest: bytes) -> bytes:
    """Deterministic per-message ephemeral scalar (40 bytes, little-endian)."""
    return hashlib.sha256(private_key + digest).digest().ljust(PRIVATE_KEY_LENGTH, b"\x00")


class KeyManager:
    """Holds one API signing key and signs transaction digests with it."""

    def __init__(self, private_key: Union[str, bytes], backend: CryptoBackend):
        self._private_key = parse_private_key(private_key)
        self.backend = backend
        self.public_key = backend.derive_public_key(self._private_key)

    def __repr__(self) -> str:
        return f"KeyManager(public_key={self.public_key.hex()})"

    def sign(self, digest: bytes) -> bytes:
        """Sign a 40-byte Poseidon digest and return the 80-byte signature."""
        if len(digest) != DIGEST_LENGTH:
            raise EncodingError("digest", digest, f"expected {DIGEST_LENGTH} bytes, got {len(digest)}")

        ephemeral = derive_ephemeral(self._private_key, digest)
        signature = self.backend.sign(self._private_key, digest, ephemeral)

        if len(signature) != SIGNATURE_LENGTH:
            raise EncodingError(
                "signature", signature, f"backend returned {len(signature)} bytes, expected {SIGNATURE_LENGTH}"
            )
        return signature

    def verify(self, digest: bytes, signature: bytes) -> bool:
        return self.backend.verify(self.public_key, digest, signature)
