"""
Exception hierarchy for the signing pipeline.

Construction errors (``EncodingError``, ``MissingFieldError``,
``InvalidKeyError``) are raised before any network call or nonce mutation.
``NonceUnavailableError`` and ``TransportError`` come from the network side
and are passed to the caller unchanged.  An exchange rejection is normally a
``SubmissionResult`` value; ``ExchangeRejected`` only exists for callers that
opt in through ``SubmissionResult.raise_for_code``.
"""

from __future__ import annotations

from typing import Any, Optional


class LighterTxError(Exception):
    """Base class for every error raised by ``lighter_tx``."""


class EncodingError(LighterTxError, ValueError):
    """A value does not fit its declared field type or range."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}={value!r}: {reason}")


class MissingFieldError(EncodingError):
    """A field required by the transaction kind was left absent."""

    def __init__(self, kind: str, field: str):
        self.kind = kind
        super().__init__(field, None, f"required by {kind}")


class InvalidKeyError(LighterTxError, ValueError):
    """The signing key is malformed, zero, or out of the scalar range."""


class NonceUnavailableError(LighterTxError):
    """No explicit nonce was given and none could be obtained."""


class TransportError(LighterTxError):
    """The exchange could not be reached or answered with a malformed envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        prefix = f"[HTTP {status_code}] " if status_code is not None else ""
        super().__init__(f"{prefix}{message}")


class ExchangeRejected(LighterTxError):
    """Raised on request when a well-formed response carries a rejection code."""

    def __init__(self, code: int, message: Optional[str] = None):
        self.code = code
        self.message = message
        super().__init__(f"Exchange rejected transaction (code {code}): {message or 'no message'}")
