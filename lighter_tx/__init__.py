"""
lighter_tx — Transaction signing and submission for the Lighter exchange.

Submodules
----------
constants       Tx-type tags, order enums, field modulus, key sizes.
errors          Exception hierarchy.
types           Payload dataclasses, envelope, signed tx, submission result.
encoding        Typed values -> Goldilocks field elements.
preimage        Per-kind ordered hash input tables.
crypto          Injected Poseidon / Schnorr backend interface.
signer          Key parsing and deterministic signing.
nonce           Per-key nonce sequencing and expiry resolution.
wire            sendTx form-body encoder / decoder.
client          REST transport and response interpretation.
tx_client       Caller-facing TxClient.
validators      Input validation and unit scaling.
config          .env / environment settings.
logging_config  Dual-output logging (console + rotating file).
"""

from lighter_tx.client import LighterHttpClient, interpret_response
from lighter_tx.config import Settings, load_settings
from lighter_tx.crypto import CryptoBackend, load_backend
from lighter_tx.errors import (
    EncodingError,
    ExchangeRejected,
    InvalidKeyError,
    LighterTxError,
    MissingFieldError,
    NonceUnavailableError,
    TransportError,
)
from lighter_tx.nonce import NonceSequencer
from lighter_tx.preimage import build_preimage
from lighter_tx.signer import KeyManager
from lighter_tx.tx_client import TxClient, format_tx_response
from lighter_tx.types import (
    BurnShares,
    CancelAllOrders,
    CancelOrder,
    ChangePubKey,
    CreateOrder,
    CreatePublicPool,
    MintShares,
    ModifyOrder,
    SignedTransaction,
    SubmissionResult,
    TransactionEnvelope,
    Transfer,
    TxKind,
    UpdateLeverage,
    Withdraw,
)
from lighter_tx.wire import decode_transaction, encode_transaction

__all__ = [
    "LighterHttpClient",
    "interpret_response",
    "Settings",
    "load_settings",
    "CryptoBackend",
    "load_backend",
    "LighterTxError",
    "EncodingError",
    "MissingFieldError",
    "InvalidKeyError",
    "NonceUnavailableError",
    "TransportError",
    "ExchangeRejected",
    "NonceSequencer",
    "build_preimage",
    "KeyManager",
    "TxClient",
    "format_tx_response",
    "TxKind",
    "TransactionEnvelope",
    "SignedTransaction",
    "SubmissionResult",
    "CreateOrder",
    "CancelOrder",
    "CancelAllOrders",
    "ModifyOrder",
    "Transfer",
    "Withdraw",
    "CreatePublicPool",
    "MintShares",
    "BurnShares",
    "UpdateLeverage",
    "ChangePubKey",
    "encode_transaction",
    "decode_transaction",
]
