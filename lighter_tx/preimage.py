"""
Preimage builder.

The element order fed to the Poseidon hash is fixed by the exchange's
verifier and differs per transaction kind.  It is written out below as a
literal table, one row per kind, so any reordering shows up as a diff of
this file and breaks the fixtures in ``tests/test_preimage.py``.

Bump ``PREIMAGE_VERSION`` whenever a row changes.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .encoding import FLAG, MEMO, PUBKEY, U8, U16, U32, U48, U60, USDC
from .errors import EncodingError, MissingFieldError
from .types import TransactionEnvelope, TxKind, TxPayload

PREIMAGE_VERSION = 1

ENVELOPE = "envelope"
PAYLOAD = "payload"

# (source, attribute, field type)
Slot = Tuple[str, str, object]

PREIMAGE_SPECS: Dict[TxKind, Tuple[Slot, ...]] = {
    TxKind.CREATE_ORDER: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "market_index", U8),
        (PAYLOAD, "client_order_index", U48),
        (PAYLOAD, "base_amount", U48),
        (PAYLOAD, "price", U32),
        (PAYLOAD, "is_ask", FLAG),
        (PAYLOAD, "order_type", U8),
        (PAYLOAD, "time_in_force", U8),
        (PAYLOAD, "reduce_only", FLAG),
        (PAYLOAD, "trigger_price", U32),
        (PAYLOAD, "order_expiry", U48),
    ),
    TxKind.CANCEL_ORDER: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "market_index", U8),
        (PAYLOAD, "index", U48),
    ),
    TxKind.CANCEL_ALL_ORDERS: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "time_in_force", U8),
        (PAYLOAD, "time", U48),
    ),
    TxKind.MODIFY_ORDER: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "market_index", U8),
        (PAYLOAD, "index", U48),
        (PAYLOAD, "base_amount", U48),
        (PAYLOAD, "price", U32),
        (PAYLOAD, "trigger_price", U32),
    ),
    TxKind.TRANSFER: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "to_account_index", U48),
        (PAYLOAD, "usdc_amount", USDC),
        (PAYLOAD, "fee", U48),
        (PAYLOAD, "memo", MEMO),
    ),
    TxKind.WITHDRAW: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "usdc_amount", USDC),
    ),
    TxKind.CREATE_PUBLIC_POOL: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "operator_fee", U16),
        (PAYLOAD, "initial_total_shares", U60),
        (PAYLOAD, "min_operator_share_rate", U16),
    ),
    TxKind.MINT_SHARES: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "public_pool_index", U48),
        (PAYLOAD, "share_amount", U60),
    ),
    TxKind.BURN_SHARES: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "public_pool_index", U48),
        (PAYLOAD, "share_amount", U60),
    ),
    TxKind.UPDATE_LEVERAGE: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "market_index", U8),
        (PAYLOAD, "initial_margin_fraction", U16),
        (PAYLOAD, "margin_mode", U8),
    ),
    TxKind.CHANGE_PUB_KEY: (
        (ENVELOPE, "chain_id", U32),
        (ENVELOPE, "tx_type", U8),
        (ENVELOPE, "nonce", U48),
        (ENVELOPE, "expired_at", U48),
        (ENVELOPE, "account_index", U48),
        (ENVELOPE, "api_key_index", U8),
        (PAYLOAD, "pub_key", PUBKEY),
    ),
}


def _encode_slot(kind: TxKind, source_obj: object, name: str, ftype) -> List[int]:
    value = getattr(source_obj, name)
    if value is None:
        raise MissingFieldError(kind.name, name)
    return ftype.encode(name, value)


def check_payload(payload: TxPayload) -> None:
    """
    Encode every payload slot of *payload* and discard the result.

    Lets callers fail on a bad or absent field before a nonce is taken.
    """
    kind = payload.KIND
    for source, name, ftype in PREIMAGE_SPECS[kind]:
        if source == PAYLOAD:
            _encode_slot(kind, payload, name, ftype)


def check_envelope(envelope: TransactionEnvelope) -> None:
    """
    Encode the envelope slots of *envelope* and discard the result.

    Run with a placeholder nonce before a nonce is reserved, so an
    out-of-range account, key index, chain id or expiry never reaches the
    network.
    """
    kind = envelope.tx_type
    for source, name, ftype in PREIMAGE_SPECS[kind]:
        if source == ENVELOPE:
            _encode_slot(kind, envelope, name, ftype)


def build_preimage(envelope: TransactionEnvelope, payload: TxPayload) -> List[int]:
    """Return the ordered field elements for *envelope* + *payload*."""
    kind = payload.KIND
    if envelope.tx_type != kind:
        raise EncodingError("tx_type", envelope.tx_type, f"envelope does not match {kind.name} payload")

    elements: List[int] = []
    for source, name, ftype in PREIMAGE_SPECS[kind]:
        obj = envelope if source == ENVELOPE else payload
        elements.extend(_encode_slot(kind, obj, name, ftype))
    return elements


def preimage_layout(kind: TxKind) -> List[str]:
    """Field name at each element position, limbs suffixed ``[i]``."""
    layout: List[str] = []
    for _, name, ftype in PREIMAGE_SPECS[kind]:
        if ftype.width == 1:
            layout.append(name)
        else:
            layout.extend(f"{name}[{i}]" for i in range(ftype.width))
    return layout
