"""
Wire encoder.

Maps a ``SignedTransaction`` to the form body ``sendTx`` expects:
``tx_type`` plus a flat, PascalCase JSON object in ``tx_info``.  Wire names
and order are listed per kind below and are independent of the hash order
in ``preimage.py``.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, Tuple, Union

from .errors import EncodingError, MissingFieldError
from .types import PAYLOAD_TYPES, SignedTransaction, TransactionEnvelope, TxKind, TxPayload

ENVELOPE = "envelope"
PAYLOAD = "payload"
SIGNATURE = "signature"

# Renderers for non-integer values.
INT = "int"
FLAG = "flag"
B64 = "b64"
HEX = "hex"

# (wire name, source, attribute, renderer)
WireField = Tuple[str, str, str, str]

_SIG: WireField = ("Sig", SIGNATURE, "signature", B64)
_EXPIRED_AT: WireField = ("ExpiredAt", ENVELOPE, "expired_at", INT)
_NONCE: WireField = ("Nonce", ENVELOPE, "nonce", INT)
_ACCOUNT: WireField = ("AccountIndex", ENVELOPE, "account_index", INT)
_FROM_ACCOUNT: WireField = ("FromAccountIndex", ENVELOPE, "account_index", INT)
_API_KEY: WireField = ("ApiKeyIndex", ENVELOPE, "api_key_index", INT)

WIRE_FIELDS: Dict[TxKind, Tuple[WireField, ...]] = {
    TxKind.CREATE_ORDER: (
        _ACCOUNT,
        _API_KEY,
        ("MarketIndex", PAYLOAD, "market_index", INT),
        ("ClientOrderIndex", PAYLOAD, "client_order_index", INT),
        ("BaseAmount", PAYLOAD, "base_amount", INT),
        ("Price", PAYLOAD, "price", INT),
        ("IsAsk", PAYLOAD, "is_ask", FLAG),
        ("Type", PAYLOAD, "order_type", INT),
        ("TimeInForce", PAYLOAD, "time_in_force", INT),
        ("ReduceOnly", PAYLOAD, "reduce_only", FLAG),
        ("TriggerPrice", PAYLOAD, "trigger_price", INT),
        ("OrderExpiry", PAYLOAD, "order_expiry", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.CANCEL_ORDER: (
        _ACCOUNT,
        _API_KEY,
        ("MarketIndex", PAYLOAD, "market_index", INT),
        ("Index", PAYLOAD, "index", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.CANCEL_ALL_ORDERS: (
        _ACCOUNT,
        _API_KEY,
        ("TimeInForce", PAYLOAD, "time_in_force", INT),
        ("Time", PAYLOAD, "time", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.MODIFY_ORDER: (
        _ACCOUNT,
        _API_KEY,
        ("MarketIndex", PAYLOAD, "market_index", INT),
        ("Index", PAYLOAD, "index", INT),
        ("BaseAmount", PAYLOAD, "base_amount", INT),
        ("Price", PAYLOAD, "price", INT),
        ("TriggerPrice", PAYLOAD, "trigger_price", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.TRANSFER: (
        _FROM_ACCOUNT,
        _API_KEY,
        ("ToAccountIndex", PAYLOAD, "to_account_index", INT),
        ("USDCAmount", PAYLOAD, "usdc_amount", INT),
        ("Fee", PAYLOAD, "fee", INT),
        ("Memo", PAYLOAD, "memo", HEX),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.WITHDRAW: (
        _FROM_ACCOUNT,
        _API_KEY,
        ("USDCAmount", PAYLOAD, "usdc_amount", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.CREATE_PUBLIC_POOL: (
        _ACCOUNT,
        _API_KEY,
        ("OperatorFee", PAYLOAD, "operator_fee", INT),
        ("InitialTotalShares", PAYLOAD, "initial_total_shares", INT),
        ("MinOperatorShareRate", PAYLOAD, "min_operator_share_rate", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.MINT_SHARES: (
        _ACCOUNT,
        _API_KEY,
        ("PublicPoolIndex", PAYLOAD, "public_pool_index", INT),
        ("ShareAmount", PAYLOAD, "share_amount", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.BURN_SHARES: (
        _ACCOUNT,
        _API_KEY,
        ("PublicPoolIndex", PAYLOAD, "public_pool_index", INT),
        ("ShareAmount", PAYLOAD, "share_amount", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.UPDATE_LEVERAGE: (
        _ACCOUNT,
        _API_KEY,
        ("MarketIndex", PAYLOAD, "market_index", INT),
        ("InitialMarginFraction", PAYLOAD, "initial_margin_fraction", INT),
        ("MarginMode", PAYLOAD, "margin_mode", INT),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
    TxKind.CHANGE_PUB_KEY: (
        _ACCOUNT,
        _API_KEY,
        ("PubKey", PAYLOAD, "pub_key", B64),
        _EXPIRED_AT,
        _NONCE,
        _SIG,
    ),
}


def _render(value: Any, renderer: str) -> Any:
    if renderer == FLAG:
        return int(bool(value))
    if renderer == B64:
        return base64.b64encode(value).decode("ascii")
    if renderer == HEX:
        return "0x" + bytes(value).hex()
    return int(value)


def _parse(wire_name: str, value: Any, renderer: str) -> Any:
    try:
        if renderer == FLAG:
            if isinstance(value, bool):
                return value
            if not isinstance(value, int) or value not in (0, 1):
                raise ValueError("flag must be 0 or 1")
            return bool(value)
        if renderer == B64:
            return base64.b64decode(value, validate=True)
        if renderer == HEX:
            return bytes.fromhex(value[2:] if value.startswith("0x") else value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("not an integer")
        return value
    except (ValueError, TypeError, AttributeError) as exc:
        raise EncodingError(wire_name, value, f"cannot decode: {exc}") from None


def encode_tx_info(signed: SignedTransaction) -> Dict[str, Any]:
    """Flat ``tx_info`` dict in the exchange's field order."""
    sources = {ENVELOPE: signed.envelope, PAYLOAD: signed.payload, SIGNATURE: signed}
    return {
        wire_name: _render(getattr(sources[source], attr), renderer)
        for wire_name, source, attr, renderer in WIRE_FIELDS[signed.kind]
    }


def encode_transaction(signed: SignedTransaction) -> Dict[str, Union[int, str]]:
    """
    Return the ``sendTx`` form body.

    Returns
    -------
    dict
        ``{"tx_type": <int>, "tx_info": <compact JSON string>}``.
    """
    return {
        "tx_type": int(signed.kind),
        "tx_info": json.dumps(encode_tx_info(signed), separators=(",", ":")),
    }


def decode_transaction(
    payload: Dict[str, Any], chain_id: int
) -> Tuple[TransactionEnvelope, TxPayload, bytes]:
    """
    Parse a ``sendTx`` body back into envelope, payload and signature.

    The chain id is not carried on the wire and must be supplied.
    """
    try:
        kind = TxKind(int(payload["tx_type"]))
    except (KeyError, ValueError, TypeError):
        raise EncodingError("tx_type", payload.get("tx_type"), "unknown or missing tx type") from None

    info = payload.get("tx_info")
    if isinstance(info, str):
        try:
            info = json.loads(info)
        except ValueError:
            raise EncodingError("tx_info", info, "not valid JSON") from None
    if not isinstance(info, dict):
        raise EncodingError("tx_info", info, "expected a JSON object")

    values: Dict[str, Dict[str, Any]] = {ENVELOPE: {}, PAYLOAD: {}, SIGNATURE: {}}
    for wire_name, source, attr, renderer in WIRE_FIELDS[kind]:
        if wire_name not in info:
            raise MissingFieldError(kind.name, wire_name)
        values[source][attr] = _parse(wire_name, info[wire_name], renderer)

    envelope = TransactionEnvelope(chain_id=chain_id, tx_type=kind, **values[ENVELOPE])
    return envelope, PAYLOAD_TYPES[kind](**values[PAYLOAD]), values[SIGNATURE]["signature"]
