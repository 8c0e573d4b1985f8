"""
Typed transaction model.

Payload classes carry only kind-specific fields; the common envelope
(chain, tx type, account, key index, nonce, expiry) lives in
``TransactionEnvelope``.  A payload field left as ``None`` is treated as
absent by the preimage builder.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Union

from . import constants as c
from .errors import ExchangeRejected


class TxKind(IntEnum):
    """Transaction kinds; the value is the exchange's tx-type tag."""

    CHANGE_PUB_KEY = c.TX_TYPE_CHANGE_PUB_KEY
    CREATE_PUBLIC_POOL = c.TX_TYPE_CREATE_PUBLIC_POOL
    TRANSFER = c.TX_TYPE_TRANSFER
    WITHDRAW = c.TX_TYPE_WITHDRAW
    CREATE_ORDER = c.TX_TYPE_CREATE_ORDER
    CANCEL_ORDER = c.TX_TYPE_CANCEL_ORDER
    CANCEL_ALL_ORDERS = c.TX_TYPE_CANCEL_ALL_ORDERS
    MODIFY_ORDER = c.TX_TYPE_MODIFY_ORDER
    MINT_SHARES = c.TX_TYPE_MINT_SHARES
    BURN_SHARES = c.TX_TYPE_BURN_SHARES
    UPDATE_LEVERAGE = c.TX_TYPE_UPDATE_LEVERAGE


# ── Kind payloads ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateOrder:
    KIND: ClassVar[TxKind] = TxKind.CREATE_ORDER

    market_index: Optional[int] = None
    client_order_index: Optional[int] = None
    base_amount: Optional[int] = None
    price: Optional[int] = None
    is_ask: Optional[bool] = None
    order_type: Optional[int] = None
    time_in_force: Optional[int] = None
    reduce_only: bool = False
    trigger_price: int = c.NIL_TRIGGER_PRICE
    order_expiry: int = c.NIL_ORDER_EXPIRY


@dataclass(frozen=True)
class CancelOrder:
    KIND: ClassVar[TxKind] = TxKind.CANCEL_ORDER

    market_index: Optional[int] = None
    index: Optional[int] = None


@dataclass(frozen=True)
class CancelAllOrders:
    KIND: ClassVar[TxKind] = TxKind.CANCEL_ALL_ORDERS

    time_in_force: Optional[int] = None
    time: int = 0


@dataclass(frozen=True)
class ModifyOrder:
    KIND: ClassVar[TxKind] = TxKind.MODIFY_ORDER

    market_index: Optional[int] = None
    index: Optional[int] = None
    base_amount: Optional[int] = None
    price: Optional[int] = None
    trigger_price: int = c.NIL_TRIGGER_PRICE


@dataclass(frozen=True)
class Transfer:
    KIND: ClassVar[TxKind] = TxKind.TRANSFER

    to_account_index: Optional[int] = None
    usdc_amount: Optional[int] = None
    fee: int = 0
    memo: bytes = bytes(c.MEMO_LENGTH)


@dataclass(frozen=True)
class Withdraw:
    KIND: ClassVar[TxKind] = TxKind.WITHDRAW

    usdc_amount: Optional[int] = None


@dataclass(frozen=True)
class CreatePublicPool:
    KIND: ClassVar[TxKind] = TxKind.CREATE_PUBLIC_POOL

    operator_fee: Optional[int] = None
    initial_total_shares: Optional[int] = None
    min_operator_share_rate: Optional[int] = None


@dataclass(frozen=True)
class MintShares:
    KIND: ClassVar[TxKind] = TxKind.MINT_SHARES

    public_pool_index: Optional[int] = None
    share_amount: Optional[int] = None


@dataclass(frozen=True)
class BurnShares:
    KIND: ClassVar[TxKind] = TxKind.BURN_SHARES

    public_pool_index: Optional[int] = None
    share_amount: Optional[int] = None


@dataclass(frozen=True)
class UpdateLeverage:
    KIND: ClassVar[TxKind] = TxKind.UPDATE_LEVERAGE

    market_index: Optional[int] = None
    initial_margin_fraction: Optional[int] = None
    margin_mode: int = c.MARGIN_MODE_CROSS


@dataclass(frozen=True)
class ChangePubKey:
    KIND: ClassVar[TxKind] = TxKind.CHANGE_PUB_KEY

    pub_key: Optional[bytes] = None


TxPayload = Union[
    CreateOrder,
    CancelOrder,
    CancelAllOrders,
    ModifyOrder,
    Transfer,
    Withdraw,
    CreatePublicPool,
    MintShares,
    BurnShares,
    UpdateLeverage,
    ChangePubKey,
]

PAYLOAD_TYPES: Dict[TxKind, type] = {
    cls.KIND: cls
    for cls in (
        CreateOrder,
        CancelOrder,
        CancelAllOrders,
        ModifyOrder,
        Transfer,
        Withdraw,
        CreatePublicPool,
        MintShares,
        BurnShares,
        UpdateLeverage,
        ChangePubKey,
    )
}


# ── Envelope / signed transaction / result ─────────────────────────────────


@dataclass(frozen=True)
class TransactionEnvelope:
    """Fields shared by every kind.  ``expired_at`` is in milliseconds."""

    chain_id: int
    tx_type: TxKind
    account_index: int
    api_key_index: int
    nonce: int
    expired_at: int


@dataclass(frozen=True)
class SignedTransaction:
    envelope: TransactionEnvelope
    payload: TxPayload
    signature: bytes
    digest: bytes

    @property
    def kind(self) -> TxKind:
        return self.envelope.tx_type

    @property
    def nonce(self) -> int:
        return self.envelope.nonce

    @property
    def tx_hash(self) -> str:
        """Hex of the Poseidon digest, as the exchange reports it."""
        return self.digest.hex()

    @property
    def signature_b64(self) -> str:
        return base64.b64encode(self.signature).decode("ascii")


@dataclass(frozen=True)
class SubmissionResult:
    """
    Parsed exchange response.

    A rejection is *data*: ``rejected`` is ``True`` and ``code`` holds the
    exchange's reason code.  Callers decide whether to retry.
    """

    code: int
    message: Optional[str] = None
    tx_hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        return self.code == c.CODE_OK

    @property
    def rejected(self) -> bool:
        return not self.ok

    def raise_for_code(self) -> "SubmissionResult":
        """Return ``self`` if accepted, otherwise raise ``ExchangeRejected``."""
        if self.rejected:
            raise ExchangeRejected(self.code, self.message)
        return self
