"""
Transaction building, signing and submission.

Bridges typed trade intents and the low-level ``LighterHttpClient``.  Every
build runs the same steps: local checks (no side effects) -> nonce
reservation -> preimage -> Poseidon digest -> signature.  Submission is a
separate step so transactions can also be signed offline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Optional

from . import constants as c
from .client import LighterHttpClient
from .config import Settings
from .crypto import load_backend
from .errors import TransportError
from .nonce import NonceSequencer, resolve_expiry
from .preimage import build_preimage, check_envelope, check_payload
from .signer import KeyManager
from .types import (
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
    TxPayload,
    UpdateLeverage,
    Withdraw,
)
from .validators import leverage_to_margin_fraction, validate_order_expiry, validate_trigger_price
from .wire import encode_transaction

logger = logging.getLogger("lighter_tx")


def _now_ms() -> int:
    return int(time.time() * 1000)


class TxClient:
    """
    Signs transactions for one account / API key and optionally submits them.

    Parameters
    ----------
    key_manager : KeyManager
        Signing key for ``api_key_index``.
    account_index, api_key_index, chain_id : int
        Envelope identity shared by every transaction.
    http : LighterHttpClient, optional
        Transport.  Without it the client works offline: every build needs
        an explicit nonce and ``send`` raises ``TransportError``.
    nonces : NonceSequencer, optional
        Shared sequencer; by default one backed by ``http.next_nonce``.
    clock : callable, optional
        Returns the current time in milliseconds.
    """

    def __init__(
        self,
        key_manager: KeyManager,
        account_index: int,
        api_key_index: int,
        chain_id: int = c.CHAIN_ID_MAINNET,
        http: Optional[LighterHttpClient] = None,
        nonces: Optional[NonceSequencer] = None,
        clock: Optional[Callable[[], int]] = None,
        expiry_horizon_ms: int = c.DEFAULT_TX_EXPIRY_MS,
    ):
        self.key_manager = key_manager
        self.account_index = account_index
        self.api_key_index = api_key_index
        self.chain_id = chain_id
        self.http = http
        self.nonces = nonces or NonceSequencer(http.next_nonce if http is not None else None)
        self.expiry_horizon_ms = expiry_horizon_ms
        self._clock = clock or _now_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "TxClient":
        """Build a networked client from loaded ``Settings``."""
        backend = load_backend(settings.crypto_backend)
        http = LighterHttpClient(settings.api_url, timeout=settings.timeout)
        client = cls(
            KeyManager(settings.private_key, backend),
            settings.account_index,
            settings.api_key_index,
            settings.chain_id,
            http=http,
        )
        logger.info(
            "Tx client initialised – account=%s key=%s chain=%s",
            settings.account_index,
            settings.api_key_index,
            settings.chain_id,
        )
        return client

    # ── context-manager support ────────────────────────────────────────

    def __enter__(self) -> "TxClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self.http is not None:
            self.http.close()

    # ── generic pipeline ───────────────────────────────────────────────

    def sign(
        self,
        payload: TxPayload,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """
        Sign any transaction payload.

        Parameters
        ----------
        payload
            One of the payload dataclasses in ``lighter_tx.types``.
        nonce : int, optional
            Explicit nonce; used as-is and leaves the nonce cache untouched.
        expired_at : int, optional
            Envelope expiry in ms; defaults to now + ``expiry_horizon_ms``.

        Raises
        ------
        EncodingError, MissingFieldError
            Before any nonce is taken or network call made.
        NonceUnavailableError, TransportError
            When no nonce is given and none can be fetched.
        """
        kind = payload.KIND
        now = self._clock()

        check_payload(payload)
        if isinstance(payload, CreateOrder):
            validate_trigger_price(payload.order_type, payload.trigger_price)
            validate_order_expiry(payload.order_type, payload.time_in_force, payload.order_expiry, now)
        expiry = resolve_expiry(kind, expired_at, now, self.expiry_horizon_ms)

        draft = TransactionEnvelope(
            chain_id=self.chain_id,
            tx_type=kind,
            account_index=self.account_index,
            api_key_index=self.api_key_index,
            nonce=0 if nonce is None else nonce,
            expired_at=expiry,
        )
        check_envelope(draft)

        with self.nonces.reserve(self.account_index, self.api_key_index, explicit=nonce) as tx_nonce:
            envelope = replace(draft, nonce=tx_nonce)
            digest = self.key_manager.backend.hash_elements(build_preimage(envelope, payload))
            signature = self.key_manager.sign(digest)

        signed = SignedTransaction(envelope=envelope, payload=payload, signature=signature, digest=digest)
        logger.info("Signed %s – nonce=%s hash=%s", kind.name, tx_nonce, signed.tx_hash)
        logger.debug("Signed payload: %s", payload)
        return signed

    def send(self, signed: SignedTransaction) -> SubmissionResult:
        """
        Submit a signed transaction.

        Exchange rejections come back as a ``SubmissionResult`` with
        ``rejected`` set; the nonce stays consumed either way.
        """
        if self.http is None:
            raise TransportError("No transport configured; this client can only sign offline.")

        result = self.http.send_tx(encode_transaction(signed))
        if result.ok:
            logger.info("%s accepted – nonce=%s tx_hash=%s", signed.kind.name, signed.nonce, result.tx_hash)
        else:
            logger.warning(
                "%s rejected – nonce=%s code=%s message=%s",
                signed.kind.name,
                signed.nonce,
                result.code,
                result.message,
            )
        return result

    def submit(
        self,
        payload: TxPayload,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SubmissionResult:
        """Sign *payload* and send it."""
        return self.send(self.sign(payload, nonce=nonce, expired_at=expired_at))

    def refresh_nonce(self) -> None:
        """Forget the cached nonce; the next build fetches a fresh one."""
        self.nonces.invalidate(self.account_index, self.api_key_index)

    # ── orders ─────────────────────────────────────────────────────────

    def create_order(
        self, order: CreateOrder, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        logger.info(
            "Building %s order: market=%s amount=%s price=%s trigger=%s reduce_only=%s",
            "SELL" if order.is_ask else "BUY",
            order.market_index,
            order.base_amount,
            order.price,
            order.trigger_price,
            order.reduce_only,
        )
        return self.sign(order, nonce=nonce, expired_at=expired_at)

    def _default_order_expiry(self, order_expiry: Optional[int]) -> int:
        # Only an omitted expiry gets the default; an explicit 0 is passed on and rejected.
        return self._clock() + c.DEFAULT_ORDER_EXPIRY_MS if order_expiry is None else order_expiry

    def create_limit_order(
        self,
        market_index: int,
        client_order_index: int,
        base_amount: int,
        price: int,
        is_ask: bool,
        reduce_only: bool = False,
        order_expiry: Optional[int] = None,
        post_only: bool = False,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """Resting limit order (good-till-time, or post-only)."""
        order = CreateOrder(
            market_index=market_index,
            client_order_index=client_order_index,
            base_amount=base_amount,
            price=price,
            is_ask=is_ask,
            order_type=c.ORDER_TYPE_LIMIT,
            time_in_force=c.TIME_IN_FORCE_POST_ONLY if post_only else c.TIME_IN_FORCE_GOOD_TILL_TIME,
            reduce_only=reduce_only,
            order_expiry=self._default_order_expiry(order_expiry),
        )
        return self.create_order(order, nonce=nonce, expired_at=expired_at)

    def create_market_order(
        self,
        market_index: int,
        client_order_index: int,
        base_amount: int,
        price: int,
        is_ask: bool,
        reduce_only: bool = False,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """Immediate-or-cancel market order; *price* is the worst acceptable price."""
        order = CreateOrder(
            market_index=market_index,
            client_order_index=client_order_index,
            base_amount=base_amount,
            price=price,
            is_ask=is_ask,
            order_type=c.ORDER_TYPE_MARKET,
            time_in_force=c.TIME_IN_FORCE_IMMEDIATE_OR_CANCEL,
            reduce_only=reduce_only,
            order_expiry=c.NIL_ORDER_EXPIRY,
        )
        return self.create_order(order, nonce=nonce, expired_at=expired_at)

    def _trigger_order(
        self,
        order_type: int,
        market_index: int,
        client_order_index: int,
        base_amount: int,
        trigger_price: int,
        price: int,
        is_ask: bool,
        reduce_only: bool,
        order_expiry: Optional[int],
        nonce: Optional[int],
        expired_at: Optional[int],
    ) -> SignedTransaction:
        is_limit = order_type in (c.ORDER_TYPE_STOP_LOSS_LIMIT, c.ORDER_TYPE_TAKE_PROFIT_LIMIT)
        order = CreateOrder(
            market_index=market_index,
            client_order_index=client_order_index,
            base_amount=base_amount,
            price=price,
            is_ask=is_ask,
            order_type=order_type,
            time_in_force=c.TIME_IN_FORCE_GOOD_TILL_TIME if is_limit else c.TIME_IN_FORCE_IMMEDIATE_OR_CANCEL,
            reduce_only=reduce_only,
            trigger_price=trigger_price,
            order_expiry=self._default_order_expiry(order_expiry),
        )
        return self.create_order(order, nonce=nonce, expired_at=expired_at)

    def create_sl_order(
        self,
        market_index: int,
        client_order_index: int,
        base_amount: int,
        trigger_price: int,
        price: int,
        is_ask: bool,
        reduce_only: bool = False,
        limit: bool = False,
        order_expiry: Optional[int] = None,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """Stop-loss order; ``limit=True`` rests at *price* once triggered."""
        order_type = c.ORDER_TYPE_STOP_LOSS_LIMIT if limit else c.ORDER_TYPE_STOP_LOSS
        return self._trigger_order(
            order_type, market_index, client_order_index, base_amount, trigger_price,
            price, is_ask, reduce_only, order_expiry, nonce, expired_at,
        )

    def create_tp_order(
        self,
        market_index: int,
        client_order_index: int,
        base_amount: int,
        trigger_price: int,
        price: int,
        is_ask: bool,
        reduce_only: bool = False,
        limit: bool = False,
        order_expiry: Optional[int] = None,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """Take-profit order; ``limit=True`` rests at *price* once triggered."""
        order_type = c.ORDER_TYPE_TAKE_PROFIT_LIMIT if limit else c.ORDER_TYPE_TAKE_PROFIT
        return self._trigger_order(
            order_type, market_index, client_order_index, base_amount, trigger_price,
            price, is_ask, reduce_only, order_expiry, nonce, expired_at,
        )

    def cancel_order(
        self, market_index: int, index: int, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        """
        Cancel by order index.  Whether the order exists is for the
        exchange to decide; this only signs the request.
        """
        return self.sign(CancelOrder(market_index=market_index, index=index), nonce=nonce, expired_at=expired_at)

    def cancel_all_orders(
        self, time_in_force: int, time: int = 0, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        return self.sign(
            CancelAllOrders(time_in_force=time_in_force, time=time), nonce=nonce, expired_at=expired_at
        )

    def modify_order(
        self,
        market_index: int,
        index: int,
        base_amount: int,
        price: int,
        trigger_price: int = c.NIL_TRIGGER_PRICE,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        order = ModifyOrder(
            market_index=market_index,
            index=index,
            base_amount=base_amount,
            price=price,
            trigger_price=trigger_price,
        )
        return self.sign(order, nonce=nonce, expired_at=expired_at)

    # ── funds / pools / account ────────────────────────────────────────

    def transfer(
        self,
        to_account_index: int,
        usdc_amount: int,
        fee: int = 0,
        memo: Optional[bytes] = None,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        payload = Transfer(
            to_account_index=to_account_index,
            usdc_amount=usdc_amount,
            fee=fee,
            memo=bytes(c.MEMO_LENGTH) if memo is None else memo,
        )
        return self.sign(payload, nonce=nonce, expired_at=expired_at)

    def withdraw(
        self, usdc_amount: int, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        return self.sign(Withdraw(usdc_amount=usdc_amount), nonce=nonce, expired_at=expired_at)

    def create_public_pool(
        self,
        operator_fee: int,
        initial_total_shares: int,
        min_operator_share_rate: int,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        payload = CreatePublicPool(
            operator_fee=operator_fee,
            initial_total_shares=initial_total_shares,
            min_operator_share_rate=min_operator_share_rate,
        )
        return self.sign(payload, nonce=nonce, expired_at=expired_at)

    def mint_shares(
        self, public_pool_index: int, share_amount: int, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        payload = MintShares(public_pool_index=public_pool_index, share_amount=share_amount)
        return self.sign(payload, nonce=nonce, expired_at=expired_at)

    def burn_shares(
        self, public_pool_index: int, share_amount: int, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        payload = BurnShares(public_pool_index=public_pool_index, share_amount=share_amount)
        return self.sign(payload, nonce=nonce, expired_at=expired_at)

    def update_leverage(
        self,
        market_index: int,
        initial_margin_fraction: int,
        margin_mode: int = c.MARGIN_MODE_CROSS,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        payload = UpdateLeverage(
            market_index=market_index,
            initial_margin_fraction=initial_margin_fraction,
            margin_mode=margin_mode,
        )
        return self.sign(payload, nonce=nonce, expired_at=expired_at)

    def update_leverage_with_multiplier(
        self,
        market_index: int,
        leverage: int,
        margin_mode: int = c.MARGIN_MODE_CROSS,
        nonce: Optional[int] = None,
        expired_at: Optional[int] = None,
    ) -> SignedTransaction:
        """Same as ``update_leverage`` but takes ``5`` for 5x."""
        return self.update_leverage(
            market_index, leverage_to_margin_fraction(leverage), margin_mode, nonce=nonce, expired_at=expired_at
        )

    def change_pub_key(
        self, new_pub_key: bytes, nonce: Optional[int] = None, expired_at: Optional[int] = None
    ) -> SignedTransaction:
        """Rotate the public key registered at this client's ``api_key_index``."""
        return self.sign(ChangePubKey(pub_key=new_pub_key), nonce=nonce, expired_at=expired_at)


def format_tx_response(signed: SignedTransaction, result: Optional[SubmissionResult] = None) -> str:
    """
    Return a human-friendly multi-line summary of a transaction.

    *result* is omitted for transactions that were only signed.
    """
    lines = [
        "─── Transaction ──────────────────────────────",
        f"  Kind          : {signed.kind.name}",
        f"  Account       : {signed.envelope.account_index}",
        f"  API Key Index : {signed.envelope.api_key_index}",
        f"  Nonce         : {signed.nonce}",
        f"  Expires At    : {signed.envelope.expired_at}",
        f"  Tx Hash       : {signed.tx_hash}",
    ]
    if result is None:
        lines.append("  Status        : SIGNED (not submitted)")
    else:
        lines.append(f"  Status        : {'ACCEPTED' if result.ok else 'REJECTED'} (code {result.code})")
        if result.message:
            lines.append(f"  Message       : {result.message}")
        if result.tx_hash:
            lines.append(f"  Exchange Hash : {result.tx_hash}")
    lines.append("───────────────────────────────────────────────")
    return "\n".join(lines)
