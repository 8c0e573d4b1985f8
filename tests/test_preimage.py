from __future__ import annotations

import pytest

from lighter_tx import constants as c
from lighter_tx.errors import EncodingError, MissingFieldError
from lighter_tx.preimage import PREIMAGE_SPECS, build_preimage, check_payload, preimage_layout
from lighter_tx.types import (
    BurnShares,
    CancelAllOrders,
    CancelOrder,
    ChangePubKey,
    CreateOrder,
    CreatePublicPool,
    MintShares,
    ModifyOrder,
    TransactionEnvelope,
    Transfer,
    TxKind,
    UpdateLeverage,
    Withdraw,
)

from .conftest import NOW_MS, StubCrypto

HEAD = ["chain_id", "tx_type", "nonce", "expired_at", "account_index", "api_key_index"]

EXPECTED_LAYOUTS = {
    TxKind.CREATE_ORDER: HEAD + [
        "market_index", "client_order_index", "base_amount", "price", "is_ask",
        "order_type", "time_in_force", "reduce_only", "trigger_price", "order_expiry",
    ],
    TxKind.CANCEL_ORDER: HEAD + ["market_index", "index"],
    TxKind.CANCEL_ALL_ORDERS: HEAD + ["time_in_force", "time"],
    TxKind.MODIFY_ORDER: HEAD + ["market_index", "index", "base_amount", "price", "trigger_price"],
    TxKind.TRANSFER: HEAD + ["to_account_index", "usdc_amount[0]", "usdc_amount[1]", "fee"]
    + [f"memo[{i}]" for i in range(8)],
    TxKind.WITHDRAW: HEAD + ["usdc_amount[0]", "usdc_amount[1]"],
    TxKind.CREATE_PUBLIC_POOL: HEAD + ["operator_fee", "initial_total_shares", "min_operator_share_rate"],
    TxKind.MINT_SHARES: HEAD + ["public_pool_index", "share_amount"],
    TxKind.BURN_SHARES: HEAD + ["public_pool_index", "share_amount"],
    TxKind.UPDATE_LEVERAGE: HEAD + ["market_index", "initial_margin_fraction", "margin_mode"],
    TxKind.CHANGE_PUB_KEY: HEAD + [f"pub_key[{i}]" for i in range(5)],
}

SAMPLE_PAYLOADS = [
    CreateOrder(
        market_index=0, client_order_index=7, base_amount=100, price=3_000_000_000, is_ask=False,
        order_type=c.ORDER_TYPE_LIMIT, time_in_force=c.TIME_IN_FORCE_GOOD_TILL_TIME,
        order_expiry=NOW_MS + c.DEFAULT_ORDER_EXPIRY_MS,
    ),
    CancelOrder(market_index=1, index=99),
    CancelAllOrders(time_in_force=c.TIME_IN_FORCE_IMMEDIATE_OR_CANCEL, time=0),
    ModifyOrder(market_index=0, index=7, base_amount=200, price=2_940_000_000),
    Transfer(to_account_index=77, usdc_amount=(3 << 32) | 9, fee=1, memo=bytes(range(32))),
    Withdraw(usdc_amount=5_000_000),
    CreatePublicPool(operator_fee=100, initial_total_shares=1_000_000, min_operator_share_rate=500),
    MintShares(public_pool_index=281474976710000, share_amount=10),
    BurnShares(public_pool_index=281474976710000, share_amount=4),
    UpdateLeverage(market_index=0, initial_margin_fraction=2_000, margin_mode=c.MARGIN_MODE_ISOLATED),
    ChangePubKey(pub_key=bytes(range(40))),
]


def _envelope(kind: TxKind, nonce: int = 1) -> TransactionEnvelope:
    return TransactionEnvelope(
        chain_id=304,
        tx_type=kind,
        account_index=42,
        api_key_index=3,
        nonce=nonce,
        expired_at=NOW_MS + c.DEFAULT_TX_EXPIRY_MS,
    )


def test_every_kind_has_a_layout() -> None:
    assert set(PREIMAGE_SPECS) == set(TxKind)
    assert {p.KIND for p in SAMPLE_PAYLOADS} == set(TxKind)


@pytest.mark.parametrize("kind", list(TxKind), ids=lambda k: k.name)
def test_layout_matches_documented_order(kind: TxKind) -> None:
    assert preimage_layout(kind) == EXPECTED_LAYOUTS[kind]


@pytest.mark.parametrize("payload", SAMPLE_PAYLOADS, ids=lambda p: p.KIND.name)
def test_preimage_length_and_head(payload) -> None:
    elements = build_preimage(_envelope(payload.KIND), payload)

    assert len(elements) == len(EXPECTED_LAYOUTS[payload.KIND])
    # Nonce and expiry sit at fixed early positions for every kind.
    assert elements[:6] == [304, int(payload.KIND), 1, NOW_MS + c.DEFAULT_TX_EXPIRY_MS, 42, 3]


def test_create_order_known_good_fixture() -> None:
    payload = SAMPLE_PAYLOADS[0]
    elements = build_preimage(_envelope(TxKind.CREATE_ORDER), payload)

    assert elements == [
        304, 14, 1, 1_700_000_599_000, 42, 3,
        0, 7, 100, 3_000_000_000, 0, 0, 1, 0, 0, 1_702_419_200_000,
    ]


def test_reordering_any_field_changes_the_digest() -> None:
    crypto = StubCrypto()
    elements = build_preimage(_envelope(TxKind.CREATE_ORDER), SAMPLE_PAYLOADS[0])
    reference = crypto.hash_elements(elements)

    for i in range(len(elements)):
        for j in range(i + 1, len(elements)):
            if elements[i] == elements[j]:
                continue
            swapped = list(elements)
            swapped[i], swapped[j] = swapped[j], swapped[i]
            assert crypto.hash_elements(swapped) != reference


def test_shared_fields_sit_at_kind_specific_positions() -> None:
    create = preimage_layout(TxKind.CREATE_ORDER)
    modify = preimage_layout(TxKind.MODIFY_ORDER)
    assert create.index("base_amount") == 8
    assert modify.index("base_amount") == 8
    assert create.index("trigger_price") == 14
    assert modify.index("trigger_price") == 10


def test_transfer_amount_and_memo_limbs() -> None:
    payload = SAMPLE_PAYLOADS[4]
    elements = build_preimage(_envelope(TxKind.TRANSFER), payload)
    assert elements[6:10] == [77, 9, 3, 1]
    assert elements[10] == int.from_bytes(bytes([0, 1, 2, 3]), "little")


def test_modify_without_index_is_missing_field() -> None:
    payload = ModifyOrder(market_index=0, base_amount=100, price=1)
    with pytest.raises(MissingFieldError) as exc:
        check_payload(payload)
    assert exc.value.field == "index"
    assert exc.value.kind == "MODIFY_ORDER"


def test_envelope_kind_mismatch_is_rejected() -> None:
    with pytest.raises(EncodingError, match="does not match"):
        build_preimage(_envelope(TxKind.CANCEL_ORDER), SAMPLE_PAYLOADS[0])


def test_out_of_range_envelope_field_is_rejected() -> None:
    envelope = TransactionEnvelope(
        chain_id=304, tx_type=TxKind.CANCEL_ORDER, account_index=42, api_key_index=256, nonce=1, expired_at=1
    )
    with pytest.raises(EncodingError) as exc:
        build_preimage(envelope, CancelOrder(market_index=0, index=1))
    assert exc.value.field == "api_key_index"


def test_build_is_repeatable() -> None:
    payload = SAMPLE_PAYLOADS[0]
    assert build_preimage(_envelope(TxKind.CREATE_ORDER), payload) == build_preimage(
        _envelope(TxKind.CREATE_ORDER), payload
    )
