"""
Input validators for transaction parameters.

Every public function raises ``EncodingError`` (a ``ValueError``) with a
human-readable message when validation fails.  Scaling of human-readable
amounts into integer units happens here, on the caller's side of the
pipeline; the field encoder never scales.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .constants import (
    MARGIN_FRACTION_TICKS,
    MARGIN_MODE_CROSS,
    MARGIN_MODE_ISOLATED,
    NIL_ORDER_EXPIRY,
    NIL_TRIGGER_PRICE,
    TIME_IN_FORCE_IMMEDIATE_OR_CANCEL,
    TRIGGER_ORDER_TYPES,
)
from .errors import EncodingError

VALID_SIDES = ("BUY", "SELL")
MARGIN_MODES = {"CROSS": MARGIN_MODE_CROSS, "ISOLATED": MARGIN_MODE_ISOLATED}


def validate_side(side: str) -> bool:
    """Return ``is_ask`` for a BUY/SELL side string."""
    value = side.strip().upper()
    if value not in VALID_SIDES:
        raise EncodingError("side", side, f"must be one of: {', '.join(VALID_SIDES)}")
    return value == "SELL"


def scale_amount(value: Union[str, int, Decimal], decimals: int, name: str = "amount") -> int:
    """
    Convert a positive decimal amount to integer units with *decimals* places.

    ``scale_amount("0.01", 4)`` -> ``100``.  Amounts finer than the market
    precision are rejected rather than rounded.
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise EncodingError(name, value, "must be a positive number") from None
    if not amount.is_finite() or amount <= 0:
        raise EncodingError(name, value, "must be a positive number")

    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise EncodingError(name, value, f"has more than {decimals} decimal places")
    return int(scaled)


def validate_margin_mode(mode: str) -> int:
    value = mode.strip().upper()
    if value not in MARGIN_MODES:
        raise EncodingError("margin_mode", mode, f"must be one of: {', '.join(MARGIN_MODES)}")
    return MARGIN_MODES[value]


def leverage_to_margin_fraction(leverage: int) -> int:
    """
    Convert an ``Nx`` leverage multiplier to the initial margin fraction.

    The exchange expresses margin in 1/10_000ths, so 5x -> 2_000.
    """
    if isinstance(leverage, bool) or not isinstance(leverage, int):
        raise EncodingError("leverage", leverage, "must be an integer multiplier")
    if leverage < 1 or leverage > MARGIN_FRACTION_TICKS:
        raise EncodingError("leverage", leverage, f"must be between 1 and {MARGIN_FRACTION_TICKS}")
    return MARGIN_FRACTION_TICKS // leverage


def validate_order_expiry(order_type: int, time_in_force: int, order_expiry: int, now_ms: int) -> int:
    """
    Check an order's own expiry against its type and time-in-force.

    - Stop-loss / take-profit orders wait for their trigger and always need
      a non-zero expiry strictly in the future, whatever the time-in-force.
    - Other immediate-or-cancel orders never rest and must carry the nil
      expiry.
    - Everything else (GTT limits, post-only) needs a future expiry too.

    A zero or past expiry is a caller error; it is never replaced with a
    default here.
    """
    if order_type not in TRIGGER_ORDER_TYPES and time_in_force == TIME_IN_FORCE_IMMEDIATE_OR_CANCEL:
        if order_expiry != NIL_ORDER_EXPIRY:
            raise EncodingError("order_expiry", order_expiry, "must be 0 for immediate-or-cancel orders")
        return order_expiry

    if order_expiry == NIL_ORDER_EXPIRY or order_expiry <= now_ms:
        raise EncodingError("order_expiry", order_expiry, "must be a non-zero timestamp in the future")
    return order_expiry


def validate_trigger_price(order_type: int, trigger_price: int) -> int:
    """Stop-loss / take-profit orders need a trigger; other orders must not set one."""
    if order_type in TRIGGER_ORDER_TYPES:
        if trigger_price == NIL_TRIGGER_PRICE:
            raise EncodingError("trigger_price", trigger_price, "required for stop-loss / take-profit orders")
    elif trigger_price != NIL_TRIGGER_PRICE:
        raise EncodingError("trigger_price", trigger_price, "only allowed on stop-loss / take-profit orders")
    return trigger_price
