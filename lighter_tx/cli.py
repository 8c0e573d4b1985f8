"""
CLI entry point for signing and submitting Lighter transactions.

Usage examples
--------------
Limit order (signed and sent)::

    lighter-tx limit --market 0 --side BUY --size 0.0001 --price 2950

Market order, signed only::

    lighter-tx market --market 0 --side SELL --size 0.0001 --price 2900 --dry-run --nonce 12

Cancel / leverage / nonce::

    lighter-tx cancel --market 0 --index 1718000000000
    lighter-tx leverage --market 0 --leverage 5 --margin-mode cross
    lighter-tx nonce
"""

from __future__ import annotations

import argparse
import json
import sys
import time

from .config import load_settings
from .errors import LighterTxError
from .logging_config import setup_logging
from .tx_client import TxClient, format_tx_response
from .validators import scale_amount, validate_margin_mode, validate_side
from .wire import encode_transaction

# ── Argument parser ────────────────────────────────────────────────────────


def _add_common(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--nonce", type=int, default=None, help="Explicit nonce (skips the nonce fetch)")
    sub.add_argument("--dry-run", action="store_true", help="Sign and print the payload without sending")


def _add_order(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--market", type=int, required=True, help="Market index (e.g. 0 for ETH)")
    sub.add_argument("--side", required=True, choices=["BUY", "SELL", "buy", "sell"], help="Order side")
    sub.add_argument("--size", required=True, help="Base amount, human units (e.g. 0.0001)")
    sub.add_argument("--price", required=True, help="Limit / worst acceptable price, human units")
    sub.add_argument("--size-decimals", type=int, default=6, help="Market size decimals (default 6)")
    sub.add_argument("--price-decimals", type=int, default=6, help="Market price decimals (default 6)")
    sub.add_argument("--reduce-only", action="store_true", help="Only reduce an existing position")
    sub.add_argument("--client-order-index", type=int, default=None, help="Defaults to the current time in ms")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighter-tx",
        description="Sign and submit Lighter exchange transactions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  lighter-tx limit  --market 0 --side BUY  --size 0.0001 --price 2950\n"
            "  lighter-tx market --market 0 --side SELL --size 0.0001 --price 2900 --reduce-only\n"
            "  lighter-tx cancel --market 0 --index 1718000000000\n"
        ),
    )
    parser.add_argument("--env-file", default=".env", help="Path to a .env file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    limit = subparsers.add_parser("limit", help="Place a good-till-time limit order")
    _add_order(limit)
    limit.add_argument("--post-only", action="store_true", help="Reject instead of taking liquidity")
    _add_common(limit)

    market = subparsers.add_parser("market", help="Place an immediate-or-cancel market order")
    _add_order(market)
    _add_common(market)

    cancel = subparsers.add_parser("cancel", help="Cancel an order by index")
    cancel.add_argument("--market", type=int, required=True, help="Market index")
    cancel.add_argument("--index", type=int, required=True, help="Client order index or order index")
    _add_common(cancel)

    leverage = subparsers.add_parser("leverage", help="Change leverage on a market")
    leverage.add_argument("--market", type=int, required=True, help="Market index")
    leverage.add_argument("--leverage", type=int, required=True, help="Multiplier, e.g. 5 for 5x")
    leverage.add_argument("--margin-mode", default="cross", help="cross or isolated")
    _add_common(leverage)

    subparsers.add_parser("nonce", help="Show the next nonce the exchange expects")
    return parser


def _sign(client: TxClient, args: argparse.Namespace):
    if args.command in ("limit", "market"):
        is_ask = validate_side(args.side)
        base_amount = scale_amount(args.size, args.size_decimals, "size")
        price = scale_amount(args.price, args.price_decimals, "price")
        client_order_index = args.client_order_index
        if client_order_index is None:
            client_order_index = int(time.time() * 1000)

        if args.command == "limit":
            return client.create_limit_order(
                args.market, client_order_index, base_amount, price, is_ask,
                reduce_only=args.reduce_only, post_only=args.post_only, nonce=args.nonce,
            )
        return client.create_market_order(
            args.market, client_order_index, base_amount, price, is_ask,
            reduce_only=args.reduce_only, nonce=args.nonce,
        )

    if args.command == "cancel":
        return client.cancel_order(args.market, args.index, nonce=args.nonce)

    return client.update_leverage_with_multiplier(
        args.market, args.leverage, validate_margin_mode(args.margin_mode), nonce=args.nonce,
    )


# ── Main ───────────────────────────────────────────────────────────────────


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(args.env_file)
    except RuntimeError as exc:
        setup_logging().error("%s", exc)
        sys.exit(1)

    logger = setup_logging(secrets=[settings.private_key])

    try:
        client = TxClient.from_settings(settings)
    except (LighterTxError, ValueError, ImportError) as exc:
        logger.error("Cannot initialise client: %s", exc)
        sys.exit(1)

    with client:
        if args.command == "nonce":
            try:
                nonce = client.http.next_nonce(settings.account_index, settings.api_key_index)
            except LighterTxError as exc:
                logger.error("Nonce query failed: %s", exc)
                sys.exit(1)
            print(f"Next nonce: {nonce}")
            return

        # --- Sign -----------------------------------------------------------
        try:
            signed = _sign(client, args)
        except LighterTxError as exc:
            logger.error("Transaction not built: %s", exc)
            sys.exit(1)

        if args.dry_run:
            print(format_tx_response(signed))
            print(json.dumps(encode_transaction(signed), indent=2))
            return

        # --- Submit ---------------------------------------------------------
        try:
            result = client.send(signed)
        except LighterTxError as exc:
            logger.error("Submission failed: %s", exc)
            print(f"\n✗ Transaction NOT delivered – {exc}")
            sys.exit(1)

    print(format_tx_response(signed, result))
    if result.ok:
        print("✓ Transaction accepted!\n")
    else:
        print("✗ Transaction rejected by the exchange.\n")
        sys.exit(2)


if __name__ == "__main__":
    main()
