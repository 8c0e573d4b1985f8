"""
Protocol constants for the Lighter order-book exchange.

Tx-type tags, order enums and sizes mirror what the exchange's verifier
expects.  Changing any value here changes every hash the pipeline produces.
"""

# ── Endpoints / chains ─────────────────────────────────────────────────────

MAINNET_URL = "https://mainnet.zklighter.elliot.ai"
TESTNET_URL = "https://testnet.zklighter.elliot.ai"

CHAIN_ID_MAINNET = 304
CHAIN_ID_TESTNET = 300

SEND_TX_PATH = "/api/v1/sendTx"
NEXT_NONCE_PATH = "/api/v1/nextNonce"

CODE_OK = 200

# ── Transaction type tags ──────────────────────────────────────────────────

TX_TYPE_CHANGE_PUB_KEY = 8
TX_TYPE_CREATE_PUBLIC_POOL = 10
TX_TYPE_TRANSFER = 12
TX_TYPE_WITHDRAW = 13
TX_TYPE_CREATE_ORDER = 14
TX_TYPE_CANCEL_ORDER = 15
TX_TYPE_CANCEL_ALL_ORDERS = 16
TX_TYPE_MODIFY_ORDER = 17
TX_TYPE_MINT_SHARES = 18
TX_TYPE_BURN_SHARES = 19
TX_TYPE_UPDATE_LEVERAGE = 20

# ── Orders ─────────────────────────────────────────────────────────────────

ORDER_TYPE_LIMIT = 0
ORDER_TYPE_MARKET = 1
ORDER_TYPE_STOP_LOSS = 2
ORDER_TYPE_STOP_LOSS_LIMIT = 3
ORDER_TYPE_TAKE_PROFIT = 4
ORDER_TYPE_TAKE_PROFIT_LIMIT = 5
ORDER_TYPE_TWAP = 6

TRIGGER_ORDER_TYPES = (
    ORDER_TYPE_STOP_LOSS,
    ORDER_TYPE_STOP_LOSS_LIMIT,
    ORDER_TYPE_TAKE_PROFIT,
    ORDER_TYPE_TAKE_PROFIT_LIMIT,
)

TIME_IN_FORCE_IMMEDIATE_OR_CANCEL = 0
TIME_IN_FORCE_GOOD_TILL_TIME = 1
TIME_IN_FORCE_POST_ONLY = 2

NIL_ORDER_EXPIRY = 0
NIL_TRIGGER_PRICE = 0

MARGIN_MODE_CROSS = 0
MARGIN_MODE_ISOLATED = 1

# Initial margin fraction is expressed in 1/10_000ths (10_000 == 1x).
MARGIN_FRACTION_TICKS = 10_000

# ── Time horizons (milliseconds) ───────────────────────────────────────────

DEFAULT_TX_EXPIRY_MS = 10 * 60 * 1000 - 1000       # 10 min minus 1 s
DEFAULT_ORDER_EXPIRY_MS = 28 * 24 * 60 * 60 * 1000  # 28 days

# ── Cryptography ───────────────────────────────────────────────────────────

# Goldilocks prime: every preimage element must be strictly below it.
GOLDILOCKS_MODULUS = 2**64 - 2**32 + 1

# Order of the ECgFp5 prime-order group; private scalars live in [1, n).
ECGFP5_SCALAR_ORDER = int(
    "1067993516717146951041484916571792702745057740581727230159139685185762082554198619328292418486241"
)

PRIVATE_KEY_LENGTH = 40
LEGACY_PRIVATE_KEY_LENGTH = 32
PUBLIC_KEY_LENGTH = 40
DIGEST_LENGTH = 40
SIGNATURE_LENGTH = 80
MEMO_LENGTH = 32
