"""
Environment-based settings.

Values come from the process environment, optionally seeded from a
``.env`` file via ``python-dotenv``:

    LIGHTER_API_URL         exchange base URL (default: mainnet)
    LIGHTER_API_KEY         API private key, hex (required)
    LIGHTER_ACCOUNT_INDEX   account index (required)
    LIGHTER_API_KEY_INDEX   API key index (default 0)
    LIGHTER_CHAIN_ID        304 mainnet / 300 testnet (default 304)
    LIGHTER_CRYPTO_BACKEND  "package.module:attr" of the Poseidon/Schnorr backend (required)
    LIGHTER_HTTP_TIMEOUT    request timeout in seconds (default 10)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .constants import CHAIN_ID_MAINNET, MAINNET_URL


@dataclass(frozen=True)
class Settings:
    private_key: str = field(repr=False)
    account_index: int
    crypto_backend: str
    api_key_index: int = 0
    chain_id: int = CHAIN_ID_MAINNET
    api_url: str = MAINNET_URL
    timeout: float = 10.0


def _required(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing configuration: set {name} in a .env file or as an environment variable.")
    return value


def _number(name: str, default: Optional[str], cast=int):
    raw = os.getenv(name) or default
    if raw is None:
        raw = _required(name)
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"Invalid {name}={raw!r}: expected a number.") from None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load ``Settings`` from the environment.

    Parameters
    ----------
    env_file : str, optional
        Path of a ``.env`` file to load first.  Variables already set in
        the environment win.

    Raises
    ------
    RuntimeError
        If a required variable is missing or a number does not parse.
    """
    load_dotenv(env_file)

    return Settings(
        private_key=_required("LIGHTER_API_KEY"),
        account_index=_number("LIGHTER_ACCOUNT_INDEX", None),
        crypto_backend=_required("LIGHTER_CRYPTO_BACKEND"),
        api_key_index=_number("LIGHTER_API_KEY_INDEX", "0"),
        chain_id=_number("LIGHTER_CHAIN_ID", str(CHAIN_ID_MAINNET)),
        api_url=os.getenv("LIGHTER_API_URL") or MAINNET_URL,
        timeout=_number("LIGHTER_HTTP_TIMEOUT", "10", float),
    )
