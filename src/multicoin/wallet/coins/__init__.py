"""Coin plugin table.

Each supported coin contributes an address constructor and an address
decoder. Adding a coin means adding a ``CoinType`` member and a row in
``COIN_PLUGINS``; the wallet engine never hard-codes a coin's rules.
"""

from enum import Enum
from typing import Callable, NamedTuple

from multicoin.wallet.address import Address
from multicoin.wallet.coins import bitcoin, ethereum, skycoin
from multicoin.wallet.errors import ValidationError


class CoinType(str, Enum):
    """Supported coins."""

    SKYCOIN = "skycoin"
    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"


class CoinPlugin(NamedTuple):
    """Address capabilities of a coin."""

    address_from_pubkey: Callable[[bytes], Address]
    decode_address: Callable[[str], Address]


COIN_PLUGINS: dict[CoinType, CoinPlugin] = {
    CoinType.SKYCOIN: CoinPlugin(skycoin.address_from_pubkey, skycoin.decode_address),
    CoinType.BITCOIN: CoinPlugin(bitcoin.address_from_pubkey, bitcoin.decode_address),
    CoinType.ETHEREUM: CoinPlugin(ethereum.address_from_pubkey, ethereum.decode_address),
}


def get_supported_coins() -> list[str]:
    """Get list of supported coin names."""
    return [coin.value for coin in COIN_PLUGINS]


def parse_coin_type(coin: str) -> CoinType:
    """Parse a coin name.

    Raises:
        ValidationError: If the coin is not supported
    """
    try:
        return CoinType(coin.lower())
    except ValueError as e:
        raise ValidationError(f"unsupported coin type {coin!r}") from e


def get_coin_plugin(coin: CoinType) -> CoinPlugin:
    """Get the address plugin for a coin.

    Raises:
        ValidationError: If the coin is not supported
    """
    plugin = COIN_PLUGINS.get(coin)
    if plugin is None:
        raise ValidationError(f"unsupported coin type {coin!r}")
    return plugin


__all__ = [
    "COIN_PLUGINS",
    "CoinPlugin",
    "CoinType",
    "get_coin_plugin",
    "get_supported_coins",
    "parse_coin_type",
]
