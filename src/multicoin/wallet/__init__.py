"""Deterministic wallet: chained key derivation, entries and persistence."""

from multicoin.wallet.address import Address
from multicoin.wallet.coins import CoinType, get_supported_coins
from multicoin.wallet.deterministic import DeterministicWallet
from multicoin.wallet.entries import Entries, Entry
from multicoin.wallet.meta import Meta, WalletType
from multicoin.wallet.readable import (
    ReadableDeterministicWallet,
    Wallet,
    load_readable_wallet,
    load_wallet,
    save_wallet,
)
from multicoin.wallet.secrets import Secrets

__all__ = [
    "Address",
    "CoinType",
    "DeterministicWallet",
    "Entries",
    "Entry",
    "Meta",
    "ReadableDeterministicWallet",
    "Secrets",
    "Wallet",
    "WalletType",
    "get_supported_coins",
    "load_readable_wallet",
    "load_wallet",
    "save_wallet",
]
