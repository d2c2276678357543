"""Utility modules for multicoin."""

from multicoin.utils.locks import LockTimeoutError, WalletLock, get_wallet_lock

__all__ = ["LockTimeoutError", "WalletLock", "get_wallet_lock"]
