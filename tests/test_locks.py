"""Tests for per-wallet locks."""

import threading
import time

import pytest

from multicoin.utils.locks import (
    LockTimeoutError,
    WalletLock,
    clear_wallet_locks,
    get_wallet_lock,
    wallet_lock,
)


class TestWalletLocks:
    """Tests for the concurrency locks module."""

    @pytest.fixture(autouse=True)
    def setup(self):
        """Clear locks before each test."""
        clear_wallet_locks()

    def test_get_wallet_lock_reuses_lock(self):
        """Test that get_wallet_lock returns the same lock for a wallet."""
        assert get_wallet_lock("a.wlt") is get_wallet_lock("a.wlt")

    def test_different_wallets_get_different_locks(self):
        """Test that different wallets get different locks."""
        assert get_wallet_lock("a.wlt") is not get_wallet_lock("b.wlt")

    def test_context_manager(self):
        """Test WalletLock as context manager."""
        with WalletLock("a.wlt", operation="test"):
            lock = get_wallet_lock("a.wlt")
            assert lock.locked()

        # Lock should be released after context
        assert not lock.locked()

    def test_released_on_error(self):
        """Test that the lock is released when the body raises."""
        with pytest.raises(RuntimeError):
            with wallet_lock("a.wlt", operation="failing"):
                raise RuntimeError("boom")

        assert not get_wallet_lock("a.wlt").locked()

    def test_prevents_concurrent_access(self):
        """Test that two threads on one wallet run one after the other."""
        results = []

        def task(name):
            with WalletLock("a.wlt", timeout=10.0, operation=f"task_{name}"):
                results.append(f"{name}_start")
                time.sleep(0.05)
                results.append(f"{name}_end")

        threads = [threading.Thread(target=task, args=(n,)) for n in ("A", "B")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results in [
            ["A_start", "A_end", "B_start", "B_end"],
            ["B_start", "B_end", "A_start", "A_end"],
        ]

    def test_timeout(self):
        """Test that a held lock times out other callers."""
        lock = get_wallet_lock("a.wlt")
        lock.acquire()
        try:
            with pytest.raises(LockTimeoutError):
                with WalletLock("a.wlt", timeout=0.05):
                    pass
        finally:
            lock.release()
