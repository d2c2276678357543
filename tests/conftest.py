"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["MULTICOIN_ENVIRONMENT"] = "test"
os.environ["MULTICOIN_KDF_ITERATIONS"] = "1000"
os.environ["MULTICOIN_DEBUG"] = "true"

from multicoin.config import Settings
from multicoin.utils.locks import clear_wallet_locks
from multicoin.wallet.coins import CoinType
from multicoin.wallet.deterministic import DeterministicWallet

TEST_SEED = "correct horse battery staple"
TEST_PASSWORD = "pwd"


@pytest.fixture(autouse=True)
def reset_locks():
    """Start every test with an empty lock registry."""
    clear_wallet_locks()
    yield
    clear_wallet_locks()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temporary wallet directory."""
    return Settings(
        environment="test",
        wallet_dir=str(tmp_path / "wallets"),
        kdf_iterations=1000,
        lock_timeout=5.0,
    )


@pytest.fixture
def wallet() -> DeterministicWallet:
    """Fresh skycoin wallet without entries."""
    return DeterministicWallet.new("test.wlt", CoinType.SKYCOIN, TEST_SEED, label="test")


@pytest.fixture
def wallet_with_entries(wallet) -> DeterministicWallet:
    """Skycoin wallet with three derived addresses."""
    wallet.generate_addresses(3)
    return wallet
