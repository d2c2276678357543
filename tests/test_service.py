"""Tests for the wallet service."""

import json

import pytest

from multicoin.service import WalletOptions, WalletService, new_wallet_filename
from multicoin.wallet.coins import CoinType
from multicoin.wallet.deterministic import DeterministicWallet
from multicoin.wallet.errors import (
    FingerprintUnavailableError,
    InvalidPasswordError,
    SeedMismatchError,
    ValidationError,
    WalletEncryptedError,
    WalletExistsError,
    WalletNotEncryptedError,
    WalletNotFoundError,
)
from multicoin.wallet.readable import load_wallet

SEED = "service test seed"
PASSWORD = "pwd"


@pytest.fixture
def service(settings) -> WalletService:
    return WalletService(settings)


class TestCreateWallet:
    """Tests for wallet creation."""

    def test_create(self, service, settings):
        """Test that a created wallet is saved and loaded."""
        w = service.create_wallet("a", WalletOptions(label="savings", seed=SEED, generate_n=2))

        assert service.wallet_dir() == settings.wallet_path
        assert w.filename == "a.wlt"
        assert w.label == "savings"
        assert w.entries_len() == 2
        assert (settings.wallet_path / "a.wlt").exists()
        assert service.get_wallet("a.wlt").get_addresses() == w.get_addresses()

    def test_create_defaults(self, service, settings):
        """Test defaults for coin, count, seed and file name."""
        w = service.create_wallet()

        assert w.filename.endswith(settings.wallet_file_ext)
        assert w.coin is CoinType.SKYCOIN
        assert w.entries_len() == settings.default_address_count
        assert len(w.meta.seed.split()) == 12

    def test_create_coin(self, service):
        """Test creating a wallet for another coin."""
        w = service.create_wallet("eth", WalletOptions(coin="ethereum", seed=SEED))

        assert w.coin is CoinType.ETHEREUM
        assert str(w.get_addresses()[0]).startswith("0x")

    def test_create_encrypted(self, service, settings):
        """Test that an encrypted wallet is saved without secrets."""
        w = service.create_wallet(
            "enc", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=2)
        )

        assert w.is_encrypted()
        data = json.loads((settings.wallet_path / "enc.wlt").read_text())
        assert data["meta"]["seed"] == ""
        assert data["meta"]["encrypted"] is True
        assert all(e["secret_key"] == "" for e in data["entries"])

    def test_create_encrypted_without_password(self, service):
        """Test that encryption needs a password."""
        with pytest.raises(ValidationError):
            service.create_wallet("enc", WalletOptions(seed=SEED, encrypt=True))

    def test_create_existing(self, service):
        """Test that file names cannot be reused."""
        service.create_wallet("a.wlt", WalletOptions(seed=SEED))

        with pytest.raises(WalletExistsError):
            service.create_wallet("a.wlt", WalletOptions(seed="other"))

    def test_create_unknown_coin(self, service):
        """Test that unsupported coins are rejected."""
        with pytest.raises(ValidationError):
            service.create_wallet("x", WalletOptions(coin="dogecoin", seed=SEED))

    def test_create_too_many(self, service, settings):
        """Test that the address count is bounded."""
        with pytest.raises(ValueError):
            service.create_wallet("x", WalletOptions(seed=SEED, generate_n=settings.max_address_count + 1))

    def test_wallets_reload(self, service, settings):
        """Test that a new service loads previously saved wallets."""
        w = service.create_wallet("a", WalletOptions(seed=SEED, generate_n=3))

        other = WalletService(settings)

        assert set(other.get_wallets()) == {"a.wlt"}
        assert other.get_wallet("a.wlt").get_addresses() == w.get_addresses()


class TestNewAddresses:
    """Tests for deriving addresses through the service."""

    def test_new_addresses(self, service, settings):
        """Test that new addresses continue the chain and are persisted."""
        service.create_wallet("a", WalletOptions(seed=SEED, generate_n=2))

        addrs = service.new_addresses("a.wlt", 3)

        reference = DeterministicWallet.new("ref.wlt", CoinType.SKYCOIN, SEED)
        assert service.get_wallet("a.wlt").get_addresses() == reference.generate_addresses(5)
        assert addrs == service.get_wallet("a.wlt").get_addresses()[2:]
        assert load_wallet(settings.wallet_path / "a.wlt").entries_len() == 5

    def test_new_addresses_encrypted(self, service):
        """Test that encrypted wallets derive with the password and stay encrypted."""
        service.create_wallet("enc", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=1))

        addrs = service.new_addresses("enc.wlt", 2, PASSWORD)

        w = service.get_wallet("enc.wlt")
        assert w.is_encrypted()
        assert w.entries_len() == 3
        assert w.get_addresses()[1:] == addrs

    def test_new_addresses_encrypted_without_password(self, service):
        """Test that encrypted wallets need a password to derive."""
        service.create_wallet("enc", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD))

        with pytest.raises(WalletEncryptedError):
            service.new_addresses("enc.wlt", 1)

    def test_new_addresses_wrong_password(self, service):
        """Test that a wrong password leaves the wallet unchanged."""
        service.create_wallet("enc", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=1))

        with pytest.raises(InvalidPasswordError):
            service.new_addresses("enc.wlt", 1, "wrong")
        assert service.get_wallet("enc.wlt").entries_len() == 1

    def test_unknown_wallet(self, service):
        """Test that unknown wallet ids are reported."""
        with pytest.raises(WalletNotFoundError):
            service.new_addresses("missing.wlt", 1)

    def test_save_failure_keeps_loaded_wallet(self, service, monkeypatch):
        """Test that a failed save leaves the loaded wallet unchanged."""
        service.create_wallet("a", WalletOptions(seed=SEED, generate_n=1))

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("multicoin.service.save_wallet", fail)

        with pytest.raises(OSError):
            service.new_addresses("a.wlt", 2)
        assert service.get_wallet("a.wlt").entries_len() == 1


class TestEncryption:
    """Tests for encrypting and decrypting through the service."""

    def test_encrypt_decrypt(self, service):
        """Test a full encrypt and decrypt cycle."""
        created = service.create_wallet("a", WalletOptions(seed=SEED, generate_n=2))

        assert service.encrypt_wallet("a.wlt", PASSWORD).is_encrypted()
        decrypted = service.decrypt_wallet("a.wlt", PASSWORD)

        assert not decrypted.is_encrypted()
        assert decrypted.get_entries() == created.get_entries()

    def test_encrypt_twice(self, service):
        """Test that encrypting an encrypted wallet fails."""
        service.create_wallet("a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD))

        with pytest.raises(WalletEncryptedError):
            service.encrypt_wallet("a.wlt", PASSWORD)

    def test_decrypt_plain(self, service):
        """Test that decrypting a plain wallet fails."""
        service.create_wallet("a", WalletOptions(seed=SEED))

        with pytest.raises(WalletNotEncryptedError):
            service.decrypt_wallet("a.wlt", PASSWORD)

    def test_get_seed(self, service):
        """Test that the seed of an encrypted wallet can be revealed."""
        service.create_wallet("a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD))

        assert service.get_wallet_seed("a.wlt", PASSWORD) == SEED

    def test_get_seed_plain(self, service):
        """Test that plain wallets do not reveal their seed this way."""
        service.create_wallet("a", WalletOptions(seed=SEED))

        with pytest.raises(WalletNotEncryptedError):
            service.get_wallet_seed("a.wlt", PASSWORD)


class TestRecoverWallet:
    """Tests for recovering encrypted wallets from their seed."""

    def test_recover(self, service):
        """Test that the right seed recovers the wallet."""
        created = service.create_wallet(
            "a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=3)
        )

        recovered = service.recover_wallet("a.wlt", SEED)

        assert not recovered.is_encrypted()
        assert recovered.get_addresses() == created.get_addresses()
        assert recovered.meta.seed == SEED

    def test_recover_with_new_password(self, service):
        """Test that a recovered wallet can be encrypted with a new password."""
        service.create_wallet("a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=1))

        service.recover_wallet("a.wlt", SEED, "new password")

        assert service.get_wallet_seed("a.wlt", "new password") == SEED

    def test_recover_wrong_seed(self, service):
        """Test that a different seed is rejected."""
        service.create_wallet("a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=1))

        with pytest.raises(SeedMismatchError):
            service.recover_wallet("a.wlt", "wrong seed")
        assert service.get_wallet("a.wlt").is_encrypted()

    def test_recover_plain(self, service):
        """Test that plain wallets need no recovery."""
        service.create_wallet("a", WalletOptions(seed=SEED))

        with pytest.raises(WalletNotEncryptedError):
            service.recover_wallet("a.wlt", SEED)

    def test_recover_empty(self, service):
        """Test that an encrypted wallet without addresses cannot be checked."""
        service.create_wallet("a", WalletOptions(seed=SEED, encrypt=True, password=PASSWORD, generate_n=0))

        with pytest.raises(FingerprintUnavailableError):
            service.recover_wallet("a.wlt", SEED)


class TestWalletManagement:
    """Tests for labels, reset and unloading."""

    def test_update_label(self, service, settings):
        """Test that label changes are persisted."""
        service.create_wallet("a", WalletOptions(seed=SEED))

        service.update_wallet_label("a.wlt", "renamed")

        assert service.get_wallet("a.wlt").label == "renamed"
        assert load_wallet(settings.wallet_path / "a.wlt").label == "renamed"

    def test_reset(self, service):
        """Test that reset drops entries and rewinds the chain."""
        service.create_wallet("a", WalletOptions(seed=SEED, generate_n=4))

        w = service.reset_wallet("a.wlt")

        assert w.entries_len() == 0
        assert w.meta.last_seed == SEED

    def test_get_wallet_is_copy(self, service):
        """Test that returned wallets do not alias the loaded ones."""
        service.create_wallet("a", WalletOptions(seed=SEED, generate_n=1))

        service.get_wallet("a.wlt").generate_addresses(5)

        assert service.get_wallet("a.wlt").entries_len() == 1

    def test_unload(self, service, settings):
        """Test that unloading keeps the file."""
        service.create_wallet("a", WalletOptions(seed=SEED))

        service.unload_wallet("a.wlt")

        with pytest.raises(WalletNotFoundError):
            service.get_wallet("a.wlt")
        with pytest.raises(WalletNotFoundError):
            service.unload_wallet("a.wlt")
        assert (settings.wallet_path / "a.wlt").exists()


def test_new_wallet_filename():
    """Test generated wallet file names."""
    name = new_wallet_filename(".wlt")

    assert name.endswith(".wlt")
    assert name.count("_") == 3
