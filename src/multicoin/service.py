"""Wallet service.

Manages the wallets stored in the configured wallet directory: creating,
deriving addresses, encrypting and decrypting, recovering from a seed and
relabelling. Every mutation runs under the wallet's lock, works on a copy
of the wallet and is written to disk before the in-memory copy is
replaced, so a failed save leaves the loaded wallet as it was.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from multicoin.config import Settings, get_settings
from multicoin.crypto import decrypt_wallet, encrypt_wallet
from multicoin.utils.locks import WalletLock
from multicoin.wallet.address import Address
from multicoin.wallet.coins import parse_coin_type
from multicoin.wallet.deterministic import DeterministicWallet
from multicoin.wallet.errors import (
    SeedMismatchError,
    ValidationError,
    WalletEncryptedError,
    WalletExistsError,
    WalletNotEncryptedError,
    WalletNotFoundError,
)
from multicoin.wallet.keys import new_seed
from multicoin.wallet.readable import Wallet, load_wallet, save_wallet


@dataclass
class WalletOptions:
    """Options for creating a wallet.

    Attributes:
        coin: Coin tag (defaults to settings.default_coin)
        label: Human readable label
        seed: Wallet seed (a new BIP39 mnemonic if empty)
        encrypt: Encrypt the wallet after creation
        password: Password used when ``encrypt`` is set
        generate_n: Addresses to derive (defaults to settings.default_address_count)
    """

    coin: str = ""
    label: str = ""
    seed: str = ""
    encrypt: bool = False
    password: str = ""
    generate_n: Optional[int] = None


def new_wallet_filename(ext: str = ".wlt") -> str:
    """Generate a wallet file name from the current time and random bytes."""
    return f"{time.strftime('%Y_%m_%d')}_{secrets.token_hex(2)}{ext}"


class WalletService:
    """Loads, mutates and persists the wallets of a wallet directory.

    Usage:
        service = WalletService()
        w = service.create_wallet("", WalletOptions(label="savings"))
        addrs = service.new_addresses(w.filename, 5)
    """

    def __init__(self, settings: Optional[Settings] = None, logger: Optional[logging.Logger] = None):
        self.settings = settings or get_settings()
        self._logger = logger or logging.getLogger(__name__)
        self._wallets: dict[str, Wallet] = {}
        self._registry_lock = threading.Lock()

        self._dir = self.settings.wallet_path
        self._dir.mkdir(parents=True, exist_ok=True)
        self.load_wallets()

    def wallet_dir(self) -> Path:
        return self._dir

    def load_wallets(self) -> int:
        """Load every wallet file of the wallet directory.

        Returns:
            Number of wallets loaded
        """
        wallets = {}
        for path in sorted(self._dir.glob(f"*{self.settings.wallet_file_ext}")):
            try:
                wallets[path.name] = load_wallet(path, logger=self._logger)
            except Exception as e:
                self._logger.error(f"Failed to load wallet {path.name}: {e}")
                raise

        with self._registry_lock:
            self._wallets = wallets
        self._logger.info(f"Loaded {len(wallets)} wallets from {self._dir}")
        return len(wallets)

    # Internals

    def _lock(self, wallet_id: str, operation: str) -> WalletLock:
        return WalletLock(wallet_id, timeout=self.settings.lock_timeout, operation=operation)

    def _get(self, wallet_id: str) -> Wallet:
        with self._registry_lock:
            w = self._wallets.get(wallet_id)
        if w is None:
            raise WalletNotFoundError(wallet_id)
        return w

    def _commit(self, w: Wallet) -> None:
        save_wallet(w, self._dir / w.filename)
        with self._registry_lock:
            self._wallets[w.filename] = w

    def _check_count(self, n: int) -> None:
        if n < 0:
            raise ValueError("number of addresses must be non-negative")
        if n > self.settings.max_address_count:
            raise ValueError(
                f"number of addresses {n} exceeds maximum {self.settings.max_address_count}"
            )

    def _update(
        self,
        wallet_id: str,
        password: Optional[str],
        operation: str,
        fn: Callable[[Wallet], None],
    ) -> Wallet:
        """Apply ``fn`` to a decrypted copy of a wallet and persist it.

        Encrypted wallets are decrypted with ``password`` for the duration
        of ``fn`` and encrypted again before saving.
        """
        with self._lock(wallet_id, operation):
            w = self._get(wallet_id)
            if w.is_encrypted():
                if not password:
                    raise WalletEncryptedError()
                work = decrypt_wallet(w, password)
                fn(work)
                result = encrypt_wallet(work, password, self.settings.kdf_iterations)
            else:
                result = w.clone()
                fn(result)

            self._commit(result)
        return result

    # Operations

    def create_wallet(self, filename: str = "", options: Optional[WalletOptions] = None) -> Wallet:
        """Create, save and load a new wallet.

        Raises:
            WalletExistsError: If the file name is already taken
            ValidationError: If the options are invalid
        """
        options = options or WalletOptions()
        if not filename:
            filename = new_wallet_filename(self.settings.wallet_file_ext)
        if not filename.endswith(self.settings.wallet_file_ext):
            filename += self.settings.wallet_file_ext

        n = options.generate_n
        if n is None:
            n = self.settings.default_address_count
        self._check_count(n)

        if options.encrypt and not options.password:
            raise ValidationError("missing password for encrypted wallet")

        coin = parse_coin_type(options.coin or self.settings.default_coin)
        seed = options.seed or new_seed()

        with self._lock(filename, "create_wallet"):
            with self._registry_lock:
                exists = filename in self._wallets
            if exists or (self._dir / filename).exists():
                raise WalletExistsError(filename)

            w = DeterministicWallet.new(filename, coin, seed, label=options.label, logger=self._logger)
            w.generate_addresses(n)
            if options.encrypt:
                w = encrypt_wallet(w, options.password, self.settings.kdf_iterations)
            self._commit(w)

        self._logger.info(f"Created {coin.value} wallet {filename}")
        return w.clone()

    def new_addresses(self, wallet_id: str, n: int, password: Optional[str] = None) -> list[Address]:
        """Derive ``n`` new addresses and persist the wallet.

        Raises:
            WalletNotFoundError: If the wallet is not loaded
            WalletEncryptedError: If the wallet is encrypted and no password is given
            InvalidPasswordError: If the password is wrong
        """
        self._check_count(n)
        addrs: list[Address] = []

        def generate(w: Wallet) -> None:
            addrs.extend(w.generate_addresses(n))

        self._update(wallet_id, password, "new_addresses", generate)
        return addrs

    def reset_wallet(self, wallet_id: str, password: Optional[str] = None) -> Wallet:
        """Drop a wallet's entries and rewind its chain to the seed."""
        return self._update(wallet_id, password, "reset_wallet", lambda w: w.reset()).clone()

    def encrypt_wallet(self, wallet_id: str, password: str) -> Wallet:
        """Encrypt a wallet's secrets with ``password``.

        Raises:
            WalletEncryptedError: If the wallet is already encrypted
        """
        with self._lock(wallet_id, "encrypt_wallet"):
            w = encrypt_wallet(self._get(wallet_id), password, self.settings.kdf_iterations)
            self._commit(w)
        return w.clone()

    def decrypt_wallet(self, wallet_id: str, password: str) -> Wallet:
        """Decrypt a wallet and store its secrets in the clear.

        Raises:
            WalletNotEncryptedError: If the wallet is not encrypted
            InvalidPasswordError: If the password is wrong
        """
        with self._lock(wallet_id, "decrypt_wallet"):
            w = decrypt_wallet(self._get(wallet_id), password)
            self._commit(w)
        return w.clone()

    def get_wallet_seed(self, wallet_id: str, password: str) -> str:
        """Return the seed of an encrypted wallet.

        Raises:
            WalletNotEncryptedError: If the wallet is not encrypted
            InvalidPasswordError: If the password is wrong
        """
        w = self._get(wallet_id)
        if not w.is_encrypted():
            raise WalletNotEncryptedError()
        return decrypt_wallet(w, password).meta.seed

    def recover_wallet(self, wallet_id: str, seed: str, password: Optional[str] = None) -> Wallet:
        """Rebuild an encrypted wallet from its seed.

        The seed must reproduce every address of the wallet. The recovered
        wallet is left unencrypted unless ``password`` is given.

        Raises:
            WalletNotEncryptedError: If the wallet is not encrypted
            SeedMismatchError: If the seed does not reproduce the wallet
            FingerprintUnavailableError: If the wallet has no addresses to check
        """
        with self._lock(wallet_id, "recover_wallet"):
            w = self._get(wallet_id)
            if not w.is_encrypted():
                raise WalletNotEncryptedError()

            recovered = DeterministicWallet.new(
                w.filename, w.coin, seed, label=w.label, logger=self._logger
            )
            recovered.generate_addresses(w.entries_len())
            if w.fingerprint() != recovered.fingerprint() or w.get_addresses() != recovered.get_addresses():
                raise SeedMismatchError()

            if password:
                recovered = encrypt_wallet(recovered, password, self.settings.kdf_iterations)
            self._commit(recovered)

        self._logger.info(f"Recovered wallet {wallet_id}")
        return recovered.clone()

    def get_wallet(self, wallet_id: str) -> Wallet:
        """A copy of a loaded wallet."""
        return self._get(wallet_id).clone()

    def get_wallets(self) -> dict[str, Wallet]:
        """Copies of all loaded wallets, by id."""
        with self._registry_lock:
            return {wid: w.clone() for wid, w in self._wallets.items()}

    def update_wallet_label(self, wallet_id: str, label: str) -> None:
        with self._lock(wallet_id, "update_wallet_label"):
            w = self._get(wallet_id).clone()
            w.set_label(label)
            self._commit(w)

    def unload_wallet(self, wallet_id: str) -> None:
        """Forget a loaded wallet; its file is kept."""
        with self._registry_lock:
            if self._wallets.pop(wallet_id, None) is None:
                raise WalletNotFoundError(wallet_id)
