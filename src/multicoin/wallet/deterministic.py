"""Deterministic wallet engine.

A deterministic wallet derives a single chain of keys from its seed, each
key depending on the previous one. The metadata's ``last_seed`` is the
chain cursor: the first batch is expanded from the seed itself, every
later batch from the cursor left by the batch before it. Deriving 5 then
5 addresses therefore yields the same 10 addresses as deriving 10 at once.

The engine is not synchronised. At most one mutating call per wallet may
run at a time; ``multicoin.service`` serialises them with a per-wallet lock.
"""

import binascii
import logging
from typing import Optional

from multicoin.wallet.address import Address
from multicoin.wallet.coins import CoinType
from multicoin.wallet.entries import Entries, Entry
from multicoin.wallet.errors import (
    DuplicateAddressError,
    FingerprintUnavailableError,
    MissingFieldError,
    ValidationError,
    WalletEncryptedError,
)
from multicoin.wallet.keys import (
    deterministic_keypair_iterator,
    generate_deterministic_keypairs_seed,
    pubkey_from_seckey,
)
from multicoin.wallet.meta import Meta, WalletType
from multicoin.wallet.secrets import SECRET_LAST_SEED, SECRET_SEED, Secrets

_module_logger = logging.getLogger(__name__)


class DeterministicWallet:
    """Wallet holding one metadata record and one chain-derived entry store.

    Usage:
        wallet = DeterministicWallet.new("a.wlt", CoinType.SKYCOIN, seed="...")
        addrs = wallet.generate_addresses(5)
    """

    def __init__(
        self,
        meta: Meta,
        entries: Optional[Entries] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the wallet.

        Args:
            meta: Wallet metadata, owned by the wallet from now on
            entries: Previously derived entries
            logger: Logger for non-fatal conditions
        """
        self._meta = meta
        self._entries = entries if entries is not None else Entries()
        self._logger = logger or _module_logger

    @classmethod
    def new(
        cls,
        filename: str,
        coin: CoinType,
        seed: str,
        label: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> "DeterministicWallet":
        """Create an empty, unencrypted wallet.

        Raises:
            ValidationError: If the seed is empty or the metadata is invalid
        """
        if not seed:
            raise ValidationError("seed missing")
        meta = Meta(
            filename=filename,
            coin=coin,
            wallet_type=WalletType.DETERMINISTIC,
            label=label,
            seed=seed,
        )
        meta.validate()
        return cls(meta, logger=logger)

    def __repr__(self) -> str:
        return f"DeterministicWallet({self._meta.filename!r}, entries={len(self._entries)})"

    # Read-only views

    @property
    def meta(self) -> Meta:
        """A copy of the wallet metadata."""
        return self._meta.clone()

    @property
    def filename(self) -> str:
        return self._meta.filename

    @property
    def label(self) -> str:
        return self._meta.label

    @property
    def coin(self) -> CoinType:
        return self._meta.coin_type()

    @property
    def encrypted(self) -> bool:
        return self._meta.encrypted

    def type(self) -> WalletType:
        return self._meta.type()

    def is_encrypted(self) -> bool:
        return self._meta.encrypted

    def get_addresses(self) -> list[Address]:
        return self._entries.addresses()

    def get_entries(self) -> Entries:
        """A copy of all entries."""
        return self._entries.clone()

    def entries_len(self) -> int:
        return len(self._entries)

    def get_entry_at(self, index: int) -> Entry:
        return self._entries.at(index)

    def get_entry(self, address: Address) -> Optional[Entry]:
        return self._entries.get(address)

    def has_entry(self, address: Address) -> bool:
        return self._entries.has(address)

    # Mutations

    def set_label(self, label: str) -> None:
        self._meta.label = label

    def generate_addresses(self, num: int) -> list[Address]:
        """Derive ``num`` new addresses from the chain cursor.

        The batch is atomic: on failure neither the entries nor the chain
        cursor change.

        Returns:
            The newly derived addresses, in derivation order

        Raises:
            WalletEncryptedError: If the wallet's secrets are encrypted
            DuplicateAddressError: If a derived address is already present
        """
        if self._meta.encrypted:
            raise WalletEncryptedError()
        if num < 0:
            raise ValueError("number of addresses must be non-negative")
        if num == 0:
            return []

        if len(self._entries) == 0:
            source = self._meta.seed.encode()
        else:
            try:
                source = binascii.unhexlify(self._meta.last_seed)
            except (binascii.Error, ValueError) as e:
                raise ValidationError(f"decode hex seed failed: {e}") from e

        if not source:
            raise ValidationError("seed missing")

        next_seed, seckeys = generate_deterministic_keypairs_seed(source, num)

        make_address = self._meta.address_constructor()
        batch = []
        for s in seckeys:
            p = pubkey_from_seckey(s)
            batch.append(Entry(address=make_address(p), public_key=p, secret_key=s))

        try:
            self._entries.extend(batch)
        except DuplicateAddressError:
            self._logger.error(f"Address generation failed for wallet {self._meta.filename}")
            raise

        self._meta._set_last_seed(next_seed.hex())
        self._logger.debug(
            f"Generated {num} addresses for wallet {self._meta.filename} "
            f"(entries: {len(self._entries)})"
        )
        return [e.address for e in batch]

    def reset(self) -> None:
        """Drop all entries and rewind the chain cursor to the seed.

        Raises:
            WalletEncryptedError: If the wallet's secrets are encrypted
        """
        if self._meta.encrypted:
            raise WalletEncryptedError()
        self._entries = Entries()
        self._meta._set_last_seed(self._meta.seed)
        self._logger.info(f"Reset wallet {self._meta.filename}")

    def pack_secrets(self, ss: Secrets) -> None:
        """Copy the seed, chain cursor and secret keys into ``ss``.

        Only copies; erasing the live secrets and flagging the wallet as
        encrypted are separate steps (``erase`` / ``mark_encrypted``).
        Secrets absent from the live wallet are not written.
        """
        if self._meta.seed:
            ss.set(SECRET_SEED, self._meta.seed)
        if self._meta.last_seed:
            ss.set(SECRET_LAST_SEED, self._meta.last_seed)

        for e in self._entries:
            if e.secret_key is not None:
                ss.set(str(e.address), e.secret_key.hex())

    def unpack_secrets(self, ss: Secrets) -> None:
        """Restore the seed, chain cursor and secret keys from ``ss``.

        Nothing is modified unless every required secret is present and
        matches its entry.

        Raises:
            MissingFieldError: If the seed, the chain cursor or any entry's
                secret key is missing
            DecodeError: If a secret key does not match its entry
        """
        seed = ss.get(SECRET_SEED)
        if not seed:
            raise MissingFieldError(SECRET_SEED)
        last_seed = ss.get(SECRET_LAST_SEED)
        if not last_seed:
            raise MissingFieldError(SECRET_LAST_SEED)

        entries = self._entries.clone()
        entries.unpack_secret_keys(ss)

        self._meta._set_seed(seed)
        self._meta._set_last_seed(last_seed)
        self._entries = entries

    def erase(self) -> None:
        """Wipe the seed, chain cursor and every secret key."""
        self._meta.erase_seeds()
        self._entries.erase_secrets()

    def mark_encrypted(self, crypto_type: str, secrets: str) -> None:
        """Erase the live secrets and record their encrypted form."""
        self.erase()
        self._meta._set_encrypted(True, crypto_type, secrets)

    def mark_decrypted(self) -> None:
        """Clear the encrypted form once the secrets have been unpacked."""
        self._meta._set_encrypted(False)

    def fingerprint(self) -> str:
        """Stable wallet id built from its type and first address.

        Raises:
            FingerprintUnavailableError: If there are no entries and the
                seed is encrypted or empty
        """
        if len(self._entries) > 0:
            addr = str(self._entries.at(0).address)
        elif not self._meta.encrypted and self._meta.seed:
            _, _, pk = deterministic_keypair_iterator(self._meta.seed.encode())
            addr = str(self._meta.address_constructor()(pk))
        else:
            raise FingerprintUnavailableError()
        return f"{self._meta.wallet_type}-{addr}"

    def validate(self) -> None:
        """Validate the wallet metadata.

        Raises:
            ValidationError: If the metadata is invalid
        """
        self._meta.validate(entries_count=len(self._entries))

    def clone(self) -> "DeterministicWallet":
        return DeterministicWallet(
            self._meta.clone(),
            self._entries.clone(),
            logger=self._logger,
        )

    def copy_from(self, src: "DeterministicWallet") -> None:
        """Replace this wallet's state with a copy of ``src``."""
        self._meta = src._meta.clone()
        self._entries = src._entries.clone()

    def to_readable(self):
        """Project the wallet to its serializable form."""
        from multicoin.wallet.readable import ReadableDeterministicWallet

        return ReadableDeterministicWallet.from_wallet(self)
