"""Wallet metadata.

Everything about a wallet except its entries: the seed and chain cursor,
encryption state, coin and wallet type tags, file name, label and
creation time.

The seed fields and encryption fields are exposed read-only. Their
mutators are underscore methods reserved for the wallet engine, which
keeps the chain cursor consistent with the entry store.
"""

import binascii
import copy
import time
from enum import Enum
from typing import Callable, Optional, Union

from multicoin.wallet.address import Address
from multicoin.wallet.coins import CoinType, get_coin_plugin, parse_coin_type
from multicoin.wallet.errors import ValidationError

WALLET_VERSION = "0.4"


class WalletType(str, Enum):
    """Supported wallet kinds."""

    DETERMINISTIC = "deterministic"


def parse_wallet_type(wallet_type: str) -> WalletType:
    """Parse a wallet type tag.

    Raises:
        ValidationError: If the tag is not a known wallet type
    """
    try:
        return WalletType(wallet_type)
    except ValueError as e:
        raise ValidationError(f"invalid wallet type {wallet_type!r}") from e


def _tag(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else value


class Meta:
    """Non-entry wallet state."""

    def __init__(
        self,
        filename: str,
        coin: Union[str, CoinType],
        wallet_type: Union[str, WalletType] = WalletType.DETERMINISTIC,
        label: str = "",
        seed: str = "",
        last_seed: Optional[str] = None,
        encrypted: bool = False,
        crypto_type: str = "",
        secrets: str = "",
        timestamp: Optional[int] = None,
        version: str = WALLET_VERSION,
    ):
        """Initialize wallet metadata.

        Args:
            filename: Wallet file name, also used as the wallet id
            coin: Coin tag (skycoin, bitcoin, ethereum)
            wallet_type: Wallet type tag
            label: Human readable label
            seed: Root seed (empty while encrypted)
            last_seed: Chain cursor, defaults to ``seed`` when empty
            encrypted: Whether the secrets live in ``secrets``
            crypto_type: Encryption scheme of ``secrets``
            secrets: Encrypted secrets container
            timestamp: Creation time (unix seconds), defaults to now
            version: Wallet format version
        """
        self.filename = filename
        self.label = label
        self.coin = _tag(coin)
        self.wallet_type = _tag(wallet_type)
        self.version = version
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self._seed = seed
        self._last_seed = last_seed or seed
        self._encrypted = encrypted
        self._crypto_type = crypto_type
        self._secrets = secrets

    def __repr__(self) -> str:
        return (
            f"Meta(filename={self.filename!r}, coin={self.coin!r}, "
            f"type={self.wallet_type!r}, encrypted={self._encrypted})"
        )

    @property
    def seed(self) -> str:
        return self._seed

    @property
    def last_seed(self) -> str:
        return self._last_seed

    @property
    def encrypted(self) -> bool:
        return self._encrypted

    @property
    def crypto_type(self) -> str:
        return self._crypto_type

    @property
    def secrets(self) -> str:
        return self._secrets

    def coin_type(self) -> CoinType:
        return parse_coin_type(self.coin)

    def type(self) -> WalletType:
        return parse_wallet_type(self.wallet_type)

    def address_constructor(self) -> Callable[[bytes], Address]:
        return get_coin_plugin(self.coin_type()).address_from_pubkey

    def address_decoder(self) -> Callable[[str], Address]:
        return get_coin_plugin(self.coin_type()).decode_address

    def validate(self, entries_count: int = 0) -> None:
        """Validate the metadata.

        Args:
            entries_count: Number of entries held by the wallet; the chain
                cursor is only hex once something has been derived from it

        Raises:
            ValidationError: If the metadata is malformed or inconsistent
        """
        if not self.filename:
            raise ValidationError("filename not set")

        self.type()
        self.coin_type()

        if not isinstance(self.timestamp, int) or self.timestamp < 0:
            raise ValidationError("invalid timestamp")

        if self._encrypted:
            if not self._crypto_type:
                raise ValidationError("crypto type field not set")
            if not self._secrets:
                raise ValidationError("wallet is encrypted, but secrets field not set")
            if self._seed or self._last_seed:
                raise ValidationError("seed should not be visible in encrypted wallets")
            return

        if self._secrets:
            raise ValidationError("secrets field should not be set in unencrypted wallets")

        if not self._seed:
            raise ValidationError("seed missing in unencrypted deterministic wallet")
        if not self._last_seed:
            raise ValidationError("lastSeed missing in unencrypted deterministic wallet")

        if entries_count > 0:
            try:
                binascii.unhexlify(self._last_seed)
            except (binascii.Error, ValueError) as e:
                raise ValidationError(f"lastSeed is not valid hex: {e}") from e

    def erase_seeds(self) -> None:
        """Clear the seed and chain cursor."""
        self._seed = ""
        self._last_seed = ""

    def clone(self) -> "Meta":
        return copy.copy(self)

    # Engine-only mutators

    def _set_seed(self, seed: str) -> None:
        self._seed = seed

    def _set_last_seed(self, last_seed: str) -> None:
        self._last_seed = last_seed

    def _set_encrypted(self, encrypted: bool, crypto_type: str = "", secrets: str = "") -> None:
        self._encrypted = encrypted
        self._crypto_type = crypto_type
        self._secrets = secrets
