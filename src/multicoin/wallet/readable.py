"""Readable (serializable) wallet form and file load/save hooks.

The readable form is the flattened projection of a wallet: its metadata
plus an ordered list of string-encoded entries. It is what wallet files
hold on disk. Encrypted wallets carry no secret keys in their entries and
no seeds in their metadata; the encrypted secrets container is kept in
``meta.secrets`` instead.

JSON keys follow the wallet file format (``lastSeed``,
``cryptoType``, ``tm``).
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from multicoin.wallet.deterministic import DeterministicWallet
from multicoin.wallet.entries import Entries
from multicoin.wallet.errors import (
    DecodeError,
    InvalidWalletError,
    ValidationError,
    WrongWalletTypeError,
)
from multicoin.wallet.meta import WALLET_VERSION, Meta, WalletType

_module_logger = logging.getLogger(__name__)

# Closed set of wallet kinds. Extend together with READABLE_WALLET_CLASSES.
Wallet = DeterministicWallet


class ReadableMeta(BaseModel):
    """Serializable wallet metadata."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = ""
    label: str = ""
    version: str = WALLET_VERSION
    coin: str = Field(..., description="Coin tag (skycoin, bitcoin, ethereum)")
    wallet_type: str = Field(..., alias="type", description="Wallet type tag")
    seed: str = ""
    last_seed: str = Field(default="", alias="lastSeed")
    encrypted: bool = False
    crypto_type: str = Field(default="", alias="cryptoType")
    secrets: str = ""
    timestamp: int = Field(default=0, alias="tm")

    @classmethod
    def from_meta(cls, meta: Meta) -> "ReadableMeta":
        return cls(
            filename=meta.filename,
            label=meta.label,
            version=meta.version,
            coin=meta.coin,
            wallet_type=meta.wallet_type,
            seed=meta.seed,
            last_seed=meta.last_seed,
            encrypted=meta.encrypted,
            crypto_type=meta.crypto_type,
            secrets=meta.secrets,
            timestamp=meta.timestamp,
        )

    def to_meta(self) -> Meta:
        return Meta(
            filename=self.filename,
            coin=self.coin,
            wallet_type=self.wallet_type,
            label=self.label,
            seed=self.seed,
            last_seed=self.last_seed,
            encrypted=self.encrypted,
            crypto_type=self.crypto_type,
            secrets=self.secrets,
            timestamp=self.timestamp,
            version=self.version,
        )


class ReadableEntry(BaseModel):
    """Serializable entry: address, public key and optional secret key."""

    address: str
    public_key: str
    secret_key: str = ""


class ReadableDeterministicWallet(BaseModel):
    """Serializable deterministic wallet."""

    meta: ReadableMeta
    entries: list[ReadableEntry] = Field(default_factory=list)

    @classmethod
    def from_wallet(cls, w: DeterministicWallet) -> "ReadableDeterministicWallet":
        return cls(
            meta=ReadableMeta.from_meta(w.meta),
            entries=[ReadableEntry(**e) for e in w.get_entries().to_readable()],
        )

    def to_wallet(self, logger: Optional[logging.Logger] = None) -> DeterministicWallet:
        """Rebuild the live wallet.

        Raises:
            InvalidWalletError: If the reconstructed wallet fails validation
            DecodeError: If an entry fails to decode
        """
        log = logger or _module_logger
        meta = self.meta.to_meta()

        try:
            meta.validate()
        except ValidationError as e:
            log.error(f"ReadableDeterministicWallet.to_wallet validate failed: {e}")
            raise InvalidWalletError(meta.filename, e) from e

        try:
            entries = Entries.from_readable(
                [e.model_dump() for e in self.entries],
                meta.address_decoder(),
                meta.encrypted,
            )
        except DecodeError as e:
            log.error(f"ReadableDeterministicWallet.to_wallet decode entries failed: {e}")
            raise

        w = DeterministicWallet(meta, entries, logger=logger)
        try:
            w.validate()
        except ValidationError as e:
            log.error(f"ReadableDeterministicWallet.to_wallet validate failed: {e}")
            raise InvalidWalletError(meta.filename, e) from e
        return w

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=4)


ReadableWallet = ReadableDeterministicWallet

READABLE_WALLET_CLASSES: dict[WalletType, type[ReadableDeterministicWallet]] = {
    WalletType.DETERMINISTIC: ReadableDeterministicWallet,
}


def readable_from_wallet(w: Wallet) -> ReadableWallet:
    """Project any wallet kind to its readable form."""
    if isinstance(w, DeterministicWallet):
        return ReadableDeterministicWallet.from_wallet(w)
    raise TypeError(f"unsupported wallet kind {type(w).__name__}")


def _read_json(path: Union[str, Path]) -> dict:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except ValueError as e:
        raise DecodeError(f"invalid wallet file {path}: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("meta"), dict):
        raise DecodeError(f"invalid wallet file {path}: missing meta")
    return data


def _parse_readable(cls: type[ReadableWallet], data: dict, path: Union[str, Path]) -> ReadableWallet:
    try:
        return cls.model_validate(data)
    except PydanticValidationError as e:
        raise DecodeError(f"invalid wallet file {path}: {e}") from e


def load_readable_wallet(
    path: Union[str, Path],
    expected_type: WalletType = WalletType.DETERMINISTIC,
) -> ReadableWallet:
    """Load a readable wallet from disk.

    Raises:
        WrongWalletTypeError: If the file's type tag is not ``expected_type``
        DecodeError: If the file is not a valid wallet file
        OSError: If the file cannot be read
    """
    data = _read_json(path)
    actual = data["meta"].get("type", "")
    if actual != expected_type.value:
        raise WrongWalletTypeError(expected_type.value, str(actual))
    return _parse_readable(READABLE_WALLET_CLASSES[expected_type], data, path)


def load_wallet(path: Union[str, Path], logger: Optional[logging.Logger] = None) -> Wallet:
    """Load any supported wallet kind from disk.

    Raises:
        WrongWalletTypeError: If the file's type tag is unknown
        DecodeError: If the file or one of its entries fails to decode
        InvalidWalletError: If the wallet fails validation
    """
    data = _read_json(path)
    tag = data["meta"].get("type", "")
    try:
        wallet_type = WalletType(tag)
    except ValueError as e:
        expected = ", ".join(t.value for t in WalletType)
        raise WrongWalletTypeError(expected, str(tag)) from e

    rw = _parse_readable(READABLE_WALLET_CLASSES[wallet_type], data, path)
    return rw.to_wallet(logger=logger)


def save_wallet(w: Wallet, path: Union[str, Path]) -> None:
    """Write a wallet to disk atomically (temp file + rename).

    The temp file is created owner-only and removed if the write or rename
    fails.
    """
    path = Path(path)
    data = readable_from_wallet(w).to_json()
    tmp = path.with_name(path.name + ".tmp")
    tmp.unlink(missing_ok=True)
    fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
    _module_logger.debug(f"Saved wallet {path.name}")
