"""Skycoin addresses.

Address format: base58(key || version || checksum)
- key: RIPEMD160(SHA256(SHA256(pubkey))), 20 bytes
- version: 1 byte, always 0
- checksum: first 4 bytes of SHA256(key || version)
"""

import hashlib
import hmac
from dataclasses import dataclass

from bip_utils import Base58Decoder, Base58Encoder
from bip_utils.utils.crypto import Hash160

from multicoin.wallet.address import Address
from multicoin.wallet.errors import DecodeError, InvalidPubKeyError

KEY_LENGTH = 20
CHECKSUM_LENGTH = 4
ADDRESS_LENGTH = KEY_LENGTH + 1 + CHECKSUM_LENGTH
ADDRESS_VERSION = 0


def _pubkey_hash(pubkey: bytes) -> bytes:
    return Hash160.QuickDigest(hashlib.sha256(pubkey).digest())


@dataclass(frozen=True, eq=False, repr=False)
class SkycoinAddress(Address):
    """Skycoin address (base58, version 0)."""

    key: bytes = b"\x00" * KEY_LENGTH
    version: int = ADDRESS_VERSION

    def _body(self) -> bytes:
        return self.key + bytes([self.version])

    def checksum(self) -> bytes:
        return hashlib.sha256(self._body()).digest()[:CHECKSUM_LENGTH]

    def __bytes__(self) -> bytes:
        return self._body() + self.checksum()

    def __str__(self) -> str:
        return Base58Encoder.Encode(bytes(self))

    def verify(self, pubkey: bytes) -> None:
        if self.version != ADDRESS_VERSION:
            raise InvalidPubKeyError("address version invalid")
        if not hmac.compare_digest(self.key, _pubkey_hash(pubkey)):
            raise InvalidPubKeyError()

    def is_null(self) -> bool:
        return self == SkycoinAddress()


def address_from_pubkey(pubkey: bytes) -> SkycoinAddress:
    """Build a Skycoin address from a compressed public key."""
    return SkycoinAddress(key=_pubkey_hash(pubkey), version=ADDRESS_VERSION)


def decode_address(addr: str) -> SkycoinAddress:
    """Decode a base58 Skycoin address string.

    Raises:
        DecodeError: If the string is not a valid Skycoin address
    """
    try:
        raw = Base58Decoder.Decode(addr)
    except ValueError as e:
        raise DecodeError(f"invalid base58 in address {addr!r}: {e}") from e

    if len(raw) != ADDRESS_LENGTH:
        raise DecodeError(f"invalid address length {len(raw)}")

    a = SkycoinAddress(key=raw[:KEY_LENGTH], version=raw[KEY_LENGTH])
    if a.version != ADDRESS_VERSION:
        raise DecodeError(f"invalid address version {a.version}")
    if not hmac.compare_digest(a.checksum(), raw[KEY_LENGTH + 1:]):
        raise DecodeError("invalid address checksum")
    return a
