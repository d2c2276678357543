"""Bitcoin P2PKH addresses.

Address format: base58(version || key || checksum)
- version: 0x00 (mainnet P2PKH)
- key: Hash160(compressed pubkey), 20 bytes
- checksum: first 4 bytes of SHA256(SHA256(version || key))
"""

import hmac
from dataclasses import dataclass

from bip_utils import Base58ChecksumError, Base58Decoder, Base58Encoder
from bip_utils.utils.crypto import DoubleSha256, Hash160

from multicoin.wallet.address import Address
from multicoin.wallet.errors import DecodeError, InvalidPubKeyError

KEY_LENGTH = 20
CHECKSUM_LENGTH = 4
P2PKH_VERSION = 0x00


@dataclass(frozen=True, eq=False, repr=False)
class BitcoinAddress(Address):
    """Bitcoin legacy (P2PKH) address."""

    key: bytes = b"\x00" * KEY_LENGTH
    version: int = P2PKH_VERSION

    def _body(self) -> bytes:
        return bytes([self.version]) + self.key

    def checksum(self) -> bytes:
        return DoubleSha256.QuickDigest(self._body())[:CHECKSUM_LENGTH]

    def __bytes__(self) -> bytes:
        return self._body() + self.checksum()

    def __str__(self) -> str:
        return Base58Encoder.CheckEncode(self._body())

    def verify(self, pubkey: bytes) -> None:
        if not hmac.compare_digest(self.key, Hash160.QuickDigest(pubkey)):
            raise InvalidPubKeyError()

    def is_null(self) -> bool:
        return self == BitcoinAddress()


def address_from_pubkey(pubkey: bytes) -> BitcoinAddress:
    """Build a P2PKH address from a compressed public key."""
    return BitcoinAddress(key=Hash160.QuickDigest(pubkey), version=P2PKH_VERSION)


def decode_address(addr: str) -> BitcoinAddress:
    """Decode a base58check P2PKH address string.

    Raises:
        DecodeError: If the string is not a valid P2PKH address
    """
    try:
        body = Base58Decoder.CheckDecode(addr)
    except (ValueError, Base58ChecksumError) as e:
        raise DecodeError(f"invalid bitcoin address {addr!r}: {e}") from e

    if len(body) != KEY_LENGTH + 1:
        raise DecodeError(f"invalid address length {len(body)}")
    if body[0] != P2PKH_VERSION:
        raise DecodeError(f"invalid address version {body[0]}")
    return BitcoinAddress(key=body[1:], version=body[0])
