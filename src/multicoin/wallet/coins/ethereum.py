"""Ethereum addresses.

Address: last 20 bytes of keccak256(uncompressed pubkey without prefix).
String form is the EIP-55 checksummed hex (0x...). Ethereum addresses
carry no separate checksum bytes.
"""

import hmac
from dataclasses import dataclass

from eth_utils import (
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex_address,
    keccak,
    to_canonical_address,
    to_checksum_address,
)

from multicoin.wallet.address import Address
from multicoin.wallet.errors import DecodeError, InvalidPubKeyError
from multicoin.wallet.keys import uncompressed_pubkey

ADDRESS_LENGTH = 20


def _pubkey_hash(pubkey: bytes) -> bytes:
    return keccak(uncompressed_pubkey(pubkey))[-ADDRESS_LENGTH:]


@dataclass(frozen=True, eq=False, repr=False)
class EthereumAddress(Address):
    """Ethereum account address."""

    addr: bytes = b"\x00" * ADDRESS_LENGTH

    def checksum(self) -> bytes:
        return b""

    def __bytes__(self) -> bytes:
        return self.addr

    def __str__(self) -> str:
        return to_checksum_address(self.addr)

    def verify(self, pubkey: bytes) -> None:
        try:
            expected = _pubkey_hash(pubkey)
        except ValueError as e:
            raise InvalidPubKeyError(f"invalid public key: {e}") from e
        if not hmac.compare_digest(self.addr, expected):
            raise InvalidPubKeyError()

    def is_null(self) -> bool:
        return self == EthereumAddress()


def address_from_pubkey(pubkey: bytes) -> EthereumAddress:
    """Build an Ethereum address from a compressed public key."""
    return EthereumAddress(addr=_pubkey_hash(pubkey))


def decode_address(addr: str) -> EthereumAddress:
    """Decode a 0x-prefixed hex address.

    Mixed-case strings must carry a valid EIP-55 checksum.

    Raises:
        DecodeError: If the string is not a valid address
    """
    if not is_hex_address(addr):
        raise DecodeError(f"invalid ethereum address {addr!r}")
    if is_checksum_formatted_address(addr) and not is_checksum_address(addr):
        raise DecodeError(f"invalid EIP-55 checksum in address {addr!r}")
    return EthereumAddress(addr=to_canonical_address(addr))
