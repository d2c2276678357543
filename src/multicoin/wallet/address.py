"""Address abstraction.

An address is the public identity derived from a public key. Each coin
supplies its own address type together with the function that builds it
from a public key and the one that decodes it from its string form (see
``multicoin.wallet.coins``). The wallet engine only ever talks to this
interface.
"""

from abc import ABC, abstractmethod


class Address(ABC):
    """Abstract base class for coin addresses.

    Implementations are immutable value objects: two addresses are equal
    when they are of the same coin and their raw byte encodings are equal.

    Usage:
        raw = bytes(addr)
        text = str(addr)
        addr.verify(pubkey)
    """

    @abstractmethod
    def __bytes__(self) -> bytes:
        """Raw byte encoding of the address."""
        pass

    @abstractmethod
    def __str__(self) -> str:
        """Coin-specific canonical string encoding."""
        pass

    @abstractmethod
    def checksum(self) -> bytes:
        """Address checksum (empty if the coin defines none)."""
        pass

    @abstractmethod
    def verify(self, pubkey: bytes) -> None:
        """Check that the address was derived from ``pubkey``.

        Raises:
            InvalidPubKeyError: If the public key does not match
        """
        pass

    @abstractmethod
    def is_null(self) -> bool:
        """True for the zero value only."""
        pass

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return type(self) is type(other) and bytes(self) == bytes(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, bytes(self)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"
