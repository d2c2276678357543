"""Entry store.

An ordered collection of derived (address, public key, secret key)
triples. Insertion order is derivation order: entry ``i`` is the ``i``-th
key of the wallet's chain. Entries are never reordered and addresses are
unique across the store.
"""

import binascii
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, Optional

from multicoin.wallet.address import Address
from multicoin.wallet.errors import (
    DecodeError,
    DuplicateAddressError,
    IndexOutOfRangeError,
    InvalidPubKeyError,
    MissingFieldError,
)
from multicoin.wallet.keys import pubkey_from_seckey, verify_pubkey
from multicoin.wallet.secrets import Secrets


@dataclass(frozen=True)
class Entry:
    """One derived identity.

    ``secret_key`` is None while the wallet is encrypted or its secrets
    have been erased.
    """

    address: Address
    public_key: bytes
    secret_key: Optional[bytes] = None

    def verify(self) -> None:
        """Check that address, public key and secret key belong together.

        Raises:
            InvalidPubKeyError: If the triple is inconsistent
        """
        self.address.verify(self.public_key)
        if self.secret_key is not None:
            try:
                derived = pubkey_from_seckey(self.secret_key)
            except ValueError as e:
                raise InvalidPubKeyError(f"invalid secret key: {e}") from e
            if derived != self.public_key:
                raise InvalidPubKeyError("public key does not match secret key")


class Entries:
    """Ordered, duplicate-free sequence of entries."""

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: list[Entry] = []
        self._index: dict[Address, int] = {}
        self.extend(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entries):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Entries({len(self._entries)})"

    def append(self, entry: Entry) -> None:
        """Append a single entry.

        Raises:
            DuplicateAddressError: If the address is already present
        """
        self.extend([entry])

    def extend(self, entries: Iterable[Entry]) -> None:
        """Append a batch of entries atomically.

        Either every entry is appended or, if any address collides with
        the store or with another entry of the batch, none is.

        Raises:
            DuplicateAddressError: On the first colliding address
        """
        batch = list(entries)
        seen: set[Address] = set()
        for e in batch:
            if e.address in self._index or e.address in seen:
                raise DuplicateAddressError(str(e.address))
            seen.add(e.address)

        for e in batch:
            self._index[e.address] = len(self._entries)
            self._entries.append(e)

    def get(self, address: Address) -> Optional[Entry]:
        i = self._index.get(address)
        if i is None:
            return None
        return self._entries[i]

    def has(self, address: Address) -> bool:
        return address in self._index

    def at(self, index: int) -> Entry:
        """Get the entry at a derivation index.

        Raises:
            IndexOutOfRangeError: If ``index`` is negative or past the end
        """
        if index < 0 or index >= len(self._entries):
            raise IndexOutOfRangeError(index, len(self._entries))
        return self._entries[index]

    def addresses(self) -> list[Address]:
        return [e.address for e in self._entries]

    def clone(self) -> "Entries":
        return Entries(replace(e) for e in self._entries)

    def erase_secrets(self) -> None:
        """Drop every entry's secret key in place."""
        self._entries = [replace(e, secret_key=None) for e in self._entries]

    def unpack_secret_keys(self, ss: Secrets) -> None:
        """Restore every entry's secret key from a secrets container.

        The store is only modified when every secret is present and valid.

        Raises:
            MissingFieldError: If an entry's secret is missing
            DecodeError: If a secret is not valid hex or does not match its
                entry's public key
        """
        restored = []
        for e in self._entries:
            key = str(e.address)
            hex_secret = ss.get(key)
            if not hex_secret:
                raise MissingFieldError(key, f"secret of address {key} doesn't exist in secrets")
            entry = replace(e, secret_key=_decode_hex(hex_secret, "secret key"))
            try:
                entry.verify()
            except InvalidPubKeyError as err:
                raise DecodeError(f"secret of address {key}: {err}") from err
            restored.append(entry)
        self._entries = restored

    def to_readable(self) -> list[dict]:
        """Project entries to plain dicts of strings, in order."""
        return [
            {
                "address": str(e.address),
                "public_key": e.public_key.hex(),
                "secret_key": e.secret_key.hex() if e.secret_key is not None else "",
            }
            for e in self._entries
        ]

    @classmethod
    def from_readable(
        cls,
        readable: Iterable[dict],
        decode_address: Callable[[str], Address],
        encrypted: bool,
    ) -> "Entries":
        """Decode readable entries.

        Args:
            readable: Dicts with address, public_key and secret_key strings
            decode_address: The coin's address decoder
            encrypted: Encrypted wallets carry no secret keys

        Raises:
            DecodeError: If any string fails to decode or a triple is
                inconsistent
            DuplicateAddressError: If two entries share an address
        """
        entries = []
        for r in readable:
            address = decode_address(r["address"])
            public_key = _decode_hex(r["public_key"], "public key")
            try:
                verify_pubkey(public_key)
            except ValueError as e:
                raise DecodeError(f"invalid public key for address {r['address']}: {e}") from e

            secret_hex = r.get("secret_key") or ""
            if encrypted:
                if secret_hex:
                    raise DecodeError(f"secret key of {r['address']} visible in encrypted wallet")
                secret_key = None
            else:
                if not secret_hex:
                    raise DecodeError(f"secret key of {r['address']} missing in unencrypted wallet")
                secret_key = _decode_hex(secret_hex, "secret key")

            entry = Entry(address=address, public_key=public_key, secret_key=secret_key)
            try:
                entry.verify()
            except InvalidPubKeyError as e:
                raise DecodeError(f"invalid entry {r['address']}: {e}") from e
            entries.append(entry)

        return cls(entries)


def _decode_hex(value: str, what: str) -> bytes:
    try:
        return binascii.unhexlify(value)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid {what} hex: {e}") from e
