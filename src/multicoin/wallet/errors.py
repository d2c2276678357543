"""Wallet error types.

Every failure of the deterministic wallet is reported as one of these
exceptions. None of them are retried internally; retry policy (asking for
the password again, re-reading a file) belongs to the caller.
"""

from typing import Optional


class WalletError(Exception):
    """Base class for all wallet errors."""

    pass


class WalletEncryptedError(WalletError):
    """Raised when an operation needs secrets but the wallet is encrypted."""

    def __init__(self, message: str = "wallet is encrypted"):
        super().__init__(message)


class WalletNotEncryptedError(WalletError):
    """Raised when decrypting a wallet that holds its secrets in the clear."""

    def __init__(self, message: str = "wallet is not encrypted"):
        super().__init__(message)


class DuplicateAddressError(WalletError):
    """Raised when an entry would collide with an existing address."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"duplicate address {address}")


class MissingFieldError(WalletError):
    """Raised when the secrets container lacks an expected key."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} doesn't exist in secrets")


class DecodeError(WalletError):
    """Raised when an address or key string cannot be decoded."""

    pass


class ValidationError(WalletError):
    """Raised when wallet metadata is malformed or inconsistent."""

    pass


class InvalidWalletError(WalletError):
    """Raised when a reconstructed wallet fails validation."""

    def __init__(self, filename: str, error: ValidationError):
        self.filename = filename
        self.error = error
        super().__init__(f"invalid wallet {filename!r}: {error}")


class WrongWalletTypeError(WalletError):
    """Raised when a persisted wallet has an unexpected type tag."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid wallet type: expected {expected!r}, got {actual!r}")


class IndexOutOfRangeError(WalletError, IndexError):
    """Raised when an entry index is past the end of the store."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"entry index {index} out of range (entries: {length})")


class FingerprintUnavailableError(WalletError):
    """Raised when no address can be determined without decrypting."""

    def __init__(self, message: str = "fingerprint unavailable: wallet is encrypted and has no entries"):
        super().__init__(message)


class InvalidPubKeyError(WalletError, ValueError):
    """Raised when an address does not match a public key."""

    def __init__(self, message: str = "address does not match public key"):
        super().__init__(message)


class WalletNotFoundError(WalletError):
    """Raised when a wallet id is not loaded."""

    def __init__(self, wallet_id: str):
        self.wallet_id = wallet_id
        super().__init__(f"wallet {wallet_id!r} doesn't exist")


class WalletExistsError(WalletError):
    """Raised when creating a wallet whose file name is already taken."""

    def __init__(self, wallet_id: str):
        self.wallet_id = wallet_id
        super().__init__(f"wallet {wallet_id!r} already exists")


class InvalidPasswordError(WalletError):
    """Raised when the secrets cannot be decrypted with the given password."""

    def __init__(self, message: str = "invalid password"):
        super().__init__(message)


class SeedMismatchError(WalletError):
    """Raised when a recovery seed does not reproduce the wallet."""

    def __init__(self, message: str = "seed does not match wallet"):
        super().__init__(message)
