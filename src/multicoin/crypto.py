"""Wallet secrets encryption.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption, keyed by
PBKDF2-SHA256 of the wallet password. The wallet engine only packs its
secrets into a ``Secrets`` container and unpacks them again; this module
turns that container into ciphertext stored in the wallet metadata.

Encrypted blob format: ``<iterations>$<base64 salt>$<fernet token>``
"""

import base64
import binascii
import hashlib
import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from multicoin.config import get_settings
from multicoin.wallet.deterministic import DeterministicWallet
from multicoin.wallet.errors import (
    DecodeError,
    InvalidPasswordError,
    ValidationError,
    WalletEncryptedError,
    WalletNotEncryptedError,
)
from multicoin.wallet.secrets import Secrets

logger = logging.getLogger(__name__)

CRYPTO_TYPE = "fernet-pbkdf2-sha256"
SALT_LENGTH = 16


def derive_key_from_password(password: str, salt: Optional[bytes] = None, iterations: int = 100000) -> tuple[str, bytes]:
    """Derive a Fernet key from a password using PBKDF2.

    Args:
        password: User-provided password
        salt: Optional salt (generated if not provided)
        iterations: PBKDF2 rounds

    Returns:
        Tuple of (base64-encoded key, salt)
    """
    if salt is None:
        salt = os.urandom(SALT_LENGTH)

    key = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode(),
        salt,
        iterations,
        dklen=32,
    )

    # Fernet requires base64-encoded key
    fernet_key = base64.urlsafe_b64encode(key)
    return fernet_key.decode(), salt


class SecretsEncryptor:
    """Encrypts and decrypts serialized secrets containers with a password.

    Usage:
        encryptor = SecretsEncryptor(password)
        blob = encryptor.encrypt(secrets.serialize())
        data = encryptor.decrypt(blob)
    """

    def __init__(self, password: str, iterations: Optional[int] = None):
        """Initialize with the wallet password.

        Args:
            password: Wallet password
            iterations: PBKDF2 rounds for new ciphertexts (defaults to settings)
        """
        if not password:
            raise ValueError("missing password")
        self._password = password
        self._iterations = iterations

    def encrypt(self, data: bytes) -> str:
        """Encrypt data with a fresh salt.

        Returns:
            Encrypted blob string
        """
        iterations = self._iterations
        if iterations is None:
            iterations = get_settings().kdf_iterations

        key, salt = derive_key_from_password(self._password, iterations=iterations)
        token = Fernet(key.encode()).encrypt(data).decode()
        salt_b64 = base64.b64encode(salt).decode()
        return f"{iterations}${salt_b64}${token}"

    def decrypt(self, blob: str) -> bytes:
        """Decrypt a blob produced by ``encrypt``.

        Raises:
            DecodeError: If the blob is malformed or its iteration count is
                out of range
            InvalidPasswordError: If the password is wrong or the data was tampered with
        """
        try:
            iterations_str, salt_b64, token = blob.split("$", 2)
            iterations = int(iterations_str)
            if not 1 <= iterations <= get_settings().max_kdf_iterations:
                raise ValueError(f"invalid iteration count {iterations}")
            salt = base64.b64decode(salt_b64, validate=True)
        except (ValueError, binascii.Error) as e:
            raise DecodeError(f"invalid encrypted secrets: {e}") from e

        key, _ = derive_key_from_password(self._password, salt=salt, iterations=iterations)
        try:
            return Fernet(key.encode()).decrypt(token.encode())
        except InvalidToken as e:
            raise InvalidPasswordError() from e


def encrypt_wallet(
    wallet: DeterministicWallet,
    password: str,
    iterations: Optional[int] = None,
) -> DeterministicWallet:
    """Return an encrypted copy of ``wallet``.

    The secrets are packed, encrypted and stored in the copy's metadata,
    then erased from the copy. ``wallet`` itself is left untouched, so a
    failure at any step cannot lose its secrets.

    Raises:
        WalletEncryptedError: If the wallet is already encrypted
        ValidationError: If the wallet is missing its seed or chain cursor
    """
    if wallet.is_encrypted():
        raise WalletEncryptedError("wallet is already encrypted")
    wallet.validate()

    encryptor = SecretsEncryptor(password, iterations)
    w = wallet.clone()
    ss = Secrets()
    w.pack_secrets(ss)
    try:
        blob = encryptor.encrypt(ss.serialize())
    finally:
        ss.erase()

    w.mark_encrypted(CRYPTO_TYPE, blob)
    w.validate()
    logger.info(f"Encrypted wallet {w.filename}")
    return w


def decrypt_wallet(wallet: DeterministicWallet, password: str) -> DeterministicWallet:
    """Return a decrypted copy of ``wallet``.

    Raises:
        WalletNotEncryptedError: If the wallet is not encrypted
        InvalidPasswordError: If the password is wrong
        MissingFieldError: If the decrypted secrets are incomplete
        DecodeError: If a decrypted secret key does not match its entry
    """
    if not wallet.is_encrypted():
        raise WalletNotEncryptedError()

    meta = wallet.meta
    if meta.crypto_type != CRYPTO_TYPE:
        raise ValidationError(f"unsupported crypto type {meta.crypto_type!r}")

    data = SecretsEncryptor(password).decrypt(meta.secrets)
    ss = Secrets.deserialize(data)
    w = wallet.clone()
    try:
        w.unpack_secrets(ss)
    finally:
        ss.erase()

    w.mark_decrypted()
    w.validate()
    logger.info(f"Decrypted wallet {w.filename}")
    return w
