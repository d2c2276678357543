"""secp256k1 key helpers and the deterministic keypair chain.

A deterministic wallet derives a single chain of keys, the Skycoin way:
each step turns the chain seed into the next one with ``secp256k1_hash``
and derives the secret key from SHA256(seed || next seed).
Expanding ``n`` keys therefore returns both the keys and the chain seed to
continue from, so that two batches of ``m`` and ``n`` keys produce exactly
the same keys as one batch of ``m + n``.

Curve arithmetic and key encoding use bip_utils.
"""

import hashlib

from bip_utils import (
    Bip39MnemonicGenerator,
    Bip39WordsNum,
    Secp256k1PrivateKey,
    Secp256k1PublicKey,
)

SECKEY_LENGTH = 32
PUBKEY_LENGTH = 33  # compressed

# Order of the secp256k1 group; valid secret keys are in [1, ORDER).
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _is_valid_seckey(candidate: bytes) -> bool:
    value = int.from_bytes(candidate, "big")
    return 0 < value < SECP256K1_ORDER


def verify_seckey(seckey: bytes) -> None:
    """Check that ``seckey`` is a valid secp256k1 secret key.

    Raises:
        ValueError: If the key has the wrong length or is out of range
    """
    if len(seckey) != SECKEY_LENGTH:
        raise ValueError(f"invalid secret key length {len(seckey)}")
    if not _is_valid_seckey(seckey):
        raise ValueError("secret key out of range")


def verify_pubkey(pubkey: bytes) -> None:
    """Check that ``pubkey`` is a compressed point on the curve.

    Raises:
        ValueError: If the key is malformed
    """
    if len(pubkey) != PUBKEY_LENGTH:
        raise ValueError(f"invalid public key length {len(pubkey)}")
    # bip_utils rejects points that are not on the curve
    Secp256k1PublicKey.FromBytes(pubkey)


def pubkey_from_seckey(seckey: bytes) -> bytes:
    """Return the compressed public key for a secret key."""
    verify_seckey(seckey)
    priv = Secp256k1PrivateKey.FromBytes(seckey)
    return priv.PublicKey().RawCompressed().ToBytes()


def uncompressed_pubkey(pubkey: bytes) -> bytes:
    """Return the 64-byte uncompressed form (X || Y) of a compressed key."""
    raw = Secp256k1PublicKey.FromBytes(pubkey).RawUncompressed().ToBytes()
    # Strip the 0x04 prefix if present
    if len(raw) == 65:
        raw = raw[1:]
    return raw


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _deterministic_keypair(seed: bytes) -> tuple[bytes, bytes]:
    """Derive a keypair from a 32-byte seed.

    The seed is rehashed until the digest is a valid secret key.

    Returns:
        Tuple of (public key, secret key)
    """
    if len(seed) != 32:
        raise ValueError(f"invalid keypair seed length {len(seed)}")
    while True:
        seed = _sha256(seed)
        if _is_valid_seckey(seed):
            return pubkey_from_seckey(seed), seed


def ecdh(pubkey: bytes, seckey: bytes) -> bytes:
    """Multiply a public key by a secret key; returns the compressed point."""
    verify_seckey(seckey)
    point = Secp256k1PublicKey.FromBytes(pubkey).Point() * int.from_bytes(seckey, "big")
    return Secp256k1PublicKey.FromPoint(point).RawCompressed().ToBytes()


def secp256k1_hash(seed: bytes) -> bytes:
    """Double SHA256 of ``seed`` salted with an ECDH product on the curve."""
    digest = _sha256(seed)
    _, seckey = _deterministic_keypair(digest)
    pubkey, _ = _deterministic_keypair(_sha256(digest))
    return _sha256(digest + ecdh(pubkey, seckey))


def deterministic_keypair_iterator(seed: bytes) -> tuple[bytes, bytes, bytes]:
    """Advance the chain by one step.

    Args:
        seed: Current chain seed

    Returns:
        Tuple of (next chain seed, secret key, public key)
    """
    next_seed = secp256k1_hash(seed)
    pubkey, seckey = _deterministic_keypair(_sha256(seed + next_seed))
    return next_seed, seckey, pubkey


def generate_deterministic_keypairs_seed(seed: bytes, n: int) -> tuple[bytes, list[bytes]]:
    """Derive ``n`` secret keys from ``seed``.

    Args:
        seed: Chain seed to start from
        n: Number of keys to derive

    Returns:
        Tuple of (chain seed to continue from, list of secret keys)
    """
    if n < 0:
        raise ValueError("number of keys must be non-negative")
    if not seed:
        raise ValueError("seed must not be empty")

    seckeys = []
    for _ in range(n):
        seed, seckey, _ = deterministic_keypair_iterator(seed)
        seckeys.append(seckey)
    return seed, seckeys


def new_seed() -> str:
    """Generate a new 12 word BIP39 mnemonic to use as a wallet seed."""
    return Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_12).ToStr()
