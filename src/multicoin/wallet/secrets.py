"""Secrets container.

A plain string-to-string mapping used to carry a wallet's secret fields
across the encryption boundary. Keys are ``"seed"``, ``"lastSeed"`` or an
address string; values are the secret in its text form.
"""

import json
from typing import Optional

from multicoin.wallet.errors import DecodeError

SECRET_SEED = "seed"
SECRET_LAST_SEED = "lastSeed"


class Secrets(dict):
    """Secrets container passed to ``pack_secrets`` / ``unpack_secrets``."""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return super().get(key, default)

    def set(self, key: str, value: str) -> None:
        self[key] = value

    def erase(self) -> None:
        """Drop every secret held by the container."""
        for key in list(self.keys()):
            self[key] = ""
        self.clear()

    def serialize(self) -> bytes:
        """Encode the container as JSON for encryption."""
        return json.dumps(dict(self), sort_keys=True).encode()

    @classmethod
    def deserialize(cls, data: bytes) -> "Secrets":
        """Decode a container produced by ``serialize``.

        Raises:
            DecodeError: If the data is not a JSON object of strings
        """
        try:
            obj = json.loads(data)
        except ValueError as e:
            raise DecodeError(f"invalid secrets data: {e}") from e

        if not isinstance(obj, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in obj.items()
        ):
            raise DecodeError("invalid secrets data: expected an object of strings")
        return cls(obj)
