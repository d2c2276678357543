"""Application configuration using pydantic-settings.

Settings are read from environment variables prefixed with ``MULTICOIN_``
or from a ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MULTICOIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    log_level: str = Field(default="INFO", description="Log level when debug is off")

    # ======================
    # Wallet storage
    # ======================
    wallet_dir: str = Field(
        default="./data/wallets", description="Directory holding wallet files"
    )
    wallet_file_ext: str = Field(default=".wlt", description="Wallet file extension")

    # ======================
    # Derivation
    # ======================
    default_coin: str = Field(default="skycoin", description="Coin for new wallets")
    default_address_count: int = Field(
        default=1, description="Addresses generated when a wallet is created"
    )
    max_address_count: int = Field(
        default=1000, description="Maximum addresses derived in one request"
    )

    # ======================
    # Encryption
    # ======================
    kdf_iterations: int = Field(
        default=100000, description="PBKDF2 rounds for wallet encryption"
    )
    max_kdf_iterations: int = Field(
        default=10_000_000, description="Largest PBKDF2 round count accepted when decrypting"
    )

    # ======================
    # Concurrency
    # ======================
    lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for a wallet lock"
    )

    @property
    def wallet_path(self) -> Path:
        """Wallet directory as a path (``$HOME`` and ``~`` expanded)."""
        return Path(self.wallet_dir.replace("$HOME", str(Path.home()))).expanduser()

    def wallet_file(self, filename: str) -> Path:
        """Full path of a wallet file."""
        return self.wallet_path / filename

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for logging."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "log_level": self.log_level,
            "wallet_dir": str(self.wallet_path),
            "default_coin": self.default_coin,
            "max_address_count": self.max_address_count,
            "kdf_iterations": self.kdf_iterations,
            "max_kdf_iterations": self.max_kdf_iterations,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
