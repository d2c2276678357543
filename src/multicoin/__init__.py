"""multicoin - deterministic multi-coin wallet."""

__version__ = "0.1.0"
