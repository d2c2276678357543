"""Command line entry point.

Usage:
    multicoin create --coin skycoin --label savings --num 5
    multicoin addresses 2024_01_01_ab12.wlt --num 2
    multicoin list
    multicoin show 2024_01_01_ab12.wlt
"""

import argparse
import json
import logging
import sys
from getpass import getpass
from typing import Optional

from multicoin.config import Settings, get_settings
from multicoin.service import WalletOptions, WalletService
from multicoin.utils.locks import LockTimeoutError
from multicoin.wallet.coins import get_supported_coins
from multicoin.wallet.errors import FingerprintUnavailableError, WalletError

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure process-wide logging from settings."""
    log_level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="multicoin", description="Deterministic multi-coin wallet")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="create a wallet")
    create.add_argument("--filename", default="", help="wallet file name")
    create.add_argument("--coin", default="", choices=get_supported_coins() + [""], help="coin type")
    create.add_argument("--label", default="", help="wallet label")
    create.add_argument("--seed", default="", help="wallet seed (generated if omitted)")
    create.add_argument("--num", type=int, default=None, help="addresses to generate")
    create.add_argument("--encrypt", action="store_true", help="encrypt the wallet")
    create.add_argument("--password", default=None, help="encryption password (prompted if omitted)")

    addresses = sub.add_parser("addresses", help="generate new addresses")
    addresses.add_argument("wallet_id")
    addresses.add_argument("--num", type=int, default=1, help="addresses to generate")
    addresses.add_argument("--password", default=None, help="wallet password (prompted if needed)")

    sub.add_parser("list", help="list wallets")

    show = sub.add_parser("show", help="show a wallet's addresses")
    show.add_argument("wallet_id")

    return parser


def _summary(w) -> dict:
    try:
        fingerprint = w.fingerprint()
    except FingerprintUnavailableError:
        fingerprint = ""
    return {
        "id": w.filename,
        "label": w.label,
        "coin": w.coin.value,
        "encrypted": w.is_encrypted(),
        "fingerprint": fingerprint,
        "entries": w.entries_len(),
    }


def run(args: argparse.Namespace, service: WalletService) -> dict:
    """Execute a parsed command and return its JSON-able result."""
    if args.command == "create":
        password = args.password
        if args.encrypt and password is None:
            password = getpass("Wallet password: ")
        w = service.create_wallet(
            args.filename,
            WalletOptions(
                coin=args.coin,
                label=args.label,
                seed=args.seed,
                encrypt=args.encrypt,
                password=password or "",
                generate_n=args.num,
            ),
        )
        return _summary(w)

    if args.command == "addresses":
        password = args.password
        if password is None and service.get_wallet(args.wallet_id).is_encrypted():
            password = getpass("Wallet password: ")
        addrs = service.new_addresses(args.wallet_id, args.num, password)
        return {"addresses": [str(a) for a in addrs]}

    if args.command == "list":
        return {"wallets": [_summary(w) for w in service.get_wallets().values()]}

    if args.command == "show":
        w = service.get_wallet(args.wallet_id)
        result = _summary(w)
        result["addresses"] = [str(a) for a in w.get_addresses()]
        return result

    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    configure_logging(settings)
    logger.debug(f"Settings: {settings.get_safe_dict()}")
    args = build_parser().parse_args(argv)

    try:
        service = WalletService(settings)
        result = run(args, service)
    except (WalletError, LockTimeoutError, ValueError) as e:
        logger.debug(f"Command {args.command} failed: {e!r}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
