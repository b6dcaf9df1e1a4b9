"""gk-authenticator command line.

Subcommands:
- add    : store a new TOTP or HOTP account
- delete : remove an account
- list   : print the current code of every account
- view   : print the current code of one account
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from gk_authenticator import commands
from gk_authenticator.errors import AuthenticatorError
from gk_authenticator.log import logger, set_verbose
from gk_authenticator.otp import codec
from gk_authenticator.otp.engine import DEFAULT_LENGTH, MAX_LENGTH, Algorithm
from gk_authenticator.store.account_store import StoreConfig, StoreSession


def base32_key(value: str) -> str:
    try:
        return codec.normalize(value)
    except AuthenticatorError as exc:
        raise argparse.ArgumentTypeError(f"Base32 decode error: {exc}") from exc


def account_name(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("account name must not be empty")
    return value


def code_length(value: str) -> int:
    try:
        length = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid length: {value!r}") from None
    if not 1 <= length <= MAX_LENGTH:
        raise argparse.ArgumentTypeError(f"length must be between 1 and {MAX_LENGTH}")
    return length


# --- command handlers ---
def cmd_add(store, args) -> None:
    commands.add_account(
        store,
        args.account,
        args.key,
        algorithm=Algorithm.parse(args.algorithm),
        hotp=args.hotp,
    )


def cmd_delete(store, args) -> None:
    commands.delete_account(store, args.account)


def cmd_list(store, args) -> None:
    for entry in commands.list_accounts(store, args.length):
        if entry.ok:
            print(f"{entry.name}: {entry.code}")
        else:
            logger.error("%s: %s", entry.name, entry.error)


def cmd_view(store, args) -> None:
    print(commands.view_account(store, args.account, args.length))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gk-authenticator", description="TOTP/HOTP authenticator")
    p.add_argument("--store-dir", type=Path, help="Directory holding account.json")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose output on stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    pa = sub.add_parser("add", help="Add an account")
    pa.add_argument("--account", required=True, type=account_name, help="Name of the account")
    pa.add_argument("-k", "--key", required=True, type=base32_key, help="Secret key of the OTP")
    mode = pa.add_mutually_exclusive_group()
    mode.add_argument("--totp", action="store_true", help="Time based account (default)")
    mode.add_argument("--hotp", action="store_true", help="Counter based account")
    pa.add_argument(
        "-a",
        "--algorithm",
        choices=[a.value for a in Algorithm],
        default=Algorithm.SHA1.value,
        help="Algorithm to use to generate the OTP code",
    )
    pa.set_defaults(func=cmd_add)

    pd = sub.add_parser("delete", help="Delete an account")
    pd.add_argument("--account", required=True, type=account_name, help="Name of the account")
    pd.set_defaults(func=cmd_delete)

    pl = sub.add_parser("list", help="List OTP for all accounts")
    pl.add_argument("-l", "--length", type=code_length, default=DEFAULT_LENGTH, help="Length of the OTP")
    pl.set_defaults(func=cmd_list)

    pv = sub.add_parser("view", help="Show OTP for a particular account")
    pv.add_argument("--account", required=True, type=account_name, help="Name of the account")
    pv.add_argument("-l", "--length", type=code_length, default=DEFAULT_LENGTH, help="Length of the OTP")
    pv.set_defaults(func=cmd_view)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    config = StoreConfig(directory=args.store_dir) if args.store_dir else StoreConfig.from_env()
    try:
        with StoreSession(config) as store:
            args.func(store, args)
    except AuthenticatorError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
