"""Account operations shared by the CLI and the MCP server.

Each function works on an already loaded AccountStore; persisting the result
is left to the surrounding StoreSession.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from gk_authenticator.errors import AuthenticatorError
from gk_authenticator.log import logger, debug_detail
from gk_authenticator.otp import codec
from gk_authenticator.otp.engine import DEFAULT_LENGTH, Algorithm, Otp
from gk_authenticator.store.account_store import Account, AccountStore


@dataclass
class ListEntry:
    name: str
    code: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _generate(account: Account, length: int, timestamp: Optional[float]) -> str:
    otp = Otp(
        account.key,
        algorithm=account.algorithm,
        totp=account.totp,
        counter=account.counter,
        length=length,
        account=account.name,
    )
    code = otp.generate(timestamp)
    account.advance()
    return code


def add_account(
    store: AccountStore,
    name: str,
    key: str,
    algorithm: Algorithm = Algorithm.SHA1,
    hotp: bool = False,
) -> Account:
    """Validate the key and store a new account."""
    try:
        key = codec.normalize(key)
    except AuthenticatorError as exc:
        exc.account = name
        raise
    account = Account.create(name, key, algorithm=algorithm, totp=not hotp)
    store.add(account)
    logger.info("Added %s account %s (%s)", "HOTP" if hotp else "TOTP", name, algorithm.value)
    return account


def delete_account(store: AccountStore, name: str) -> None:
    store.delete(name)
    logger.info("Deleted account %s", name)


def view_account(
    store: AccountStore,
    name: str,
    length: int = DEFAULT_LENGTH,
    timestamp: Optional[float] = None,
) -> str:
    """Generate the current code for one account, advancing its HOTP counter."""
    account = store.get(name)
    code = _generate(account, length, timestamp)
    debug_detail(f"Generated code for {name}: {code}")
    return code


def list_accounts(
    store: AccountStore,
    length: int = DEFAULT_LENGTH,
    timestamp: Optional[float] = None,
) -> List[ListEntry]:
    """Generate codes for every account.

    A failing account gets an entry with its error; the rest are still
    generated.
    """
    entries = []
    for name, account in store.accounts():
        try:
            entries.append(ListEntry(name=name, code=_generate(account, length, timestamp)))
        except AuthenticatorError as exc:
            logger.debug("Skipping %s: %s", name, exc)
            entries.append(ListEntry(name=name, error=str(exc)))
    return entries
