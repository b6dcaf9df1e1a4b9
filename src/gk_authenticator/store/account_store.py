"""Durable account storage.

Accounts live in a single JSON file, ~/.gk-authenticator/account.json by
default, mapping each account name to its record. The whole file is loaded
once per invocation and rewritten once when the session ends.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from gk_authenticator.errors import (
    AccountNotFound,
    CorruptStore,
    DuplicateAccount,
    InvalidAccountName,
    PersistenceFailure,
)
from gk_authenticator.log import logger, debug_detail
from gk_authenticator.otp.engine import MAX_COUNTER, Algorithm

STORE_DIR_NAME = ".gk-authenticator"
STORE_FILE_NAME = "account.json"
STORE_DIR_ENV = "GK_AUTHENTICATOR_DIR"


@dataclass
class StoreConfig:
    """Location of the backing file for one invocation."""

    directory: Path = field(default_factory=lambda: Path.home() / STORE_DIR_NAME)
    filename: str = STORE_FILE_NAME

    @classmethod
    def from_env(cls) -> "StoreConfig":
        override = os.getenv(STORE_DIR_ENV)
        if override:
            return cls(directory=Path(override).expanduser())
        return cls()

    @property
    def path(self) -> Path:
        return self.directory / self.filename


@dataclass
class Account:
    name: str
    key: str
    algorithm: Algorithm = Algorithm.SHA1
    totp: bool = True
    counter: Optional[int] = None

    @classmethod
    def create(
        cls, name: str, key: str, algorithm: Algorithm = Algorithm.SHA1, totp: bool = True
    ) -> "Account":
        """New account; HOTP accounts start at counter 0, TOTP ones have none."""
        return cls(name=name, key=key, algorithm=algorithm, totp=totp, counter=None if totp else 0)

    def advance(self) -> None:
        """Move an HOTP counter past the code just generated. No-op for TOTP."""
        if self.counter is not None:
            self.counter += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "key": self.key,
            "algorithm": self.algorithm.value,
            "totp": self.totp,
            "counter": self.counter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        name = data["name"]
        key = data["key"]
        totp = data["totp"]
        counter = data.get("counter")
        if not isinstance(name, str) or not name or not isinstance(key, str):
            raise ValueError("name and key must be non-empty strings")
        if not isinstance(totp, bool):
            raise ValueError("totp must be a boolean")
        if totp and counter is not None:
            raise ValueError("TOTP accounts carry no counter")
        if not totp and (
            isinstance(counter, bool) or not isinstance(counter, int) or not 0 <= counter <= MAX_COUNTER
        ):
            raise ValueError("HOTP accounts need an integer counter between 0 and 2**64 - 1")
        return cls(
            name=name,
            key=key,
            algorithm=Algorithm.parse(data["algorithm"]),
            totp=totp,
            counter=counter,
        )


def ensure_store_file(config: StoreConfig) -> Path:
    """Create the store directory (0700) and an empty file (0600) if missing."""
    config.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
    path = config.path
    if not path.is_file():
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        os.close(fd)
        debug_detail(f"Created account store {path}")
    return path


class AccountStore:
    """In-memory view of the account file."""

    def __init__(self, config: StoreConfig, accounts: Optional[Dict[str, Account]] = None):
        self._config = config
        self._accounts: Dict[str, Account] = dict(accounts or {})

    @classmethod
    def load(cls, config: StoreConfig) -> "AccountStore":
        path = config.path
        try:
            ensure_store_file(config)
            data = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CorruptStore(f"Failed to read account store {path}: {exc}") from exc

        if not data.strip():
            return cls(config)

        try:
            raw = json.loads(data)
            if not isinstance(raw, dict):
                raise ValueError("top level must be an object")
            accounts = {}
            for name, record in raw.items():
                account = Account.from_dict(record)
                if account.name != name:
                    raise ValueError(f"record {name!r} is stored under name {account.name!r}")
                accounts[name] = account
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise CorruptStore(f"Failed to decode account store {path}: {exc}") from exc

        debug_detail(f"Loaded {len(accounts)} account(s) from {path}")
        return cls(config, accounts)

    @property
    def config(self) -> StoreConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, name: str) -> bool:
        return name in self._accounts

    def add(self, account: Account) -> None:
        if not account.name:
            raise InvalidAccountName("account name must not be empty", account.name)
        if account.name in self._accounts:
            raise DuplicateAccount(f"account {account.name} already exists", account.name)
        self._accounts[account.name] = account

    def delete(self, name: str) -> None:
        if self._accounts.pop(name, None) is None:
            raise AccountNotFound(f"account {name} not found", name)

    def get(self, name: str) -> Account:
        try:
            return self._accounts[name]
        except KeyError:
            raise AccountNotFound(f"account {name} does not exist", name) from None

    def accounts(self) -> Iterator[Tuple[str, Account]]:
        for name in sorted(self._accounts):
            yield name, self._accounts[name]

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: account.to_dict() for name, account in self.accounts()}

    def persist(self) -> None:
        """Rewrite the whole backing file.

        The new content goes to a temporary file in the same directory which
        then replaces the store, so a failed write leaves the old file intact.
        """
        path = self._config.path
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".account-", suffix=".json", dir=self._config.directory)
        except OSError as exc:
            raise PersistenceFailure(f"failed to save account store {path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise PersistenceFailure(f"failed to save account store {path}: {exc}") from exc

        debug_detail(f"Saved {len(self._accounts)} account(s) to {path}")


class StoreSession:
    """Context manager that loads the store and always writes it back.

    Persistence runs on every exit path, including exceptions raised inside the
    block. A failed write is logged and does not replace the block's outcome.
    """

    def __init__(self, config: Optional[StoreConfig] = None):
        self._config = config or StoreConfig.from_env()
        self._store: Optional[AccountStore] = None

    def __enter__(self) -> AccountStore:
        self._store = AccountStore.load(self._config)
        return self._store

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._store is None:
            return
        try:
            self._store.persist()
        except PersistenceFailure as failure:
            logger.warning("%s", failure)
        finally:
            self._store = None
