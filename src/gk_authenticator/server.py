"""gk_authenticator MCP server.

Exposes the account store to AI agents: add and delete accounts, and fetch
current TOTP/HOTP codes. Accounts are stored in ~/.gk-authenticator/account.json
(or the directory named by GK_AUTHENTICATOR_DIR).
"""

import json
from typing import Optional

from mcp.server.fastmcp import FastMCP

from gk_authenticator import commands
from gk_authenticator.errors import AuthenticatorError
from gk_authenticator.otp.engine import DEFAULT_LENGTH, MAX_LENGTH, Algorithm
from gk_authenticator.store.account_store import StoreSession

mcp = FastMCP("gk_authenticator")


def _error(exc: Exception, account: Optional[str] = None) -> str:
    return json.dumps({
        "error": f"{type(exc).__name__}: {exc}",
        "account": account,
    }, indent=2)


def _check_length(length: int) -> None:
    if not 1 <= length <= MAX_LENGTH:
        raise ValueError(f"length must be between 1 and {MAX_LENGTH}")


# ── Tools ─────────────────────────────────────────────────────────────────────


@mcp.tool(
    name="otp_add_account",
    annotations={
        "title": "Add OTP Account",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def otp_add_account(
    account: str,
    key: str,
    hotp: bool = False,
    algorithm: str = "sha1",
) -> str:
    """Store a new account in the local authenticator.

    Args:
        account: Unique account name (e.g., 'github').
        key: Base32 shared secret (spaces and lower case are accepted).
        hotp: Create a counter based (HOTP) account instead of a time based (TOTP) one.
        algorithm: HMAC hash, one of sha1, sha256, sha384, sha512 (default sha1).

    Returns:
        JSON: {"added": bool, "account": str, "mode": "totp"|"hotp", "algorithm": str}
        Error: {"error": str, "account": str}
    """
    try:
        algo = Algorithm.parse(algorithm)
    except ValueError as exc:
        return _error(exc, account)

    try:
        with StoreSession() as store:
            added = commands.add_account(store, account, key, algorithm=algo, hotp=hotp)
    except AuthenticatorError as exc:
        return _error(exc, account)

    return json.dumps({
        "added": True,
        "account": added.name,
        "mode": "totp" if added.totp else "hotp",
        "algorithm": added.algorithm.value,
    }, indent=2)


@mcp.tool(
    name="otp_delete_account",
    annotations={
        "title": "Delete OTP Account",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def otp_delete_account(account: str) -> str:
    """Delete a stored account and its secret.

    Args:
        account: Name of the account to delete.

    Returns:
        JSON: {"deleted": bool, "message": str, "account": str}
    """
    try:
        with StoreSession() as store:
            commands.delete_account(store, account)
    except AuthenticatorError as exc:
        return json.dumps({"deleted": False, "message": str(exc), "account": account}, indent=2)
    return json.dumps({"deleted": True, "message": "Account deleted", "account": account}, indent=2)


@mcp.tool(
    name="otp_list_codes",
    annotations={
        "title": "List OTP Codes",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def otp_list_codes(length: int = DEFAULT_LENGTH) -> str:
    """Generate the current code for every stored account.

    HOTP accounts advance their counter by one for each code returned.

    Args:
        length: Number of digits per code (1-9, default 6).

    Returns:
        JSON: {"count": int, "codes": [{"account": str, "code": str|null, "error": str|null}]}
    """
    try:
        _check_length(length)
    except ValueError as exc:
        return _error(exc)

    try:
        with StoreSession() as store:
            entries = commands.list_accounts(store, length)
    except AuthenticatorError as exc:
        return _error(exc)

    codes = [{"account": e.name, "code": e.code, "error": e.error} for e in entries]
    return json.dumps({"count": len(codes), "codes": codes}, indent=2)


@mcp.tool(
    name="otp_view_code",
    annotations={
        "title": "View OTP Code",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def otp_view_code(account: str, length: int = DEFAULT_LENGTH) -> str:
    """Generate the current code for one account.

    Args:
        account: Name of the account.
        length: Number of digits (1-9, default 6).

    Returns:
        JSON: {"account": str, "code": str}
        Error: {"error": str, "account": str}
    """
    try:
        _check_length(length)
    except ValueError as exc:
        return _error(exc, account)

    try:
        with StoreSession() as store:
            code = commands.view_account(store, account, length)
    except AuthenticatorError as exc:
        return _error(exc, account)
    return json.dumps({"account": account, "code": code}, indent=2)


def main():
    mcp.run()


if __name__ == "__main__":
    main()
