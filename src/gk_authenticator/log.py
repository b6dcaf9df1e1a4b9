"""Logging for gk-authenticator.

One handler on stderr for the whole package. `list` and `view` print codes on
stdout and the MCP server speaks JSON-RPC there, so diagnostics stay on
stderr. Generated codes and secrets are only logged at DEBUG (`--verbose`).
"""

import logging
import sys

_handler = logging.StreamHandler(sys.stderr)
_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

logger = logging.getLogger("gk_authenticator")
logger.addHandler(_handler)
logger.setLevel(logging.INFO)


def debug_detail(message: str) -> None:
    logger.debug(message)


def set_verbose(verbose: bool) -> None:
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
