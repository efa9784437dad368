"""
tokenledger — fungible token ledger with tiered, expiring storage.

Administrator, metadata, balances, allowances and freeze flags live in a
three-tier key/value store with explicit retention windows. Every operation
runs against an explicit CallContext and applies atomically through
`LedgerHost.invoke`.

Quick start
-----------
    from tokenledger import AuthContext, LedgerHost

    host = LedgerHost(sequence=100)
    host.invoke("initialize", admin, 7, "Token", "TKN")
    host.invoke("mint", user, 1_000, auth=AuthContext.of(admin))
    host.invoke("balance", user).value  # -> 1000
"""

from .config import CFG, LedgerConfig, load_config
from .context import AuthContext, AuthRecord, CallContext, LedgerEnv
from .errors import ErrorKind, LedgerError, LedgerInvariantError
from .events import Event
from .host import LedgerHost, TokenClient
from .result import CallResult, CallStatus
from .version import __version__

__all__ = [
    "__version__",
    "CFG",
    "LedgerConfig",
    "load_config",
    "AuthContext",
    "AuthRecord",
    "CallContext",
    "LedgerEnv",
    "ErrorKind",
    "LedgerError",
    "LedgerInvariantError",
    "Event",
    "LedgerHost",
    "TokenClient",
    "CallResult",
    "CallStatus",
]
