"""
Tiered storage for the token ledger: canonical codec, tagged keys, the
backend protocol with an in-memory implementation, and the per-call journal.
"""

from .backend import MemoryBackend, StorageBackend, StorageTier, StoredEntry
from .journal import Journal, TierView
from .keys import (AdminKey, AllowanceKey, BalanceKey, DataKey, FrozenKey,
                   MetadataKey, decode_key, encode_key)

__all__ = [
    "MemoryBackend",
    "StorageBackend",
    "StorageTier",
    "StoredEntry",
    "Journal",
    "TierView",
    "AdminKey",
    "AllowanceKey",
    "BalanceKey",
    "DataKey",
    "FrozenKey",
    "MetadataKey",
    "decode_key",
    "encode_key",
]
