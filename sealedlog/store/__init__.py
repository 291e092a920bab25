"""
Store component: durable key-value storage and per-agent ledger copies.
"""

from sealedlog.store.kv import KeyValueStore, SQLiteStore, open_store
from sealedlog.store.agents import AgentDirectory, AgentRecord

__all__ = [
    "KeyValueStore",
    "SQLiteStore",
    "open_store",
    "AgentDirectory",
    "AgentRecord",
]
