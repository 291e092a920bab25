"""
sealedlog Ledger - Append-Only, Per-Entry-Encrypted Log

The ledger is the source of truth on both the agent side and the store side.
"""

from sealedlog.ledger.ledger import Ledger, LedgerEntry
from sealedlog.ledger.journal import LedgerJournal
from sealedlog.ledger.sync import (
    SyncRequest,
    SyncResponse,
    answer_request,
    apply_response,
    build_request,
)

__all__ = [
    "Ledger",
    "LedgerEntry",
    "LedgerJournal",
    "SyncRequest",
    "SyncResponse",
    "answer_request",
    "apply_response",
    "build_request",
]
