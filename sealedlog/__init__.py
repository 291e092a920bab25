"""
sealedlog/__init__.py

sealedlog: Append-Only, Per-Entry-Encrypted Event Ledger

Every entry is sealed on its own with a caller-supplied AEAD cipher.
Two copies of a ledger (agent side, store side) sync by exchanging
timestamps and sending only the entries the other side lacks.

Crypto and codec failures never raise out of the ledger: they become
EncryptionFailed / DecryptionFailed entries in the log itself.
"""

__version__ = "0.1.0"

from sealedlog.core.payloads import (
    ClipboardCopy,
    DecryptionFailed,
    EncryptionFailed,
    LedgerData,
)
from sealedlog.core.data import Data, Decrypted, Encrypted
from sealedlog.core.crypto import AeadCipher
from sealedlog.core.config import LedgerConfig, StoreConfig
from sealedlog.core.exceptions import (
    CodecError,
    ConfigError,
    JournalError,
    SealedLogError,
    StoreError,
)
from sealedlog.ledger import (
    Ledger,
    LedgerEntry,
    LedgerJournal,
    SyncRequest,
    SyncResponse,
    answer_request,
    apply_response,
    build_request,
)

__all__ = [
    # Payloads
    "LedgerData",
    "ClipboardCopy",
    "EncryptionFailed",
    "DecryptionFailed",
    # Crypto state
    "Data",
    "Encrypted",
    "Decrypted",
    "AeadCipher",
    # Ledger
    "Ledger",
    "LedgerEntry",
    "LedgerJournal",
    # Sync
    "SyncRequest",
    "SyncResponse",
    "build_request",
    "answer_request",
    "apply_response",
    # Config
    "LedgerConfig",
    "StoreConfig",
    # Errors
    "SealedLogError",
    "CodecError",
    "StoreError",
    "JournalError",
    "ConfigError",
]
