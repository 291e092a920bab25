"""
sealedlog Exception Hierarchy

All exceptions inherit from SealedLogError for easy catching.

Ledger operations and Data transitions never raise: crypto and codec
failures become sentinel payloads. These exceptions cover the edges
that do I/O or parse untrusted blobs.
"""


class SealedLogError(Exception):
    """Base exception for all sealedlog errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CodecError(SealedLogError):
    """Raised when a payload or ledger blob cannot be decoded"""
    pass


class StoreError(SealedLogError):
    """Raised when a key-value store operation fails"""
    pass


class JournalError(SealedLogError):
    """Raised when a ledger journal file cannot be read or written"""
    pass


class ConfigError(SealedLogError):
    """Raised when configuration values are invalid"""
    pass
