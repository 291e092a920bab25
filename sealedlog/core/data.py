"""
sealedlog/core/data.py

Data: the two-state cryptographic envelope around a payload.

    Encrypted(ciphertext, nonce)
    Decrypted(payload)

Data is a union of two frozen classes, never one class with optional
fields. Every value is in exactly one state.

Transitions are all TOTAL and none raise:

    Decrypted.encrypt(c)  → Encrypted(seal(frame(encode(payload))), nonce)
                            or Encrypted.failure() on ANY error
    Encrypted.encrypt(c)  → self (already sealed)
    Encrypted.decrypt(c)  → Decrypted(EncryptionFailed())  if the empty/empty sentinel
                            Decrypted(DecryptionFailed())  on AEAD / framing / codec error
                            Decrypted(payload)             otherwise
    Decrypted.decrypt(c)  → self (already open)

Idempotence lets a caller run bulk encrypt/decrypt over a ledger in any
mixed state. Failures become log entries, so one bad entry never stops
the rest of a ledger from being recovered.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from sealedlog.core.codec import open_plaintext, seal_plaintext
from sealedlog.core.crypto import AeadCipher
from sealedlog.core.exceptions import CodecError
from sealedlog.core.payloads import DecryptionFailed, EncryptionFailed, LedgerData

logger = logging.getLogger(__name__)

STATE_ENCRYPTED = "encrypted"
STATE_DECRYPTED = "decrypted"


def b64url_encode(data: bytes) -> str:
    """Encode bytes to base64url (no padding, URL-safe)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """Decode base64url string back to bytes. Raises CodecError."""
    if not isinstance(s, str):
        raise CodecError(f"expected base64url str, got {type(s).__name__}")
    padding = len(s) % 4
    if padding:
        s += "=" * (4 - padding)
    try:
        return base64.urlsafe_b64decode(s.encode("ascii"))
    except ValueError as exc:
        raise CodecError(f"invalid base64url: {exc}") from exc


@dataclass(frozen=True)
class Encrypted:
    ciphertext: bytes
    nonce:      bytes

    @classmethod
    def failure(cls) -> "Encrypted":
        """The reserved sentinel: encryption of this entry failed."""
        return cls(ciphertext=b"", nonce=b"")

    @property
    def is_failure_sentinel(self) -> bool:
        return not self.ciphertext and not self.nonce

    @property
    def is_encrypted(self) -> bool:
        return True

    def encrypt(self, cipher: AeadCipher) -> "Encrypted":
        return self

    def decrypt(self, cipher: AeadCipher) -> "Decrypted":
        if self.is_failure_sentinel:
            return Decrypted(EncryptionFailed())

        try:
            plaintext = cipher.open(self.nonce, self.ciphertext)
        except Exception as exc:
            logger.debug("AEAD open failed: %s", type(exc).__name__)
            return Decrypted(DecryptionFailed())

        try:
            payload = open_plaintext(plaintext)
        except CodecError as exc:
            logger.debug("plaintext rejected after AEAD open: %s", exc)
            return Decrypted(DecryptionFailed())

        return Decrypted(payload)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state":      STATE_ENCRYPTED,
            "ciphertext": b64url_encode(self.ciphertext),
            "nonce":      b64url_encode(self.nonce),
        }


@dataclass(frozen=True)
class Decrypted:
    payload: LedgerData

    @property
    def is_encrypted(self) -> bool:
        return False

    def encrypt(self, cipher: AeadCipher) -> Encrypted:
        try:
            plaintext  = seal_plaintext(self.payload)
            nonce      = cipher.new_nonce()
            ciphertext = cipher.seal(nonce, plaintext)
        except Exception as exc:
            logger.debug("encryption failed for %s: %s", type(self.payload).__name__, exc)
            return Encrypted.failure()
        return Encrypted(ciphertext=ciphertext, nonce=nonce)

    def decrypt(self, cipher: AeadCipher) -> "Decrypted":
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state":   STATE_DECRYPTED,
            "payload": self.payload.to_dict(),
        }


Data = Union[Encrypted, Decrypted]


def data_from_dict(data: Dict[str, Any]) -> Data:
    """
    Rebuild an Encrypted or Decrypted value from its dict form.
    Raises CodecError on an unknown state or malformed fields.
    """
    if not isinstance(data, dict):
        raise CodecError(f"data must be dict, got {type(data).__name__}")

    state = data.get("state")
    if state == STATE_ENCRYPTED:
        return Encrypted(
            ciphertext= b64url_decode(data.get("ciphertext")),
            nonce=      b64url_decode(data.get("nonce")),
        )
    if state == STATE_DECRYPTED:
        return Decrypted(LedgerData.from_dict(data.get("payload")))

    raise CodecError(
        f"Unknown data state {state!r}",
        {"valid": [STATE_ENCRYPTED, STATE_DECRYPTED]},
    )
