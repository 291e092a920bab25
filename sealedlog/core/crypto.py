"""
sealedlog/core/crypto.py

AEAD layer: the caller's cipher, wrapped.

Key contracts:
    AeadCipher never generates, derives, stores or logs key material.
    The caller builds the cipher from a key it already holds and owns
    its lifetime.

    new_nonce()   : fresh random bytes of the algorithm's nonce size,
                    drawn from `secrets` on EVERY call. Nonces are never
                    cached, counted or reused.
    seal(...)     : AEAD encrypt. Raises on failure.
    open(...)     : AEAD decrypt. Raises cryptography InvalidTag on a
                    wrong key, tampered ciphertext or tampered nonce.

The Data state machine catches those errors and turns them into
sentinel payloads. Nothing above Data sees an exception from here.
"""

import secrets
from typing import Any, Optional

from cryptography.hazmat.primitives.ciphers.aead import (
    AESGCM,
    ChaCha20Poly1305,
)

CHACHA20_POLY1305 = "chacha20poly1305"
AES_GCM           = "aesgcm"

# Both algorithms use a 96-bit nonce.
_NONCE_SIZES = {
    CHACHA20_POLY1305: 12,
    AES_GCM:           12,
}

ALGORITHMS = tuple(sorted(_NONCE_SIZES))


class AeadCipher:
    """
    Caller-supplied AEAD primitive.

    Public surface:
        AeadCipher.chacha20poly1305(key)     → ChaCha20-Poly1305, 32-byte key
        AeadCipher.aes_gcm(key)              → AES-GCM, 16/24/32-byte key
        AeadCipher.for_algorithm(name, key)  → dispatch on ALGORITHMS

        cipher.nonce_size                    → int (@property)
        cipher.new_nonce()                   → bytes
        cipher.seal(nonce, plaintext)        → ciphertext || tag
        cipher.open(nonce, ciphertext)       → plaintext
    """

    def __init__(
        self,
        aead:            Any,
        nonce_size:      int,
        algorithm:       str = "custom",
        associated_data: Optional[bytes] = None,
    ) -> None:
        if not isinstance(nonce_size, int) or nonce_size <= 0:
            raise ValueError(
                f"nonce_size must be a positive int, got {nonce_size!r}"
            )
        self._aead:            Any             = aead
        self._nonce_size:      int             = nonce_size
        self._algorithm:       str             = algorithm
        self._associated_data: Optional[bytes] = associated_data

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def chacha20poly1305(
        cls, key: bytes, associated_data: Optional[bytes] = None
    ) -> "AeadCipher":
        """
        ChaCha20-Poly1305 over a caller-held 32-byte key.
        Raises ValueError if the key has the wrong length.
        """
        return cls(
            ChaCha20Poly1305(key),
            _NONCE_SIZES[CHACHA20_POLY1305],
            CHACHA20_POLY1305,
            associated_data,
        )

    @classmethod
    def aes_gcm(
        cls, key: bytes, associated_data: Optional[bytes] = None
    ) -> "AeadCipher":
        """
        AES-GCM over a caller-held 128/192/256-bit key.
        Raises ValueError if the key has the wrong length.
        """
        return cls(
            AESGCM(key),
            _NONCE_SIZES[AES_GCM],
            AES_GCM,
            associated_data,
        )

    @classmethod
    def for_algorithm(
        cls, algorithm: str, key: bytes, associated_data: Optional[bytes] = None
    ) -> "AeadCipher":
        """Raises ValueError for an algorithm outside ALGORITHMS."""
        if algorithm == CHACHA20_POLY1305:
            return cls.chacha20poly1305(key, associated_data)
        if algorithm == AES_GCM:
            return cls.aes_gcm(key, associated_data)
        raise ValueError(
            f"Unknown AEAD algorithm '{algorithm}'. Valid: {list(ALGORITHMS)}"
        )

    # ── Properties ────────────────────────────────────────────

    @property
    def nonce_size(self) -> int:
        return self._nonce_size

    @property
    def algorithm(self) -> str:
        return self._algorithm

    # ── Operations ────────────────────────────────────────────

    def new_nonce(self) -> bytes:
        """Fresh CSPRNG nonce. Called once per sealed entry."""
        return secrets.token_bytes(self._nonce_size)

    def seal(self, nonce: bytes, plaintext: bytes) -> bytes:
        if len(nonce) != self._nonce_size:
            raise ValueError(
                f"nonce must be {self._nonce_size} bytes, got {len(nonce)}"
            )
        return self._aead.encrypt(nonce, plaintext, self._associated_data)

    def open(self, nonce: bytes, ciphertext: bytes) -> bytes:
        if len(nonce) != self._nonce_size:
            raise ValueError(
                f"nonce must be {self._nonce_size} bytes, got {len(nonce)}"
            )
        return self._aead.decrypt(nonce, ciphertext, self._associated_data)

    def __repr__(self) -> str:
        return f"AeadCipher(algorithm={self._algorithm}, nonce_size={self._nonce_size})"
