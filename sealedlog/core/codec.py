"""
sealedlog/core/codec.py

Serialization codec for payloads inside the encryption boundary.

The authenticated plaintext is framed as:

    L (8 bytes, little-endian, unsigned) || body (exactly L bytes)

    body = canonicalize(payload.to_dict())   - one RFC 8785 pass, no more

On the way back, bytes after 8 + L are ignored. A prefix that claims
more bytes than the plaintext holds is a CodecError, never a short read.
"""

from sealedlog.core.canonical import canonicalize, parse
from sealedlog.core.exceptions import CodecError
from sealedlog.core.payloads import LedgerData

LENGTH_PREFIX_SIZE = 8


def encode_payload(payload: LedgerData) -> bytes:
    """Canonical bytes of a payload."""
    if not isinstance(payload, LedgerData):
        raise CodecError(
            f"expected LedgerData, got {type(payload).__name__}"
        )
    return canonicalize(payload.to_dict())


def decode_payload(body: bytes) -> LedgerData:
    """
    Rebuild a payload from canonical bytes.
    Raises CodecError on malformed JSON or an invalid payload dict.
    """
    try:
        data = parse(body)
    except ValueError as exc:
        raise CodecError(f"payload is not valid JSON: {exc}") from exc
    return LedgerData.from_dict(data)


def frame(body: bytes) -> bytes:
    """Prefix body with its 8-byte little-endian length."""
    return len(body).to_bytes(LENGTH_PREFIX_SIZE, "little") + body


def unframe(plaintext: bytes) -> bytes:
    """
    Return the body covered by the length prefix.

    Raises CodecError if the plaintext is shorter than the prefix or
    the prefix points past the end of the plaintext.
    """
    if len(plaintext) < LENGTH_PREFIX_SIZE:
        raise CodecError(
            "plaintext shorter than length prefix",
            {"length": len(plaintext)},
        )
    length = int.from_bytes(plaintext[:LENGTH_PREFIX_SIZE], "little")
    end = LENGTH_PREFIX_SIZE + length
    if end > len(plaintext):
        raise CodecError(
            "length prefix exceeds plaintext",
            {"declared": length, "available": len(plaintext) - LENGTH_PREFIX_SIZE},
        )
    return plaintext[LENGTH_PREFIX_SIZE:end]


def seal_plaintext(payload: LedgerData) -> bytes:
    """encode + frame: the exact bytes handed to the AEAD."""
    return frame(encode_payload(payload))


def open_plaintext(plaintext: bytes) -> LedgerData:
    """unframe + decode: the inverse of seal_plaintext()."""
    return decode_payload(unframe(plaintext))
