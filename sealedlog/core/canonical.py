"""
sealedlog: Canonical JSON Encoding (RFC 8785, JCS)

This is the ONLY serialization used inside the encryption boundary and
for ledger blobs. Same input, same bytes, on every machine.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import json
from typing import Any

try:
    import jcs as _jcs
except ImportError as exc:
    raise ImportError(
        "sealedlog requires the 'jcs' package for RFC 8785 compliance.\n"
        "Install with: pip install jcs\n"
        f"Original error: {exc}"
    ) from exc


def canonicalize(obj: Any) -> bytes:
    """
    Encode a JSON-primitive structure to RFC 8785 canonical JSON bytes.

    Integers outside the IEEE-754 safe range lose precision under JCS.
    Callers carrying 128-bit timestamps must encode them as strings first.
    """
    return _jcs.canonicalize(obj)


def parse(data: bytes) -> Any:
    """
    Decode canonical JSON bytes.

    Raises ValueError (json.JSONDecodeError or UnicodeDecodeError) on
    malformed input. Callers translate that into CodecError.
    """
    return json.loads(data.decode("utf-8"))
