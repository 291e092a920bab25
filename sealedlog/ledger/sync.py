"""
sealedlog/ledger/sync.py

Carriers for the three-step ledger sync:

    1. requester:  build_request(ledger)            → SyncRequest
    2. responder:  answer_request(ledger, request)  → SyncResponse
    3. requester:  apply_response(ledger, response) → entries merged

Both messages serialize to canonical JSON bytes. How those bytes move
between machines is the caller's business.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from sealedlog.core.canonical import canonicalize, parse
from sealedlog.core.exceptions import CodecError
from sealedlog.core.time import parse_timestamp
from sealedlog.ledger.ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass
class SyncRequest:
    """Timestamps already known to the requesting peer."""
    timestamps: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamps": [str(ts) for ts in self.timestamps]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncRequest":
        if not isinstance(data, dict) or not isinstance(data.get("timestamps"), list):
            raise CodecError("sync request must be a dict with a 'timestamps' list")
        timestamps = []
        for raw in data["timestamps"]:
            if not isinstance(raw, str):
                raise CodecError(
                    f"sync timestamp must be a decimal string, got {type(raw).__name__}"
                )
            try:
                timestamps.append(parse_timestamp(raw))
            except ValueError as exc:
                raise CodecError(f"invalid sync timestamp {raw!r}: {exc}") from exc
        return cls(timestamps=timestamps)

    def to_bytes(self) -> bytes:
        return canonicalize(self.to_dict())

    @classmethod
    def from_bytes(cls, blob: bytes) -> "SyncRequest":
        try:
            data = parse(blob)
        except ValueError as exc:
            raise CodecError(f"sync request is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


@dataclass
class SyncResponse:
    """Entries the requester lacks, in the responder's ledger order."""
    ledger: Ledger = field(default_factory=Ledger)

    def to_bytes(self) -> bytes:
        return self.ledger.to_bytes()

    @classmethod
    def from_bytes(cls, blob: bytes) -> "SyncResponse":
        return cls(ledger=Ledger.from_bytes(blob))


def build_request(ledger: Ledger) -> SyncRequest:
    return SyncRequest(timestamps=ledger.export_timestamps())


def answer_request(ledger: Ledger, request: SyncRequest) -> SyncResponse:
    return SyncResponse(ledger=ledger.fetch_missing(request.timestamps))


def apply_response(ledger: Ledger, response: SyncResponse) -> int:
    """
    Merge the response into ledger. Returns the number of entries appended.

    Entries whose timestamp the ledger already holds are skipped, so
    applying the same response twice is harmless.
    """
    return ledger.merge_missing(response.ledger)
