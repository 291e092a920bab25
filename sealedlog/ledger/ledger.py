"""
sealedlog/ledger/ledger.py

LedgerEntry and Ledger: the append-only, per-entry-encrypted log.

Ordering:
    Insertion order is preserved. It is NOT chronological: push_back,
    extend and sync merges can interleave timestamps. Duplicate
    timestamps are allowed. Use chronological() for a sorted copy.

Sync uses three operations, nothing else:
    peer A:  request  = a.export_timestamps()
    peer B:  missing  = b.fetch_missing(request)
    peer A:  a.extend(missing)

    fetch_missing() compares timestamps ONLY. Two entries sharing a
    timestamp are the same entry as far as sync is concerned.

Bulk crypto:
    encrypt(cipher) / decrypt(cipher) map every entry independently.
    Above LedgerConfig.parallel_threshold entries the map runs on a
    ThreadPoolExecutor in batches. Output order always equals input
    order so timestamp diffing stays meaningful.

No operation on Ledger raises. Absence is an empty ledger or None.
Parsing a blob (from_dict / from_bytes) is not a ledger operation and
raises CodecError on malformed input.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from sealedlog.core.canonical import canonicalize, parse
from sealedlog.core.config import LedgerConfig
from sealedlog.core.crypto import AeadCipher
from sealedlog.core.data import Data, Decrypted, Encrypted, data_from_dict
from sealedlog.core.exceptions import CodecError
from sealedlog.core.payloads import LedgerData
from sealedlog.core.time import check_timestamp, now_ns, parse_timestamp

logger = logging.getLogger(__name__)

LEDGER_FORMAT_VERSION = 1


# ─────────────────────────────────────────────────────────────
# LedgerEntry
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LedgerEntry:
    """A single immutable entry: a timestamp and its Data."""
    timestamp: int
    data:      Data

    def __post_init__(self):
        check_timestamp(self.timestamp)
        if not isinstance(self.data, (Encrypted, Decrypted)):
            raise TypeError(
                f"data must be Encrypted or Decrypted, got {type(self.data).__name__}"
            )

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    def new(cls, timestamp: int, payload: LedgerData) -> "LedgerEntry":
        """Entry with an explicit timestamp. Used for replays and tests."""
        return cls(timestamp=timestamp, data=Decrypted(payload))

    @classmethod
    def now(cls, payload: LedgerData) -> "LedgerEntry":
        """Entry stamped with the current wall-clock time in nanoseconds."""
        return cls(timestamp=now_ns(), data=Decrypted(payload))

    # ── State ─────────────────────────────────────────────────

    @property
    def is_encrypted(self) -> bool:
        return self.data.is_encrypted

    @property
    def payload(self) -> Optional[LedgerData]:
        """The decrypted payload, or None while the entry is encrypted."""
        if isinstance(self.data, Decrypted):
            return self.data.payload
        return None

    def encrypt(self, cipher: AeadCipher) -> "LedgerEntry":
        return LedgerEntry(self.timestamp, self.data.encrypt(cipher))

    def decrypt(self, cipher: AeadCipher) -> "LedgerEntry":
        return LedgerEntry(self.timestamp, self.data.decrypt(cipher))

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        # Decimal string: 128-bit values do not survive JSON numbers.
        return {
            "timestamp": str(self.timestamp),
            "data":      self.data.to_dict(),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LedgerEntry":
        """Raises CodecError on missing or malformed fields."""
        if not isinstance(data, dict):
            raise CodecError(f"entry must be dict, got {type(data).__name__}")
        raw_ts = data.get("timestamp")
        if not isinstance(raw_ts, str):
            raise CodecError(
                f"entry.timestamp must be a decimal string, got {type(raw_ts).__name__}"
            )
        try:
            timestamp = parse_timestamp(raw_ts)
        except ValueError as exc:
            raise CodecError(f"invalid entry timestamp {raw_ts!r}: {exc}") from exc
        return LedgerEntry(timestamp=timestamp, data=data_from_dict(data.get("data")))


# ─────────────────────────────────────────────────────────────
# Bulk transform worker
# Module-level so executor.map() gets a plain function.
# ─────────────────────────────────────────────────────────────

def _transform_batch(
    batch:     List[LedgerEntry],
    transform: Callable[[LedgerEntry], LedgerEntry],
) -> List[LedgerEntry]:
    return [transform(entry) for entry in batch]


def _map_entries(
    entries:   List[LedgerEntry],
    transform: Callable[[LedgerEntry], LedgerEntry],
    config:    LedgerConfig,
) -> List[LedgerEntry]:
    """
    Apply transform to every entry, preserving order.

    Runs on a ThreadPoolExecutor when len(entries) reaches the parallel
    threshold. Falls back to a sequential map if the executor cannot
    be used (e.g. during interpreter shutdown).
    """
    if len(entries) < config.parallel_threshold or config.max_workers < 2:
        return [transform(entry) for entry in entries]

    n_workers  = config.max_workers
    batch_size = max(
        1,
        len(entries) // (n_workers * config.batch_size_per_worker_multiplier),
    )
    batches = [
        entries[i : i + batch_size]
        for i in range(0, len(entries), batch_size)
    ]

    try:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            results: List[LedgerEntry] = []
            # map() yields in submission order regardless of completion order.
            for batch_result in executor.map(
                _transform_batch, batches, [transform] * len(batches)
            ):
                results.extend(batch_result)
            return results
    except RuntimeError as exc:
        logger.debug("parallel map unavailable (%s); running sequentially", exc)
        return [transform(entry) for entry in entries]


# ─────────────────────────────────────────────────────────────
# Ledger
# ─────────────────────────────────────────────────────────────

class Ledger:
    """
    Ordered, append-only sequence of LedgerEntry.

    Usage:
        ledger = Ledger()
        ledger.push_back(LedgerEntry.now(ClipboardCopy("hello")))
        sealed = ledger.encrypt(cipher)
        blob   = sealed.to_bytes()
        ...
        opened = Ledger.from_bytes(blob).decrypt(cipher)

    A plain value: no I/O, no locks, no external resources.
    """

    def __init__(self, entries: Optional[Iterable[LedgerEntry]] = None):
        self._entries: List[LedgerEntry] = list(entries) if entries is not None else []

    # ── Mutation ──────────────────────────────────────────────

    def push_back(self, entry: LedgerEntry) -> None:
        self._entries.append(entry)

    def extend(self, other: "Ledger") -> None:
        """Append all of other's entries in order. No re-sort."""
        self._entries.extend(other._entries)

    # ── Bulk crypto ───────────────────────────────────────────

    def encrypt(
        self, cipher: AeadCipher, config: Optional[LedgerConfig] = None
    ) -> "Ledger":
        """New ledger with every entry encrypted. Already-encrypted entries pass through."""
        return Ledger(
            _map_entries(self._entries, lambda e: e.encrypt(cipher), config or LedgerConfig())
        )

    def decrypt(
        self, cipher: AeadCipher, config: Optional[LedgerConfig] = None
    ) -> "Ledger":
        """New ledger with every entry decrypted. Failures become sentinel payloads."""
        return Ledger(
            _map_entries(self._entries, lambda e: e.decrypt(cipher), config or LedgerConfig())
        )

    # ── Sync ──────────────────────────────────────────────────

    def export_timestamps(self) -> List[int]:
        return [entry.timestamp for entry in self._entries]

    def fetch_missing(self, other_timestamps: Iterable[int]) -> "Ledger":
        """
        Entries of this ledger whose timestamp the peer does NOT have.

        Set difference on timestamps only. Membership is O(1) per entry.
        """
        known = set(other_timestamps)
        return Ledger(e for e in self._entries if e.timestamp not in known)

    def merge_missing(self, other: "Ledger") -> int:
        """
        Pull every entry of other that this ledger lacks, by timestamp.
        Returns the number of entries appended.
        """
        missing = other.fetch_missing(self.export_timestamps())
        self.extend(missing)
        if len(missing):
            logger.info("merged %d missing entries", len(missing))
        return len(missing)

    # ── Queries ───────────────────────────────────────────────

    def get_last_entry_by_type(self, kind: LedgerData) -> Optional[LedgerEntry]:
        """
        Most recently appended decrypted entry whose payload has the same
        variant as kind. kind's own value is ignored. Encrypted entries are
        invisible to this query.
        """
        for entry in reversed(self._entries):
            payload = entry.payload
            if payload is not None and payload.same_kind(kind):
                return entry
        return None

    def chronological(self) -> "Ledger":
        """Stable-sorted copy by timestamp. This ledger is left untouched."""
        return Ledger(sorted(self._entries, key=lambda e: e.timestamp))

    @property
    def entries(self) -> List[LedgerEntry]:
        return self._entries.copy()

    def get_stats(self) -> Dict[str, Any]:
        """Ledger statistics. Kinds are counted over decrypted entries only."""
        by_kind: Dict[str, int] = defaultdict(int)
        encrypted = 0
        for entry in self._entries:
            payload = entry.payload
            if payload is None:
                encrypted += 1
            else:
                by_kind[payload.kind] += 1

        return {
            "total_entries":   len(self._entries),
            "encrypted":       encrypted,
            "decrypted":       len(self._entries) - encrypted,
            "by_kind":         dict(by_kind),
            "first_timestamp": self._entries[0].timestamp if self._entries else None,
            "last_timestamp":  self._entries[-1].timestamp if self._entries else None,
        }

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": LEDGER_FORMAT_VERSION,
            "entries": [entry.to_dict() for entry in self._entries],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ledger":
        """Raises CodecError on an unsupported version or malformed entries."""
        if not isinstance(data, dict):
            raise CodecError(f"ledger must be dict, got {type(data).__name__}")
        version = data.get("version")
        if version != LEDGER_FORMAT_VERSION:
            raise CodecError(
                f"Unsupported ledger format version {version!r}",
                {"expected": LEDGER_FORMAT_VERSION},
            )
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list):
            raise CodecError("ledger.entries must be a list")
        return cls(LedgerEntry.from_dict(item) for item in raw_entries)

    def to_bytes(self) -> bytes:
        """Canonical JSON blob. Deterministic for equal ledgers."""
        return canonicalize(self.to_dict())

    @classmethod
    def from_bytes(cls, blob: bytes) -> "Ledger":
        try:
            data = parse(blob)
        except ValueError as exc:
            raise CodecError(f"ledger blob is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    # ── Container protocol ────────────────────────────────────

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self._entries.copy())

    def __getitem__(self, index: int) -> LedgerEntry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Ledger(entries={len(self._entries)})"
