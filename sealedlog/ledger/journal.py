"""
sealedlog/ledger/journal.py

LedgerJournal: a ledger on disk as JSONL, one entry per line.

Contract:
    append()/extend() write, flush and fsync before returning. An entry
    that has been reported by export_timestamps() on a loaded journal
    survived the write that put it there.

    load() tolerates a torn last line (crash mid-append): a final line with
    no terminating newline that does not parse is skipped with a
    RuntimeWarning. A corrupt newline-terminated line, last or not, is a
    JournalError.

    rewrite() replaces the whole file atomically (temp file + os.replace).
"""

import json
import os
import warnings
from pathlib import Path
from typing import List, Union

from sealedlog.core.canonical import canonicalize
from sealedlog.core.exceptions import CodecError, JournalError
from sealedlog.ledger.ledger import Ledger, LedgerEntry

_TAIL_CHUNK = 64 * 1024


class LedgerJournal:

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    # ── Write ─────────────────────────────────────────────────

    def append(self, entry: LedgerEntry) -> None:
        self._write_lines([self._encode(entry)], mode="a")

    def extend(self, ledger: Ledger) -> None:
        lines = [self._encode(entry) for entry in ledger]
        if lines:
            self._write_lines(lines, mode="a")

    def rewrite(self, ledger: Ledger) -> None:
        """Atomically replace the journal with ledger's entries."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                for entry in ledger:
                    f.write(self._encode(entry) + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path.exists():
                temp_path.unlink()
            raise JournalError(
                f"Failed to rewrite ledger journal: {exc}", {"path": str(self.path)}
            ) from exc

    # ── Read ──────────────────────────────────────────────────

    def load(self) -> Ledger:
        """Read the journal. A missing file is an empty ledger."""
        if not self.path.exists():
            return Ledger()

        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except OSError as exc:
            raise JournalError(
                f"Failed to read ledger journal: {exc}", {"path": str(self.path)}
            ) from exc

        lines = raw.split(b"\n")
        # Only an unterminated final line can be the remains of an append.
        torn_line = len(lines) if lines[-1].strip() else None

        ledger = Ledger()
        for line_num, line in enumerate(lines, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = LedgerEntry.from_dict(json.loads(line))
            except (ValueError, CodecError) as exc:
                if line_num == torn_line:
                    warnings.warn(
                        f"LedgerJournal: skipping unterminated last line {line_num} "
                        f"of {self.path}: {exc}. The previous append may have "
                        "been interrupted.",
                        RuntimeWarning,
                        stacklevel=2,
                    )
                    break
                raise JournalError(
                    f"Invalid ledger entry at line {line_num}: {exc}",
                    {"path": str(self.path)},
                ) from exc
            ledger.push_back(entry)
        return ledger

    # ── Internal ──────────────────────────────────────────────

    @staticmethod
    def _encode(entry: LedgerEntry) -> str:
        return canonicalize(entry.to_dict()).decode("utf-8")

    def _truncate_torn_tail(self) -> None:
        """Drop bytes after the last newline left by an interrupted append."""
        if not self.path.exists():
            return
        size = self.path.stat().st_size
        if size == 0:
            return
        with open(self.path, "rb+") as f:
            f.seek(size - 1)
            if f.read(1) == b"\n":
                return
            keep = self._tail_start(f, size)
            f.seek(keep)
            tail = f.read()
            try:
                LedgerEntry.from_dict(json.loads(tail.decode("utf-8")))
            except (ValueError, CodecError):
                pass
            else:
                # Complete entry, only the newline is missing.
                f.seek(size)
                f.write(b"\n")
                f.flush()
                os.fsync(f.fileno())
                return
            warnings.warn(
                f"LedgerJournal: discarding {size - keep} bytes of an "
                f"interrupted append at the end of {self.path}",
                RuntimeWarning,
                stacklevel=4,
            )
            f.truncate(keep)
            f.flush()
            os.fsync(f.fileno())

    @staticmethod
    def _tail_start(f, size: int) -> int:
        """Offset just past the last newline in f, reading backwards in chunks."""
        end = size
        while end > 0:
            start = max(0, end - _TAIL_CHUNK)
            f.seek(start)
            found = f.read(end - start).rfind(b"\n")
            if found != -1:
                return start + found + 1
            end = start
        return 0

    def _write_lines(self, lines: List[str], mode: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            if mode == "a":
                self._truncate_torn_tail()
            with open(self.path, mode, encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise JournalError(
                f"Failed to append to ledger journal: {exc}", {"path": str(self.path)}
            ) from exc

    def __repr__(self) -> str:
        return f"LedgerJournal(path={self.path})"
