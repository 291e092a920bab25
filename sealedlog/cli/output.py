"""
Shared CLI helpers: colors, error output, journal and cipher loading.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from sealedlog.core.crypto import AeadCipher
from sealedlog.core.exceptions import SealedLogError
from sealedlog.ledger.journal import LedgerJournal
from sealedlog.ledger.ledger import Ledger, LedgerEntry

EXIT_OK       = 0
EXIT_FAILURES = 1
EXIT_ERROR    = 2


class _Color:
    """
    Entry-state styling through click.style.

    click.echo strips the styling when output is not a terminal.
    `show --no-color` turns it off for a terminal as well.
    """
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled

    @classmethod
    def _style(cls, s: str, **styles) -> str:
        return click.style(s, **styles) if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return cls._style(s, fg="red")

    @classmethod
    def yellow(cls, s: str) -> str:
        return cls._style(s, fg="yellow")

    @classmethod
    def dim(cls, s: str) -> str:
        return cls._style(s, dim=True)


def emit_error(msg: str, fmt: str = "human") -> None:
    """Emit error in the requested format. Never raises."""
    if fmt == "json":
        click.echo(json.dumps({"error": msg}))
    else:
        click.echo(_Color.red(f"ERROR: {msg}"), err=True)


def load_journal(path: str, fmt: str = "human") -> Ledger:
    """Load a journal or exit with code 2."""
    journal = LedgerJournal(path)
    if not journal.exists():
        emit_error(f"Ledger not found: {path}", fmt)
        sys.exit(EXIT_ERROR)
    try:
        return journal.load()
    except SealedLogError as e:
        emit_error(str(e), fmt)
        sys.exit(EXIT_ERROR)


def load_cipher(key_file: Optional[str], algorithm: str, fmt: str = "human") -> Optional[AeadCipher]:
    """
    Build a cipher from a file holding the raw key bytes.
    Returns None when no key file was given. Exits with code 2 on a bad key.
    """
    if key_file is None:
        return None
    try:
        key = Path(key_file).read_bytes()
        return AeadCipher.for_algorithm(algorithm, key)
    except (OSError, ValueError) as e:
        emit_error(f"Cannot use key file {key_file}: {e}", fmt)
        sys.exit(EXIT_ERROR)


def describe_entry(index: int, entry: LedgerEntry) -> str:
    """One human-readable line per entry."""
    head = f"  [{index:04d}] {entry.timestamp}"
    payload = entry.payload
    if payload is None:
        size = len(entry.data.ciphertext)
        if entry.data.is_failure_sentinel:
            return f"{head}  {_Color.yellow('encrypted (failure sentinel)')}"
        return f"{head}  {_Color.dim(f'encrypted ({size} bytes)')}"
    if payload.is_failure:
        return f"{head}  {_Color.red(payload.kind)}"
    text = getattr(payload, "text", None)
    if text is None:
        return f"{head}  {payload.kind}"
    preview = text if len(text) <= 60 else text[:57] + "..."
    return f"{head}  {payload.kind}  {preview!r}"
