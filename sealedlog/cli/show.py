"""
sealedlog show / sealedlog timestamps: inspect a ledger journal.

Usage:
    sealedlog show <ledger>                              Entries as stored
    sealedlog show <ledger> --key-file k.bin             Decrypt before listing
    sealedlog show <ledger> --key-file k.bin --cipher aesgcm
    sealedlog show <ledger> --format json                Machine-readable JSON
    sealedlog timestamps <ledger>                        One timestamp per line

Exit codes:
    0  Listed; no failure sentinels
    1  Listed; at least one EncryptionFailed / DecryptionFailed entry
    2  Error (file missing, malformed journal, unusable key)
"""

import json
import sys
from typing import Optional

import click

from sealedlog.cli.output import (
    EXIT_FAILURES,
    EXIT_OK,
    _Color,
    describe_entry,
    load_cipher,
    load_journal,
)
from sealedlog.core.crypto import ALGORITHMS, CHACHA20_POLY1305


@click.command(name="show")
@click.argument("ledger", type=click.Path(exists=False))
@click.option(
    "--key-file",
    type=click.Path(exists=False),
    default=None,
    metavar="PATH",
    help="File holding the raw AEAD key. Entries stay encrypted without it.",
)
@click.option(
    "--cipher", "algorithm",
    type=click.Choice(list(ALGORITHMS), case_sensitive=False),
    default=CHACHA20_POLY1305,
    show_default=True,
    help="AEAD algorithm the key belongs to.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
)
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI color output.")
def show_command(
    ledger:    str,
    key_file:  Optional[str],
    algorithm: str,
    fmt:       str,
    no_color:  bool,
) -> None:
    """
    List the entries of a ledger journal.

    LEDGER is the path to a .jsonl ledger journal.
    """
    _Color.configure(not no_color)

    entries = load_journal(ledger, fmt)
    cipher  = load_cipher(key_file, algorithm.lower(), fmt)
    if cipher is not None:
        entries = entries.decrypt(cipher)

    failures = sum(
        1 for e in entries if e.payload is not None and e.payload.is_failure
    )
    stats = entries.get_stats()

    if fmt == "json":
        click.echo(json.dumps({
            "ledger":    ledger,
            "decrypted": cipher is not None,
            "failures":  failures,
            "stats": {
                **stats,
                "first_timestamp": _str_or_none(stats["first_timestamp"]),
                "last_timestamp":  _str_or_none(stats["last_timestamp"]),
            },
            "entries": [e.to_dict() for e in entries],
        }, indent=2))
    else:
        click.echo(f"  Ledger    : {ledger}")
        click.echo(f"  Entries   : {stats['total_entries']:,}")
        click.echo(f"  Encrypted : {stats['encrypted']:,}")
        for index, entry in enumerate(entries):
            click.echo(describe_entry(index, entry))
        if failures:
            click.echo(_Color.red(f"  {failures} failed entr{'y' if failures == 1 else 'ies'}"))

    sys.exit(EXIT_FAILURES if failures else EXIT_OK)


@click.command(name="timestamps")
@click.argument("ledger", type=click.Path(exists=False))
def timestamps_command(ledger: str) -> None:
    """
    Print every entry timestamp of LEDGER, in ledger order.

    This is the list a peer sends when it asks for missing entries.
    """
    entries = load_journal(ledger)
    for ts in entries.export_timestamps():
        click.echo(str(ts))


def _str_or_none(value: Optional[int]) -> Optional[str]:
    return str(value) if value is not None else None


__all__ = ["show_command", "timestamps_command"]
