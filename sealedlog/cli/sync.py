"""
sealedlog diff / sealedlog merge: timestamp-based sync between two journals.

Usage:
    sealedlog diff <source> <peer>                   Entries in source the peer lacks
    sealedlog diff <source> <peer> --output out.jsonl
    sealedlog merge <target> <source>                Append source's missing entries to target

Entries are copied as stored. Encrypted entries stay encrypted.
"""

import sys
from typing import Optional

import click

from sealedlog.cli.output import (
    EXIT_ERROR,
    EXIT_OK,
    describe_entry,
    emit_error,
    load_journal,
)
from sealedlog.core.exceptions import JournalError
from sealedlog.ledger.journal import LedgerJournal


@click.command(name="diff")
@click.argument("source", type=click.Path(exists=False))
@click.argument("peer", type=click.Path(exists=False))
@click.option(
    "--output",
    "output_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help="Write the missing entries to a new journal instead of listing them.",
)
def diff_command(source: str, peer: str, output_path: Optional[str]) -> None:
    """
    Show the entries of SOURCE whose timestamp PEER does not have.
    """
    source_ledger = load_journal(source)
    peer_ledger   = load_journal(peer)

    missing = source_ledger.fetch_missing(peer_ledger.export_timestamps())

    if output_path:
        try:
            LedgerJournal(output_path).rewrite(missing)
        except JournalError as e:
            emit_error(str(e))
            sys.exit(EXIT_ERROR)
        click.echo(f"{len(missing)} missing entries written to {output_path}")
    else:
        click.echo(f"{len(missing)} entries in {source} missing from {peer}")
        for index, entry in enumerate(missing):
            click.echo(describe_entry(index, entry))

    sys.exit(EXIT_OK)


@click.command(name="merge")
@click.argument("target", type=click.Path(exists=False))
@click.argument("source", type=click.Path(exists=False))
def merge_command(target: str, source: str) -> None:
    """
    Append to TARGET every entry of SOURCE that TARGET lacks.

    TARGET is created if it does not exist.
    """
    journal = LedgerJournal(target)
    try:
        target_ledger = journal.load()
    except JournalError as e:
        emit_error(str(e))
        sys.exit(EXIT_ERROR)
    source_ledger = load_journal(source)

    missing = source_ledger.fetch_missing(target_ledger.export_timestamps())
    try:
        journal.extend(missing)
    except JournalError as e:
        emit_error(str(e))
        sys.exit(EXIT_ERROR)

    click.echo(f"merged {len(missing)} entries into {target}")
    sys.exit(EXIT_OK)
