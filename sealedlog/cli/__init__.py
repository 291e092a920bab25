"""
sealedlog/cli/__init__.py

sealedlog CLI: root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    sealedlog = "sealedlog.cli:cli"

Adding a new command:
    1. Create sealedlog/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from sealedlog.cli.show import show_command, timestamps_command
from sealedlog.cli.sync import diff_command, merge_command


@click.group()
@click.version_option(package_name="sealedlog")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """
    sealedlog: encrypted append-only ledger tools.

    \b
    Commands:
      show        List entries, optionally decrypting them.
      timestamps  Print entry timestamps (the sync request).
      diff        Entries in one ledger missing from another.
      merge       Append missing entries into a ledger.

    \b
    Quick start:
      sealedlog show agent.jsonl --key-file agent.key
      sealedlog diff agent.jsonl store.jsonl
      sealedlog merge store.jsonl agent.jsonl
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


cli.add_command(show_command)
cli.add_command(timestamps_command)
cli.add_command(diff_command)
cli.add_command(merge_command)
