"""
tests/test_cli.py

sealedlog CLI through Click's CliRunner.

Exit codes: 0 ok, 1 failure sentinels listed, 2 error.
"""

import json

import click
import pytest
from click.testing import CliRunner

from sealedlog import ClipboardCopy, Ledger, LedgerEntry, LedgerJournal
from sealedlog.cli import cli
from sealedlog.cli.output import _Color


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def key_file(tmp_path, key):
    path = tmp_path / "agent.key"
    path.write_bytes(key)
    return path


@pytest.fixture
def sealed_journal(tmp_path, cipher):
    journal = LedgerJournal(tmp_path / "agent.jsonl")
    journal.extend(
        Ledger(LedgerEntry.new(i, ClipboardCopy(f"copy {i}")) for i in range(3)).encrypt(cipher)
    )
    return journal


class TestShow:

    def test_lists_encrypted_entries_without_key(self, runner, sealed_journal):
        result = runner.invoke(cli, ["show", str(sealed_journal.path), "--no-color"])
        assert result.exit_code == 0, result.output
        assert "Entries   : 3" in result.output
        assert result.output.count("encrypted (") == 3

    def test_decrypts_with_key(self, runner, sealed_journal, key_file):
        result = runner.invoke(
            cli, ["show", str(sealed_journal.path), "--key-file", str(key_file), "--no-color"]
        )
        assert result.exit_code == 0, result.output
        assert "'copy 2'" in result.output

    def test_wrong_key_reports_failures(self, runner, sealed_journal, tmp_path):
        wrong = tmp_path / "wrong.key"
        wrong.write_bytes(b"\x00" * 32)
        result = runner.invoke(
            cli, ["show", str(sealed_journal.path), "--key-file", str(wrong), "--no-color"]
        )
        assert result.exit_code == 1
        assert result.output.count("decryption_failed") == 3

    def test_json_format(self, runner, sealed_journal, key_file):
        result = runner.invoke(
            cli, ["show", str(sealed_journal.path), "--key-file", str(key_file), "--format", "json"]
        )
        assert result.exit_code == 0
        out = json.loads(result.output)
        assert out["decrypted"] is True
        assert out["failures"] == 0
        assert out["stats"]["by_kind"] == {"clipboard_copy": 3}
        assert out["entries"][0]["data"]["payload"]["text"] == "copy 0"

    def test_missing_ledger_is_error(self, runner, tmp_path):
        result = runner.invoke(cli, ["show", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 2

    def test_bad_key_length_is_error(self, runner, sealed_journal, tmp_path):
        short = tmp_path / "short.key"
        short.write_bytes(b"\x01" * 5)
        result = runner.invoke(cli, ["show", str(sealed_journal.path), "--key-file", str(short)])
        assert result.exit_code == 2


class TestTimestamps:

    def test_prints_one_per_line(self, runner, sealed_journal):
        result = runner.invoke(cli, ["timestamps", str(sealed_journal.path)])
        assert result.exit_code == 0
        assert result.output.split() == ["0", "1", "2"]


class TestDiffAndMerge:

    def test_diff_lists_missing(self, runner, tmp_path, sealed_journal):
        peer = LedgerJournal(tmp_path / "store.jsonl")
        peer.append(sealed_journal.load()[0])

        result = runner.invoke(cli, ["diff", str(sealed_journal.path), str(peer.path)])
        assert result.exit_code == 0
        assert "2 entries" in result.output

    def test_diff_output_file(self, runner, tmp_path, sealed_journal):
        peer = LedgerJournal(tmp_path / "store.jsonl")
        peer.append(sealed_journal.load()[0])
        out = tmp_path / "missing.jsonl"

        result = runner.invoke(
            cli, ["diff", str(sealed_journal.path), str(peer.path), "--output", str(out)]
        )
        assert result.exit_code == 0
        assert LedgerJournal(out).load().export_timestamps() == [1, 2]

    def test_merge_creates_target_and_is_idempotent(self, runner, tmp_path, sealed_journal):
        target = tmp_path / "store.jsonl"

        first = runner.invoke(cli, ["merge", str(target), str(sealed_journal.path)])
        second = runner.invoke(cli, ["merge", str(target), str(sealed_journal.path)])

        assert first.exit_code == 0 and "merged 3" in first.output
        assert second.exit_code == 0 and "merged 0" in second.output
        assert LedgerJournal(target).load() == sealed_journal.load()


class TestColor:

    def test_styles_only_when_enabled(self):
        try:
            _Color.configure(True)
            assert _Color.red("x") == click.style("x", fg="red")
            _Color.configure(False)
            assert _Color.red("x") == "x"
        finally:
            _Color.configure(True)

    def test_piped_diff_output_has_no_escape_codes(self, runner, tmp_path, sealed_journal):
        _Color.configure(True)
        peer = LedgerJournal(tmp_path / "store.jsonl")
        peer.append(sealed_journal.load()[0])

        result = runner.invoke(cli, ["diff", str(sealed_journal.path), str(peer.path)])
        assert result.exit_code == 0
        assert "encrypted (" in result.output
        assert "\x1b[" not in result.output
