# tests/test_backup_naming.py
from datetime import datetime
from pathlib import Path

import pytest

from schemvault.backup.naming import (
    BackupFileInfo,
    backup_directory,
    backup_path_for,
    find_latest_backup,
    format_backup_filename,
    latest_backup,
    latest_backup_of,
    next_sequence,
    parse_backup_filename,
)

WHEN = datetime(2026, 3, 2, 9, 5)


class TestBackupFileNames:
    """Formatting and parsing of `{base}-{seq}-{date}-{HH}h-{MM}m.dgm` names."""

    def test_format_pads_sequence_and_pins_date_format(self):
        assert format_backup_filename("alu", 7, WHEN) == "alu-007-03-02-2026-09h-05m.dgm"

    def test_format_allows_sequences_beyond_three_digits(self):
        assert format_backup_filename("alu", 1234, WHEN).startswith("alu-1234-")

    def test_format_rejects_negative_sequence(self):
        with pytest.raises(ValueError, match="non-negative"):
            format_backup_filename("alu", -1, WHEN)

    def test_parse_recovers_sequence_and_write_time(self):
        info = parse_backup_filename("alu-012-03-02-2026-09h-05m.dgm", "alu")
        assert info == BackupFileInfo(sequence=12, file_name="alu-012-03-02-2026-09h-05m.dgm", written_at=WHEN)

    @pytest.mark.parametrize("file_name", [
        "alu.dgm",
        "alu-12-03-02-2026-09h-05m.dgm",        # sequence not padded
        "alu-012-03-02-2026-09h-05m.dgmauto",   # wrong extension
        "alu2-012-03-02-2026-09h-05m.dgm",      # different sheet
        "alu-012-2026-03-02.dgm",
    ])
    def test_parse_ignores_unrelated_files(self, file_name):
        assert parse_backup_filename(file_name, "alu") is None

    def test_parse_tolerates_impossible_date(self):
        info = parse_backup_filename("alu-003-13-40-2026-09h-05m.dgm", "alu")
        assert info.sequence == 3
        assert info.written_at is None

    def test_base_name_with_regex_characters_is_escaped(self):
        assert parse_backup_filename("a+b-000-03-02-2026-09h-05m.dgm", "a+b").sequence == 0
        assert parse_backup_filename("aab-000-03-02-2026-09h-05m.dgm", "a+b") is None


class TestLatestBackup:
    """The next sequence number is derived only from a directory listing."""

    def test_empty_listing_has_no_latest_and_starts_at_zero(self):
        assert latest_backup([], "alu") is None
        assert next_sequence([], "alu") == 0

    def test_highest_sequence_wins_regardless_of_date(self):
        names = [
            "alu-000-03-05-2026-10h-00m.dgm",
            "alu-002-01-01-2025-10h-00m.dgm",
            "alu-001-03-06-2026-10h-00m.dgm",
            "notes.txt",
        ]
        assert latest_backup(names, "alu").sequence == 2
        assert next_sequence(names, "alu") == 3

    def test_duplicate_sequence_prefers_newer_file(self):
        names = ["alu-004-03-02-2026-09h-05m.dgm", "alu-004-03-02-2026-11h-40m.dgm"]
        assert latest_backup(names, "alu").file_name == "alu-004-03-02-2026-11h-40m.dgm"

    def test_repeated_calls_are_idempotent(self):
        names = ["alu-000-03-02-2026-09h-05m.dgm"]
        assert next_sequence(names, "alu") == next_sequence(names, "alu") == 1

    def test_latest_backup_of_scans_sibling_backup_directory(self, tmp_path):
        sheet_path = tmp_path / "alu.dgm"
        assert latest_backup_of(sheet_path) is None

        directory = backup_directory(sheet_path)
        directory.mkdir()
        (directory / "alu-000-03-02-2026-09h-05m.dgm").write_text("")
        (directory / "alu-001-03-02-2026-09h-10m.dgm").write_text("")
        assert latest_backup_of(sheet_path) == directory / "alu-001-03-02-2026-09h-10m.dgm"
        assert directory == Path(tmp_path) / "backup"

    @pytest.mark.parametrize("file_name", ["alu.dgm", "alu"])
    def test_backup_path_and_lookup_agree_on_extension(self, tmp_path, file_name):
        sheet_path = tmp_path / file_name
        path = backup_path_for(sheet_path, 2, WHEN)
        assert path == tmp_path / "backup" / "alu-002-03-02-2026-09h-05m.dgm"

        path.parent.mkdir()
        path.write_text("")
        assert find_latest_backup(sheet_path).sequence == 2
        assert latest_backup_of(sheet_path) == path
