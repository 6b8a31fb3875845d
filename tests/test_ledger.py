"""
Alert ledger tests.
Tests for dedup keys and the append-only ledger file.
"""

import pytest
from pathlib import Path

from health_bot.alerts.ledger import AlertLedger, make_alert_key


class TestAlertKey:
    """Test alert key derivation."""

    def test_key_format(self):
        """Should render chain and bid id."""
        assert make_alert_key(1, "12345") == "1:12345"

    def test_key_is_deterministic(self):
        """Should give the same key for the same identity."""
        assert make_alert_key(1, "12345") == make_alert_key(1, "12345")

    def test_key_depends_on_chain(self):
        """Should distinguish the same bid id on different chains."""
        assert make_alert_key(1, "12345") != make_alert_key(2, "12345")


class TestAlertLedger:
    """Test ledger persistence."""

    @pytest.fixture
    def ledger(self, tmp_path: Path):
        """Create a ledger in a temp directory."""
        return AlertLedger(str(tmp_path / "alerted_bids.txt"))

    def test_missing_file_is_empty(self, ledger: AlertLedger):
        """Should load an empty set when the file doesn't exist."""
        assert ledger.load() == set()
        assert not ledger.path.exists()

    def test_append_creates_file(self, ledger: AlertLedger):
        """Should create the file on first append."""
        ledger.append("1:12345")

        assert ledger.path.exists()
        assert ledger.path.read_text() == "1:12345\n"

    def test_append_preserves_existing(self, ledger: AlertLedger):
        """Should never truncate or reorder existing lines."""
        ledger.append("1:1")
        ledger.append("137:2")
        ledger.append("1:3")

        assert ledger.path.read_text().splitlines() == ["1:1", "137:2", "1:3"]

    def test_load_round_trip(self, ledger: AlertLedger):
        """Should load every appended key."""
        ledger.append("1:1")
        ledger.append("137:2")

        assert ledger.load() == {"1:1", "137:2"}

    def test_skips_blank_lines(self, ledger: AlertLedger):
        """Should ignore blank and whitespace-only lines."""
        ledger.path.write_text("1:1\n\n   \n137:2  \n")

        assert ledger.load() == {"1:1", "137:2"}

    def test_skips_undecodable_lines(self, ledger: AlertLedger):
        """Should skip a line that is not valid UTF-8 and keep the rest."""
        ledger.path.write_bytes(b"1:1\n\xff\xfe\n137:2\n")

        assert ledger.load() == {"1:1", "137:2"}

    def test_append_after_undecodable_line(self, ledger: AlertLedger):
        """Should keep appending to a file with a corrupt line."""
        ledger.path.write_bytes(b"\xff\n")
        ledger.append("1:1")

        assert ledger.load() == {"1:1"}

    def test_contains(self, ledger: AlertLedger):
        """Should report recorded keys."""
        ledger.append("1:12345")

        assert ledger.contains("1:12345") is True
        assert ledger.contains("2:12345") is False

    def test_creates_parent_directory(self, tmp_path: Path):
        """Should create a missing parent directory on append."""
        ledger = AlertLedger(str(tmp_path / "state" / "alerted_bids.txt"))
        ledger.append("1:1")

        assert ledger.load() == {"1:1"}

    def test_reads_external_edits(self, ledger: AlertLedger):
        """Should see entries written by someone else on the next load."""
        ledger.append("1:1")
        with open(ledger.path, "a") as f:
            f.write("5:9\n")

        assert "5:9" in ledger.load()
