"""Tests for report module."""

import csv
import math

import pytest

from gerrit_stats.models import Stats
from gerrit_stats.report import HEADER, write_detailed_stats, write_simple_stats

USER_NAMES = {"alice": "Alice Example", "bob": "Bob Example"}


@pytest.fixture
def stats():
    return {
        "bob": {
            "All": Stats(approvals=1, comments_made=3),
            "tools": Stats(approvals=1, comments_made=3),
        },
        "alice": {
            "All": Stats(changes=2, comments_received=3, commit_words=20, patch_sets=5),
            "tools": Stats(changes=1, comments_received=3, commit_words=8, patch_sets=3),
            "docs": Stats(changes=1, commit_words=12, patch_sets=2),
        },
    }


def read_rows(path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestWriteSimpleStats:
    """Tests for write_simple_stats function."""

    def test_writes_average_then_users(self, tmp_path, stats):
        """Should write the header, the average row and one row per user."""
        path = tmp_path / "stats.csv"

        write_simple_stats(path, stats, USER_NAMES)
        rows = read_rows(path)

        assert rows[0] == HEADER
        assert rows[1][:6] == ["Average", "All", "1", "0", "1", "1"]
        assert rows[2] == ["Alice Example", "All", "2", "0", "0", "3", "1.5", "20", "10.0", "5", "2.5"]
        assert [row[0] for row in rows[3:]] == ["Bob Example"]

    def test_zero_changes_gives_degenerate_ratios(self, tmp_path, stats):
        """A participant-only user should not crash the writer."""
        path = tmp_path / "stats.csv"

        write_simple_stats(path, stats, USER_NAMES)
        bob = read_rows(path)[3]

        assert bob[2] == "0"
        assert math.isnan(float(bob[6]))
        assert math.isnan(float(bob[8]))
        assert math.isnan(float(bob[10]))

    def test_requires_users(self, tmp_path):
        """Should not write anything without users."""
        path = tmp_path / "stats.csv"

        with pytest.raises(ValueError):
            write_simple_stats(path, {}, USER_NAMES)

        assert not path.exists()


class TestWriteDetailedStats:
    """Tests for write_detailed_stats function."""

    def test_writes_every_user_and_repository(self, tmp_path, stats):
        """Should write one row per cell in sorted order."""
        path = tmp_path / "detailed.csv"

        write_detailed_stats(path, stats, USER_NAMES)
        rows = read_rows(path)

        assert rows[0] == HEADER
        assert [(row[0], row[1]) for row in rows[1:]] == [
            ("Alice Example", "All"),
            ("Alice Example", "docs"),
            ("Alice Example", "tools"),
            ("Bob Example", "All"),
            ("Bob Example", "tools"),
        ]
        assert rows[2] == ["Alice Example", "docs", "1", "0", "0", "0", "0.0", "12", "12.0", "2", "2.0"]
