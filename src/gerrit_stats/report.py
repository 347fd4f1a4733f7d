"""Write aggregated statistics as CSV reports."""

import csv
import logging
from collections.abc import Mapping
from pathlib import Path

from .models import ALL_REPOS, Stats, UserStatistics
from .stats import average_stats

logger = logging.getLogger(__name__)

HEADER = ["User", "Repo", "CH", "AP", "CM", "CR", "CR/CH", "CW", "CW/CH", "PS", "PS/CH"]

SIMPLE_REPORT = "stats.csv"
DETAILED_REPORT = "detailed.csv"


def stats_row(user: str, repo: str, stats: Stats) -> list:
    return [
        user,
        repo,
        stats.changes,
        stats.approvals,
        stats.comments_made,
        stats.comments_received,
        stats.comments_per_change,
        stats.commit_words,
        stats.words_per_change,
        stats.patch_sets,
        stats.patch_sets_per_change,
    ]


def write_simple_stats(path: Path, stats: UserStatistics, user_names: Mapping[str, str]) -> None:
    """Write the average row followed by each user's totals."""
    average = average_stats(stats)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        writer.writerow(stats_row("Average", ALL_REPOS, average))
        for username in sorted(stats):
            writer.writerow(stats_row(user_names[username], ALL_REPOS, stats[username][ALL_REPOS]))
    logger.info(f"Report written to: {path}")


def write_detailed_stats(path: Path, stats: UserStatistics, user_names: Mapping[str, str]) -> None:
    """Write one row per user and repository, including the ``All`` rows."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        for username in sorted(stats):
            repos = stats[username]
            for repo in sorted(repos):
                writer.writerow(stats_row(user_names[username], repo, repos[repo]))
    logger.info(f"Report written to: {path}")
