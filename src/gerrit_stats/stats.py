"""Fold parsed reviews into per-user, per-repository statistics."""

import logging
from collections.abc import Iterable, Mapping

from .models import ALL_REPOS, DateRange, Review, ReviewFacts, Stats, UserStatistics

logger = logging.getLogger(__name__)


def _cells(stats: UserStatistics, username: str, repo: str) -> tuple[Stats, Stats]:
    """Return a user's ``All`` cell and repository cell, creating them on first use."""
    user_stats = stats.setdefault(username, {})
    total = user_stats.setdefault(ALL_REPOS, Stats())
    per_repo = user_stats.setdefault(repo, Stats())
    return total, per_repo


def add_owner_stats(stats: UserStatistics, username: str, facts: ReviewFacts) -> None:
    """Count a review against its owner."""
    for cell in _cells(stats, username, facts.repository):
        cell.changes += 1
        cell.comments_received += facts.comments_received
        cell.patch_sets += facts.patch_sets
        cell.commit_words += facts.commit_words


def add_comment_stats(stats: UserStatistics, facts: ReviewFacts) -> None:
    """Credit other users for the comments they left on a review."""
    for username, count in facts.comments_made.items():
        for cell in _cells(stats, username, facts.repository):
            cell.comments_made += count


def add_approval_stats(stats: UserStatistics, facts: ReviewFacts) -> None:
    """Credit users who approved a review."""
    for username in facts.approvers:
        for cell in _cells(stats, username, facts.repository):
            cell.approvals += 1


def collect_stats(reviews: Iterable[Review], user_dates: Mapping[str, DateRange]) -> UserStatistics:
    """
    Aggregate statistics over all reviews submitted within their owner's range.

    Args:
        reviews: Parsed reviews
        user_dates: Date range of every tracked user, keyed by username

    Returns:
        Mapping of username to repository name (or ``All``) to Stats

    Raises:
        KeyError: If a review is owned by a user missing from ``user_dates``
        ReviewDataError: If a review's last patch set has no approvals
    """
    stats: UserStatistics = {}
    included = 0
    skipped = 0

    for review in reviews:
        if not review.is_within_date(user_dates[review.owner.username]):
            logger.debug(f"Skipping {review.id}: not submitted within range")
            skipped += 1
            continue

        facts = ReviewFacts.from_review(review, user_dates)
        add_owner_stats(stats, review.owner.username, facts)
        add_comment_stats(stats, facts)
        add_approval_stats(stats, facts)
        included += 1

    logger.info(f"Collected stats from {included} reviews ({skipped} skipped)")
    return stats


def average_stats(stats: UserStatistics) -> Stats:
    """Average every counter over the ``All`` cells of all users.

    Counters are truncated to integers. At least one user is required.
    """
    if not stats:
        raise ValueError("Cannot average statistics without any users")

    total = Stats()
    for repos in stats.values():
        row = repos[ALL_REPOS]
        total.changes += row.changes
        total.approvals += row.approvals
        total.comments_made += row.comments_made
        total.comments_received += row.comments_received
        total.commit_words += row.commit_words
        total.patch_sets += row.patch_sets

    count = len(stats)
    return Stats(
        changes=total.changes // count,
        approvals=total.approvals // count,
        comments_made=total.comments_made // count,
        comments_received=total.comments_received // count,
        commit_words=total.commit_words // count,
        patch_sets=total.patch_sets // count,
    )
