"""Data models for Gerrit review statistics."""

import calendar
import math
from collections.abc import Container, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, time

ALL_REPOS = "All"

SUBMIT_TYPE = "SUBM"
CODE_REVIEW_TYPE = "Code-Review"
MAX_CODE_REVIEW_VALUE = "2"


class ReviewDataError(Exception):
    """Raised when a parsed review does not have the expected shape."""


def _timestamp(day: date, at: time) -> int:
    """Convert a date and a wall-clock time to epoch seconds, treating them as UTC."""
    return calendar.timegm(datetime.combine(day, at).timetuple())


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days used to match submit approvals."""

    since: date
    until: date

    @property
    def start_timestamp(self) -> int:
        return _timestamp(self.since, time(0, 0, 0))

    @property
    def end_timestamp(self) -> int:
        return _timestamp(self.until, time(23, 59, 59))

    def contains(self, timestamp: int) -> bool:
        """Check if an epoch timestamp falls within this range."""
        return self.start_timestamp <= timestamp <= self.end_timestamp


@dataclass(frozen=True)
class User:
    name: str
    username: str


@dataclass(frozen=True)
class Comment:
    reviewer: User
    message: str


@dataclass(frozen=True)
class Approval:
    """A vote or flag on a patch set."""

    type: str
    value: str
    granted_on: int
    by: User


@dataclass(frozen=True)
class PatchSet:
    """One revision of a review.

    ``approvals`` and ``comments`` are None when the query output carried no
    such collection for the patch set, which is not the same as an empty list.
    """

    approvals: tuple[Approval, ...] | None = None
    comments: tuple[Comment, ...] | None = None


@dataclass(frozen=True)
class Review:
    """A single change as reported by ``gerrit query``."""

    project: str
    branch: str
    id: str
    number: int
    owner: User
    commit_message: str
    comments: tuple[Comment, ...] = ()
    patch_sets: tuple[PatchSet, ...] = ()

    def last_patch_set(self) -> PatchSet:
        if not self.patch_sets:
            raise ReviewDataError(f"Review {self.id} has no patch sets")
        return self.patch_sets[-1]

    def last_approvals(self) -> tuple[Approval, ...]:
        """Approvals of the most recent patch set.

        Raises:
            ReviewDataError: If the last patch set has no approvals collection
        """
        approvals = self.last_patch_set().approvals
        if approvals is None:
            raise ReviewDataError(f"Review {self.id} has no approvals on its last patch set")
        return approvals

    def is_within_date(self, date_range: DateRange) -> bool:
        """Check if the review was submitted within the given range."""
        return any(
            approval.type == SUBMIT_TYPE and date_range.contains(approval.granted_on)
            for approval in self.last_approvals()
        )

    def repository_name(self) -> str:
        return self.project

    def _patch_set_comments(self) -> Iterator[Comment]:
        for patch_set in self.patch_sets:
            if patch_set.comments:
                yield from patch_set.comments

    def comments_made(self, users: Container[str]) -> dict[str, int]:
        """Count comments per known reviewer, leaving out the owner's own."""
        made: dict[str, int] = {}
        for comment in self._patch_set_comments():
            username = comment.reviewer.username
            if username in users and username != self.owner.username:
                made[username] = made.get(username, 0) + 1
        return made

    def comments_received(self) -> int:
        return sum(1 for _ in self._patch_set_comments())

    def approvals(self, users: Container[str]) -> list[str]:
        """Known users who gave the maximum Code-Review score on the last patch set."""
        approvers: list[str] = []
        for approval in self.last_approvals():
            username = approval.by.username
            if (
                approval.type == CODE_REVIEW_TYPE
                and approval.value == MAX_CODE_REVIEW_VALUE
                and username in users
                and username not in approvers
            ):
                approvers.append(username)
        return approvers

    def patch_set_count(self) -> int:
        return len(self.patch_sets)

    def commit_message_words(self) -> int:
        return len(self.commit_message.split())


def _ratio(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.inf
    return numerator / denominator


@dataclass
class Stats:
    """Running counters for one user and one repository (or ``All``)."""

    changes: int = 0
    approvals: int = 0
    comments_made: int = 0
    comments_received: int = 0
    commit_words: int = 0
    patch_sets: int = 0

    @property
    def comments_per_change(self) -> float:
        return _ratio(self.comments_received, self.changes)

    @property
    def words_per_change(self) -> float:
        return _ratio(self.commit_words, self.changes)

    @property
    def patch_sets_per_change(self) -> float:
        return _ratio(self.patch_sets, self.changes)


UserStatistics = dict[str, dict[str, Stats]]


@dataclass
class ReviewFacts:
    """Everything the aggregator needs from one eligible review."""

    repository: str
    comments_made: dict[str, int] = field(default_factory=dict)
    comments_received: int = 0
    approvers: list[str] = field(default_factory=list)
    patch_sets: int = 0
    commit_words: int = 0

    @classmethod
    def from_review(cls, review: Review, users: Container[str]) -> "ReviewFacts":
        return cls(
            repository=review.repository_name(),
            comments_made=review.comments_made(users),
            comments_received=review.comments_received(),
            approvers=review.approvals(users),
            patch_sets=review.patch_set_count(),
            commit_words=review.commit_message_words(),
        )
