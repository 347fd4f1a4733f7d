"""Decode ``gerrit query --format JSON`` records into review models."""

import json
import logging
from collections.abc import Iterable

from .models import Approval, Comment, PatchSet, Review, User

logger = logging.getLogger(__name__)


class ReviewParseError(Exception):
    """Raised when a query output line is not a valid review record."""


def _field(data: dict, key: str, kind: type):
    if not isinstance(data, dict):
        raise ReviewParseError(f"Expected an object holding '{key}', got {type(data).__name__}")
    try:
        value = data[key]
    except KeyError as e:
        raise ReviewParseError(f"Missing field '{key}'") from e
    # bool is an int subclass but never a valid number here
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ReviewParseError(f"Field '{key}' should be {kind.__name__}, got {type(value).__name__}")
    return value


def _user(data: dict) -> User:
    return User(name=_field(data, "name", str), username=_field(data, "username", str))


def _comment(data: dict) -> Comment:
    return Comment(
        reviewer=_user(_field(data, "reviewer", dict)),
        message=_field(data, "message", str),
    )


def _approval(data: dict) -> Approval:
    return Approval(
        type=_field(data, "type", str),
        value=_field(data, "value", str),
        granted_on=_field(data, "grantedOn", int),
        by=_user(_field(data, "by", dict)),
    )


def _patch_set(data: dict) -> PatchSet:
    if not isinstance(data, dict):
        raise ReviewParseError(f"Expected a patch set object, got {type(data).__name__}")

    approvals = None
    if data.get("approvals") is not None:
        approvals = tuple(_approval(a) for a in _field(data, "approvals", list))

    comments = None
    if data.get("comments") is not None:
        comments = tuple(_comment(c) for c in _field(data, "comments", list))

    return PatchSet(approvals=approvals, comments=comments)


def parse_review(line: str) -> Review:
    """Parse one line of query output into a Review.

    Args:
        line: A single JSON object as printed by ``gerrit query``

    Returns:
        The parsed review

    Raises:
        ReviewParseError: If the line is not valid JSON or lacks a required field
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ReviewParseError(f"Failed to parse JSON: {e}") from e

    if not isinstance(data, dict):
        raise ReviewParseError(f"Expected a JSON object, got {type(data).__name__}")

    return Review(
        project=_field(data, "project", str),
        branch=_field(data, "branch", str),
        id=_field(data, "id", str),
        number=_field(data, "number", int),
        owner=_user(_field(data, "owner", dict)),
        commit_message=_field(data, "commitMessage", str),
        comments=tuple(_comment(c) for c in _field(data, "comments", list)),
        patch_sets=tuple(_patch_set(p) for p in _field(data, "patchSets", list)),
    )


def parse_reviews(lines: Iterable[str]) -> list[Review]:
    """Parse every line in order, failing on the first bad record."""
    reviews = [parse_review(line) for line in lines]
    logger.info(f"Parsed {len(reviews)} reviews")
    return reviews
