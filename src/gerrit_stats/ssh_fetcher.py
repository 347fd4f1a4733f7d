"""Fetch merged changes from Gerrit through its SSH query command.

Each configured user gets one ``ssh ... gerrit query`` process. All of them run
concurrently and the caller blocks until every one has finished.
"""

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor

from .config import Config, UserConfig

logger = logging.getLogger(__name__)

QUERY_OPTIONS = [
    "--all-approvals",
    "--all-reviewers",
    "--comments",
    "--commit-message",
    "--files",
    "--format",
    "JSON",
]


class SshError(Exception):
    """Raised when an ssh query fails."""


def _run_ssh_command(args: list[str]) -> str:
    """Run ssh with the given arguments and return its decoded stdout."""
    cmd = ["ssh"] + args
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, check=True)
    except FileNotFoundError as e:
        raise SshError("ssh client not found") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
        raise SshError(f"ssh command failed: {stderr or e}") from e

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SshError(f"Failed to read command output: {e}") from e


def build_query_args(server: str, port: str, login: str, user: UserConfig) -> list[str]:
    """Build the ssh arguments querying one user's merged changes."""
    return [
        "-p", port,
        f"{login}@{server}",
        "gerrit", "query",
        *QUERY_OPTIONS,
        "status:merged",
        f"after:{user.since.isoformat()}",
        f"before:{user.until.isoformat()}",
        f"owner:{user.username}",
    ]


def review_lines(output: str) -> list[str]:
    """Return review records from query output, newest line first.

    The last line printed by ``gerrit query`` is a statistics trailer, not a
    change, and is dropped. Records are split on line feeds only, since
    characters like U+0085 may appear unescaped inside JSON strings.
    """
    lines = output.split("\n")
    if lines[-1] == "":
        lines.pop()
    lines = [line.removesuffix("\r") for line in lines]
    return list(reversed(lines[:-1]))


def fetch_user_reviews(server: str, port: str, login: str, user: UserConfig) -> list[str]:
    """Fetch the raw review records owned by one user."""
    logger.info(f"Fetching changes for: {user.username}")
    output = _run_ssh_command(build_query_args(server, port, login, user))
    lines = review_lines(output)
    logger.info(f"{user.username}: {len(lines)} records")
    return lines


def fetch_all_reviews(config: Config, login: str) -> list[str]:
    """
    Fetch the review records of every configured user in parallel.

    Args:
        config: Loaded configuration
        login: SSH login name

    Returns:
        Review lines of all users, grouped in configuration order

    Raises:
        SshError: If any of the queries fails
    """
    if not config.users:
        return []

    with ThreadPoolExecutor(max_workers=len(config.users)) as ex:
        futs = [
            ex.submit(fetch_user_reviews, config.server, config.port, login, user)
            for user in config.users
        ]

        lines: list[str] = []
        for fut in futs:
            lines.extend(fut.result())

    return lines
