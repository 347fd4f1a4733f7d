"""Load the TOML configuration describing the server and the tracked users."""

import logging
import tomllib
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from .models import DateRange

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is invalid."""


@dataclass
class UserConfig:
    """A tracked user with an optional date range override."""

    username: str
    fullname: str
    since: date | None = None
    until: date | None = None


@dataclass
class Config:
    server: str
    port: str
    since: date
    until: date
    users: list[UserConfig] = field(default_factory=list)

    def fill_missing_dates(self) -> None:
        """Give every user without an override the global date range."""
        for user in self.users:
            if user.since is None:
                user.since = self.since
            if user.until is None:
                user.until = self.until

    def user_dates(self) -> dict[str, DateRange]:
        return {
            user.username: DateRange(since=user.since, until=user.until)
            for user in self.users
        }

    def user_names(self) -> dict[str, str]:
        return {user.username: user.fullname for user in self.users}


def _require(data: dict, key: str, where: str):
    if key not in data:
        raise ConfigError(f"Missing '{key}' in {where}")
    return data[key]


def _as_date(value, key: str, where: str) -> date:
    # tomllib returns datetime (a date subclass) for values with a time part
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ConfigError(f"'{key}' in {where} must be a date like 2024-01-31, got {value!r}")
    return value


def _as_str(value, key: str, where: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' in {where} must be a string, got {value!r}")
    return value


def _parse_user(data, index: int) -> UserConfig:
    where = f"user #{index + 1}"
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a table")

    since = data.get("from")
    until = data.get("to")
    return UserConfig(
        username=_as_str(_require(data, "username", where), "username", where),
        fullname=_as_str(_require(data, "fullname", where), "fullname", where),
        since=_as_date(since, "from", where) if since is not None else None,
        until=_as_date(until, "to", where) if until is not None else None,
    )


def parse_config(data: dict) -> Config:
    """Build a normalized Config from decoded TOML data."""
    where = "config"
    port = _require(data, "port", where)
    if isinstance(port, bool) or not isinstance(port, (str, int)):
        raise ConfigError(f"'port' must be a string or an integer, got {port!r}")

    users = _require(data, "user", where)
    if not isinstance(users, list):
        raise ConfigError("'user' must be an array of tables ([[user]])")

    config = Config(
        server=_as_str(_require(data, "server", where), "server", where),
        port=str(port),
        since=_as_date(_require(data, "from", where), "from", where),
        until=_as_date(_require(data, "to", where), "to", where),
        users=[_parse_user(u, i) for i, u in enumerate(users)],
    )
    config.fill_missing_dates()
    return config


def load_config(file_path: str | Path) -> Config:
    """
    Read and validate a configuration file.

    Args:
        file_path: Path to the TOML configuration file

    Returns:
        Config with every user's date range filled in

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    path = Path(file_path)
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    config = parse_config(data)
    logger.info(f"Loaded config for {len(config.users)} users from {path}")
    return config
