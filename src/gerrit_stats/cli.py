"""Command-line interface for gerrit-stats."""

import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from .config import ConfigError, load_config
from .models import ReviewDataError
from .parser import ReviewParseError, parse_reviews
from .report import DETAILED_REPORT, SIMPLE_REPORT, write_detailed_stats, write_simple_stats
from .ssh_fetcher import SshError, fetch_all_reviews
from .stats import collect_stats

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FILE = "gerrit-stats.log"


def setup_logging(output_dir: Path, verbose: bool) -> None:
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(output_dir / LOG_FILE, mode="w")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)


@click.command()
@click.option("--config", "-c", "config_file", required=True, type=click.Path(dir_okay=False, path_type=Path), envvar="GERRIT_STATS_CONFIG", help="Path to a config file")
@click.option("--user", "-u", required=True, envvar="GERRIT_USER", help="Username for fetching Gerrit changes")
@click.option("--output-dir", "-o", default=".", type=click.Path(file_okay=False, path_type=Path), help="Directory for the CSV reports (default: current directory)")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def main(config_file: Path, user: str, output_dir: Path, verbose: bool) -> None:
    """Gathers basic statistics based on the reviews users participated in."""
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(output_dir, verbose)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Spawning {len(config.users)} async tasks.")
    click.echo("Starting work. This might take a while.")

    try:
        lines = fetch_all_reviews(config, user)
        reviews = parse_reviews(lines)
        stats = collect_stats(reviews, config.user_dates())
    except (SshError, ReviewParseError, ReviewDataError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not stats:
        click.echo("Error: No reviews were submitted within the configured dates", err=True)
        sys.exit(1)

    user_names = config.user_names()
    write_simple_stats(output_dir / SIMPLE_REPORT, stats, user_names)
    write_detailed_stats(output_dir / DETAILED_REPORT, stats, user_names)
    logger.info(f"Reports written to: {output_dir}")


if __name__ == "__main__":
    main()
